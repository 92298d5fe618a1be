"""GitLab resource models and their JSON schema."""

from gitlab_client_core.models.common import (
    AccessLevel,
    GitLabModel,
    GroupOrderBy,
    ProjectOrderBy,
    SortOrder,
    Visibility,
)
from gitlab_client_core.models.groups import Group, Member
from gitlab_client_core.models.projects import Namespace, Project, ProjectStatistics
from gitlab_client_core.models.schema import from_json, to_json
from gitlab_client_core.models.variables import Variable, VariableType

__all__ = [
    "AccessLevel",
    "GitLabModel",
    "Group",
    "GroupOrderBy",
    "Member",
    "Namespace",
    "Project",
    "ProjectOrderBy",
    "ProjectStatistics",
    "SortOrder",
    "Variable",
    "VariableType",
    "Visibility",
    "from_json",
    "to_json",
]
