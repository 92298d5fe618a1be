"""Per-resource operation groups, reached through ``GitLabClient.projects``
and ``GitLabClient.groups``."""

from gitlab_client_core.resources.base import ResourceAPI, compact, group_ref, project_ref
from gitlab_client_core.resources.groups import GroupsAPI
from gitlab_client_core.resources.projects import ProjectsAPI

__all__ = ["GroupsAPI", "ProjectsAPI", "ResourceAPI", "compact", "group_ref", "project_ref"]
