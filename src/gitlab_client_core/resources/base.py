"""Shared plumbing for resource APIs."""

from typing import TYPE_CHECKING, Any

from gitlab_client_core.errors.exceptions import RequestBuildError
from gitlab_client_core.models.groups import Group
from gitlab_client_core.models.projects import Project

if TYPE_CHECKING:
    from gitlab_client_core.client import GitLabClient

ProjectRef = int | str | Project
GroupRef = int | str | Group


def project_ref(project: ProjectRef) -> int | str:
    """Id or ``namespace/path`` for a project given in any accepted form."""
    if isinstance(project, Project):
        if project.id is not None:
            return project.id
        if project.full_path:
            return project.full_path
        raise RequestBuildError("Project has neither an id nor a path")
    if isinstance(project, bool) or not isinstance(project, (int, str)):
        raise RequestBuildError(f"Not a project reference: {project!r}")
    return project


def group_ref(group: GroupRef) -> int | str:
    if isinstance(group, Group):
        if group.id is not None:
            return group.id
        if group.full_path:
            return group.full_path
        raise RequestBuildError("Group has neither an id nor a path")
    if isinstance(group, bool) or not isinstance(group, (int, str)):
        raise RequestBuildError(f"Not a group reference: {group!r}")
    return group


def compact(**params: Any) -> dict[str, Any]:
    """Drop ``None`` values from a parameter bag."""
    return {key: value for key, value in params.items() if value is not None}


class ResourceAPI:
    """Base for the per-resource operation groups hanging off a client."""

    def __init__(self, client: "GitLabClient"):
        self._client = client
