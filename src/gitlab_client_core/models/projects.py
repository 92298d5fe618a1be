"""Project and related records."""

from datetime import datetime

from pydantic import Field, model_validator

from gitlab_client_core.models.common import GitLabModel, Visibility


class Namespace(GitLabModel):
    id: int | None = None
    name: str | None = None
    path: str | None = None
    kind: str | None = None
    full_path: str | None = None
    parent_id: int | None = None
    web_url: str | None = None


class ProjectStatistics(GitLabModel):
    commit_count: int | None = None
    storage_size: int | None = None
    repository_size: int | None = None
    wiki_size: int | None = None
    lfs_objects_size: int | None = None
    job_artifacts_size: int | None = None
    packages_size: int | None = None
    snippets_size: int | None = None
    uploads_size: int | None = None


class Project(GitLabModel):
    """A GitLab project.

    Old servers report visibility as a boolean ``public`` flag instead of
    ``visibility``. Both are accepted on input; only ``visibility`` is sent.
    """

    id: int | None = None
    name: str | None = None
    description: str | None = None
    path: str | None = None
    path_with_namespace: str | None = None
    name_with_namespace: str | None = None
    namespace: Namespace | None = None
    default_branch: str | None = None
    visibility: Visibility | None = None
    public: bool | None = Field(default=None, exclude=True, repr=False)
    issues_enabled: bool | None = None
    merge_requests_enabled: bool | None = None
    wiki_enabled: bool | None = None
    snippets_enabled: bool | None = None
    jobs_enabled: bool | None = None
    container_registry_enabled: bool | None = None
    archived: bool | None = None
    star_count: int | None = None
    forks_count: int | None = None
    open_issues_count: int | None = None
    tag_list: list[str] | None = None
    topics: list[str] | None = None
    created_at: datetime | None = None
    last_activity_at: datetime | None = None
    web_url: str | None = None
    http_url_to_repo: str | None = None
    ssh_url_to_repo: str | None = None
    forked_from_project: "Project | None" = None
    statistics: ProjectStatistics | None = None

    @model_validator(mode="after")
    def _visibility_from_public(self) -> "Project":
        if self.visibility is None and self.public is not None:
            self.visibility = Visibility.PUBLIC if self.public else Visibility.PRIVATE
        return self

    @property
    def full_path(self) -> str | None:
        """``namespace/path`` when known, for addressing the project by path."""
        if self.path_with_namespace:
            return self.path_with_namespace
        if self.namespace is not None and self.namespace.full_path and self.path:
            return f"{self.namespace.full_path}/{self.path}"
        return None
