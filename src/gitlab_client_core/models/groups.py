"""Groups and memberships."""

from datetime import date

from gitlab_client_core.models.common import AccessLevel, GitLabModel, Visibility


class Group(GitLabModel):
    id: int | None = None
    name: str | None = None
    path: str | None = None
    full_name: str | None = None
    full_path: str | None = None
    description: str | None = None
    visibility: Visibility | None = None
    parent_id: int | None = None
    web_url: str | None = None


class Member(GitLabModel):
    """A user's membership of a project or group."""

    id: int | None = None
    username: str | None = None
    name: str | None = None
    state: str | None = None
    access_level: AccessLevel | None = None
    expires_at: date | None = None
    web_url: str | None = None
