"""Base model and enumerations shared by several GitLab resources."""

from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict


class GitLabModel(BaseModel):
    """Base for resource records.

    Keys a newer server adds are ignored; known keys must have the declared
    JSON type.
    """

    model_config = ConfigDict(extra="ignore", strict=True)


class Visibility(str, Enum):
    PUBLIC = "public"
    INTERNAL = "internal"
    PRIVATE = "private"


class AccessLevel(IntEnum):
    NONE = 0
    MINIMAL_ACCESS = 5
    GUEST = 10
    PLANNER = 15
    REPORTER = 20
    DEVELOPER = 30
    MAINTAINER = 40
    OWNER = 50
    ADMIN = 60


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ProjectOrderBy(str, Enum):
    ID = "id"
    NAME = "name"
    PATH = "path"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    LAST_ACTIVITY_AT = "last_activity_at"
    SIMILARITY = "similarity"
    STAR_COUNT = "star_count"


class GroupOrderBy(str, Enum):
    NAME = "name"
    PATH = "path"
    ID = "id"
    SIMILARITY = "similarity"
