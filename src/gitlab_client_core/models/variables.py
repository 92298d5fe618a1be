"""CI/CD variables."""

from enum import Enum

from gitlab_client_core.models.common import GitLabModel


class VariableType(str, Enum):
    ENV_VAR = "env_var"
    FILE = "file"


class Variable(GitLabModel):
    key: str | None = None
    value: str | None = None
    variable_type: VariableType | None = None
    protected: bool | None = None
    masked: bool | None = None
    raw: bool | None = None
    environment_scope: str | None = None
    description: str | None = None
