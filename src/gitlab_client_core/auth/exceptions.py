"""Custom exceptions for credential resolution.

Credential problems are configuration problems: they surface while a client
is being set up, before any request is sent.

Example:
    ```python
    from gitlab_client_core.auth.exceptions import CredentialNotFoundError

    if not token:
        raise CredentialNotFoundError("GitLab token not found", env_var_name="GITLAB_PRIVATE_TOKEN")
    ```
"""

from gitlab_client_core.errors.exceptions import ConfigError


class CredentialError(ConfigError):
    """Base exception for credential-related errors.

    All credential-specific exceptions inherit from this class,
    making it easy to catch any credential-related error.
    """

    pass


class CredentialNotFoundError(CredentialError):
    """Raised when a required credential cannot be resolved.

    Attributes:
        env_var_name: The environment variable name that was checked (if any).
    """

    def __init__(self, message: str, env_var_name: str | None = None):
        super().__init__(message)
        self.env_var_name = env_var_name


class CredentialFileError(CredentialError):
    """Raised when a credential file cannot be read."""

    pass
