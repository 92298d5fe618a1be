"""Authentication components for GitLab clients.

This module provides:
- Credential kinds and the headers each one is stamped with
- An auth provider with single-flight token refresh
- Multi-source credential resolution (value → env → .env → default)

Example:
    ```python
    from gitlab_client_core.auth import Credential, CredentialKind

    credential = Credential(CredentialKind.PRIVATE_TOKEN, "glpat-...")
    ```
"""

from gitlab_client_core.auth.credentials import CredentialResolver
from gitlab_client_core.auth.exceptions import (
    CredentialError,
    CredentialFileError,
    CredentialNotFoundError,
)
from gitlab_client_core.auth.provider import AuthProvider, Credential, CredentialKind

__all__ = [
    "AuthProvider",
    "Credential",
    "CredentialError",
    "CredentialFileError",
    "CredentialKind",
    "CredentialNotFoundError",
    "CredentialResolver",
]
