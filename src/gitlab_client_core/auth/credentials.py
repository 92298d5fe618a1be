"""Credential resolution for GitLab clients.

Tokens are looked up from several sources, highest priority first:

1. Explicitly provided value
2. Environment variable
3. .env file (python-dotenv, loaded into the environment once)
4. Default value

GitLab accepts four kinds of credential, and the environment variable a token
was found in decides its kind:

| Variable | Kind |
|----------|------|
| `GITLAB_PRIVATE_TOKEN` | private-token (`PRIVATE-TOKEN` header) |
| `GITLAB_TOKEN` | personal-access-token (`Authorization: Bearer`) |
| `GITLAB_OAUTH_TOKEN` | oauth2-bearer (`Authorization: Bearer`) |
| `CI_JOB_TOKEN` | job-token (`JOB-TOKEN` header) |
| `GITLAB_TOKEN_FILE` | private-token read from the named file |

Example:
    ```python
    from gitlab_client_core.auth import CredentialResolver

    resolver = CredentialResolver()
    credential = resolver.resolve_credential(required=True)
    ```

Security Considerations:
    - Resolved values are never logged (masked with ***)
    - Only the source is logged (env var name, file path)
    - File-based secrets have whitespace stripped
"""

import logging
import os
from pathlib import Path
from threading import Lock

from dotenv import load_dotenv

from gitlab_client_core.auth.exceptions import CredentialFileError, CredentialNotFoundError
from gitlab_client_core.auth.provider import Credential, CredentialKind

logger = logging.getLogger(__name__)

# Checked in order; the first variable that is set wins.
TOKEN_ENV_VARS: tuple[tuple[str, CredentialKind], ...] = (
    ("GITLAB_PRIVATE_TOKEN", CredentialKind.PRIVATE_TOKEN),
    ("GITLAB_TOKEN", CredentialKind.PERSONAL_ACCESS_TOKEN),
    ("GITLAB_OAUTH_TOKEN", CredentialKind.OAUTH2_BEARER),
    ("CI_JOB_TOKEN", CredentialKind.JOB_TOKEN),
)
TOKEN_FILE_ENV_VAR = "GITLAB_TOKEN_FILE"


class CredentialResolver:
    """Resolve settings and credentials from multiple sources.

    Attributes:
        _dotenv_loaded: Whether .env file has been loaded.
        _dotenv_lock: Thread lock for safe dotenv loading.
    """

    def __init__(self, dotenv_path: str | None = None, load_dotenv: bool = True):
        """Initialize credential resolver.

        Args:
            dotenv_path: Path to .env file. If None, python-dotenv searches
                parent directories for one.
            load_dotenv: Whether to load a .env file at all.
        """
        self._dotenv_loaded = False
        self._dotenv_lock = Lock()
        self._dotenv_path = dotenv_path
        self._load_dotenv_enabled = load_dotenv

        if self._load_dotenv_enabled:
            self._ensure_dotenv_loaded()

    def _ensure_dotenv_loaded(self) -> None:
        """Load the .env file once (thread-safe)."""
        if self._dotenv_loaded:
            return

        with self._dotenv_lock:
            if self._dotenv_loaded:
                return

            try:
                load_dotenv(dotenv_path=self._dotenv_path)
                logger.debug("Loaded .env file for credential resolution")
            except Exception as e:
                # A broken .env file must not prevent explicit configuration
                logger.warning(f"Failed to load .env file: {e}")
            self._dotenv_loaded = True

    def _mask_credential(self, value: str | None) -> str:
        if value is None:
            return "None"
        return "***"

    def resolve(
        self,
        *,
        value: str | None = None,
        env_var_name: str | None = None,
        default: str | None = None,
        required: bool = False,
        mask_in_logs: bool = True,
    ) -> str | None:
        """Resolve a single value from explicit value, environment, or default.

        Args:
            value: Explicitly provided value (highest priority).
            env_var_name: Environment variable name to check.
            default: Default value if not found elsewhere.
            required: Raise CredentialNotFoundError when nothing is found.
            mask_in_logs: Mask the value in log messages. Disable for
                non-sensitive values such as URLs.

        Returns:
            Resolved value, or None if not found and not required.

        Raises:
            CredentialNotFoundError: If required and not found.
        """
        result = None
        source = None

        if value is not None:
            result = value
            source = "explicit parameter"
        elif env_var_name and env_var_name in os.environ:
            result = os.environ[env_var_name]
            source = f"environment variable '{env_var_name}'"
        elif default is not None:
            result = default
            source = "default value"

        if result is not None:
            shown = self._mask_credential(result) if mask_in_logs else result
            logger.debug(f"Resolved value from {source}: {shown}")

        if required and result is None:
            error_msg = "Required credential not found"
            if env_var_name:
                error_msg += f" (checked env var: {env_var_name})"
            raise CredentialNotFoundError(error_msg, env_var_name=env_var_name)

        return result

    def resolve_from_file(
        self,
        *,
        file_path: str | Path | None = None,
        env_var_name: str | None = None,
        required: bool = False,
    ) -> str | None:
        """Read a secret from a file.

        The path may come directly or from an environment variable, and
        supports ``~`` and ``$VAR`` expansion. Contents are stripped.

        Raises:
            CredentialFileError: If required and the file cannot be read.
        """
        path_to_use = None

        if file_path is not None:
            path_to_use = str(file_path)
        elif env_var_name:
            path_to_use = self.resolve(env_var_name=env_var_name, mask_in_logs=False)

        if path_to_use is None:
            if required:
                error_msg = "No file path provided for credential resolution"
                if env_var_name:
                    error_msg += f" (env var '{env_var_name}' not set)"
                raise CredentialFileError(error_msg)
            return None

        path_obj = Path(os.path.expanduser(os.path.expandvars(path_to_use)))

        try:
            content = path_obj.read_text().strip()
            logger.debug(f"Resolved credential from file: {path_obj} (***)")
            return content

        except FileNotFoundError:
            error_msg = f"Credential file not found: {path_obj}"
            if required:
                raise CredentialFileError(error_msg) from None
            logger.debug(error_msg)
            return None

        except PermissionError:
            error_msg = f"Permission denied reading credential file: {path_obj}"
            if required:
                raise CredentialFileError(error_msg) from None
            logger.warning(error_msg)
            return None

        except OSError as e:
            error_msg = f"Error reading credential file {path_obj}: {e}"
            if required:
                raise CredentialFileError(error_msg) from e
            logger.warning(error_msg)
            return None

    def resolve_credential(
        self,
        *,
        secret: str | None = None,
        kind: CredentialKind = CredentialKind.PRIVATE_TOKEN,
        required: bool = False,
    ) -> Credential | None:
        """Resolve a GitLab credential.

        An explicit ``secret`` is used with the given ``kind``. Otherwise the
        token environment variables are tried in order, then the token file.

        Raises:
            CredentialNotFoundError: If required and no source provides a token.
        """
        if secret is not None:
            return Credential(kind, self.resolve(value=secret))

        for env_var_name, env_kind in TOKEN_ENV_VARS:
            token = self.resolve(env_var_name=env_var_name)
            if token:
                return Credential(env_kind, token)

        token = self.resolve_from_file(env_var_name=TOKEN_FILE_ENV_VAR)
        if token:
            return Credential(CredentialKind.PRIVATE_TOKEN, token)

        if required:
            checked = ", ".join(name for name, _ in TOKEN_ENV_VARS) + f", {TOKEN_FILE_ENV_VAR}"
            raise CredentialNotFoundError(f"No GitLab token found (checked env vars: {checked})")
        return None
