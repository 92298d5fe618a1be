"""Client configuration."""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from gitlab_client_core import __version__
from gitlab_client_core.auth.credentials import CredentialResolver
from gitlab_client_core.auth.exceptions import CredentialNotFoundError
from gitlab_client_core.auth.provider import Credential
from gitlab_client_core.errors.exceptions import ConfigError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v4"
MIN_PER_PAGE = 1
MAX_PER_PAGE = 100


@dataclass(frozen=True)
class RetryConfig:
    """Retry budget for idempotent requests.

    ``max_attempts`` counts retries, so one logical call sends at most
    ``max_attempts + 1`` requests. Backoff before retry ``n`` (1-indexed) is
    ``backoff * 2 ** (n - 1)`` scaled by a random factor in
    ``[1 - jitter, 1 + jitter]``.
    """

    max_attempts: int = 3
    backoff: float = 0.25
    jitter: float = 0.25

    def __post_init__(self):
        if self.max_attempts < 0:
            raise ConfigError(f"retry.max_attempts must be >= 0, got {self.max_attempts}")
        if self.backoff < 0:
            raise ConfigError(f"retry.backoff must be >= 0, got {self.backoff}")
        if not 0 <= self.jitter < 1:
            raise ConfigError(f"retry.jitter must be in [0, 1), got {self.jitter}")


def validate_per_page(per_page: int) -> int:
    if isinstance(per_page, bool) or not isinstance(per_page, int):
        raise ConfigError(f"per_page must be an integer, got {per_page!r}")
    if not MIN_PER_PAGE <= per_page <= MAX_PER_PAGE:
        raise ConfigError(f"per_page must be between {MIN_PER_PAGE} and {MAX_PER_PAGE}, got {per_page}")
    return per_page


@dataclass(frozen=True)
class ClientConfig:
    """Process-wide client setup.

    Attributes:
        base_url: GitLab server, e.g. ``https://gitlab.example.com``. A
            trailing ``/api/v4`` is accepted and not duplicated.
        credential: How requests are authenticated.
        default_per_page: Page size used when a caller does not pick one.
        connect_timeout: Seconds allowed for TCP/TLS setup, per attempt.
        read_timeout: Seconds allowed for each socket read, per attempt.
        tls_verify: Verify server certificates.
        proxy: Optional proxy URL.
        user_agent: Sent on every request.
        compression: Ask for gzip-encoded responses.
        max_redirects: Redirect hops followed per request; 0 disables.
        retry: Retry budget and backoff.
    """

    base_url: str
    credential: Credential
    default_per_page: int = 20
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    tls_verify: bool = True
    proxy: str | None = None
    user_agent: str = f"gitlab-client-core/{__version__}"
    compression: bool = True
    max_redirects: int = 5
    retry: RetryConfig = field(default_factory=RetryConfig)

    def __post_init__(self):
        url = _parse_url(self.base_url, "base_url")
        path = url.path.rstrip("/")
        if path.endswith(API_PREFIX):
            path = path[: -len(API_PREFIX)]
        object.__setattr__(self, "base_url", f"{url.scheme}://{url.netloc.decode('ascii')}{path}")

        if not isinstance(self.credential, Credential):
            raise ConfigError("credential is required")
        validate_per_page(self.default_per_page)
        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            raise ConfigError("timeouts must be positive")
        if self.max_redirects < 0:
            raise ConfigError(f"max_redirects must be >= 0, got {self.max_redirects}")
        if self.proxy is not None:
            _parse_url(self.proxy, "proxy")

    @property
    def api_url(self) -> str:
        """``{scheme}://{host}[:port][/prefix]/api/v4``"""
        return f"{self.base_url}{API_PREFIX}"

    @property
    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.read_timeout,
            pool=self.connect_timeout,
        )

    @classmethod
    def from_env(cls, resolver: CredentialResolver | None = None, **overrides: Any) -> "ClientConfig":
        """Build a config from ``GITLAB_URL`` and the token environment variables.

        Keyword arguments override anything resolved from the environment.

        Raises:
            CredentialNotFoundError: If the URL or the token cannot be found.
        """
        resolver = resolver or CredentialResolver()

        base_url = overrides.pop("base_url", None)
        base_url = resolver.resolve(value=base_url, env_var_name="GITLAB_URL", required=True, mask_in_logs=False)

        credential = overrides.pop("credential", None)
        if credential is None:
            credential = resolver.resolve_credential()
        if credential is None:
            raise CredentialNotFoundError("No GitLab token found in the environment")

        logger.debug(f"Configured GitLab client for {base_url} with {credential.kind.value} credential")
        return cls(base_url=base_url, credential=credential, **overrides)


def _parse_url(value: str, name: str) -> httpx.URL:
    try:
        url = httpx.URL(value)
    except (httpx.InvalidURL, TypeError) as e:
        raise ConfigError(f"{name} is not a valid URL: {value!r}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigError(f"{name} must be an absolute http(s) URL, got {value!r}")
    return url
