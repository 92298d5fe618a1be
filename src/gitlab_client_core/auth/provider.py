"""Turn a GitLab credential into request headers.

| Kind | Header |
|------|--------|
| private-token | `PRIVATE-TOKEN: <secret>` |
| personal-access-token | `Authorization: Bearer <secret>` |
| oauth2-bearer | `Authorization: Bearer <secret>` |
| job-token | `JOB-TOKEN: <secret>` |

Short-lived tokens can carry an async ``refresh`` callback returning a new
secret. ``AuthProvider.refresh`` runs it under a lock and bumps a version
counter, so callers that all saw the same 401 trigger a single refresh.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

import httpx

from gitlab_client_core.auth.exceptions import CredentialError
from gitlab_client_core.errors.exceptions import AuthenticationError
from gitlab_client_core.errors.redaction import MASK, redact

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[], Awaitable[str]]

# Every header any credential kind may set; cleared before stamping.
AUTH_HEADERS: frozenset[str] = frozenset(["PRIVATE-TOKEN", "Authorization", "JOB-TOKEN"])


class CredentialKind(str, Enum):
    PRIVATE_TOKEN = "private-token"
    PERSONAL_ACCESS_TOKEN = "personal-access-token"
    OAUTH2_BEARER = "oauth2-bearer"
    JOB_TOKEN = "job-token"


@dataclass(frozen=True)
class Credential:
    """How to prove identity to the server."""

    kind: CredentialKind
    secret: str = field(repr=False)
    refresh: RefreshCallback | None = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if not isinstance(self.kind, CredentialKind):
            try:
                object.__setattr__(self, "kind", CredentialKind(self.kind))
            except ValueError:
                raise CredentialError(f"Unknown credential kind: {self.kind!r}") from None
        if not self.secret:
            raise CredentialError(f"Empty secret for {self.kind.value} credential")

    def headers(self) -> dict[str, str]:
        if self.kind is CredentialKind.PRIVATE_TOKEN:
            return {"PRIVATE-TOKEN": self.secret}
        if self.kind is CredentialKind.JOB_TOKEN:
            return {"JOB-TOKEN": self.secret}
        return {"Authorization": f"Bearer {self.secret}"}


class AuthProvider:
    """Stamps credentials onto requests and owns token refresh."""

    def __init__(self, credential: Credential):
        self._credential = credential
        self._version = 0
        self._lock = asyncio.Lock()
        self._failure: AuthenticationError | None = None
        self._secrets: set[str] = {credential.secret}

    @property
    def credential(self) -> Credential:
        return self._credential

    @property
    def version(self) -> int:
        """Incremented every time the secret changes."""
        return self._version

    @property
    def can_refresh(self) -> bool:
        return self._credential.refresh is not None and self._failure is None

    @property
    def secrets(self) -> frozenset[str]:
        """Every secret this provider has held, current one included."""
        return frozenset(self._secrets)

    def headers(self) -> dict[str, str]:
        """Headers for the current credential.

        Raises:
            AuthenticationError: If the last refresh failed and no new
                credential has been installed since.
        """
        if self._failure is not None:
            raise self._failure
        return self._credential.headers()

    def stamp(self, request: httpx.Request) -> httpx.Request:
        """Replace any auth header on ``request`` with the current credential."""
        headers = self.headers()
        self.unstamp(request)
        request.headers.update(headers)
        return request

    @staticmethod
    def unstamp(request: httpx.Request) -> httpx.Request:
        for name in AUTH_HEADERS:
            request.headers.pop(name, None)
        return request

    def install(self, credential: Credential) -> None:
        """Swap in a new credential and clear any refresh failure."""
        self._credential = credential
        self._secrets.add(credential.secret)
        self._failure = None
        self._version += 1
        logger.debug(f"Installed {credential.kind.value} credential (version {self._version})")

    async def refresh(self, seen_version: int) -> None:
        """Refresh the secret unless someone already did since ``seen_version``.

        Raises:
            AuthenticationError: If there is no refresh callback, or it fails.
        """
        async with self._lock:
            if self._failure is not None:
                raise self._failure
            if self._version != seen_version:
                logger.debug("Credential already refreshed by a concurrent caller")
                return

            callback = self._credential.refresh
            if callback is None:
                raise AuthenticationError("Credential cannot be refreshed")

            logger.debug(f"Refreshing {self._credential.kind.value} credential")
            try:
                secret = await callback()
            except Exception as e:
                self._fail(f"Credential refresh failed: {self.redact(str(e))}")
                raise self._failure from None

            if not secret:
                self._fail("Credential refresh returned an empty secret")
                raise self._failure

            self._secrets.add(secret)
            self._credential = Credential(self._credential.kind, secret, callback)
            self._version += 1

    def _fail(self, message: str) -> None:
        logger.warning(message)
        self._failure = AuthenticationError(message)

    def redact(self, text: str) -> str:
        return redact(text, self._secrets)

    def __repr__(self) -> str:
        return f"AuthProvider(kind={self._credential.kind.value}, secret={MASK}, version={self._version})"
