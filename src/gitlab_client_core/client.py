"""GitLab API client: the request pipeline shared by every resource.

A call travels::

    RequestSpec -> build_request -> AuthProvider.stamp -> transport stack
                -> (redirects, 401 refresh) -> decode_response

Every public coroutine accepts ``cancel``, an ``asyncio.Event``. Setting it
aborts the in-flight request and raises ``RequestCancelled``. Cancelling the
calling task works as usual too.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

import httpx

from gitlab_client_core.auth.provider import AuthProvider
from gitlab_client_core.config import ClientConfig
from gitlab_client_core.decoder import DecodedResult, decode_response
from gitlab_client_core.errors.exceptions import DecodeError, RequestCancelled, TransportError
from gitlab_client_core.pagination import ItemStream, Pager
from gitlab_client_core.request import IDEMPOTENT_METHODS, RequestSpec, build_request
from gitlab_client_core.transport.factory import create_transport_stack

if TYPE_CHECKING:
    from gitlab_client_core.resources.groups import GroupsAPI
    from gitlab_client_core.resources.projects import ProjectsAPI

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Warn when fewer requests than this remain in the rate-limit window
RATE_LIMIT_WARNING_THRESHOLD = 10


@dataclass(frozen=True)
class RateLimitInfo:
    """Rate-limit headers of the most recent response."""

    limit: int | None = None
    remaining: int | None = None
    reset_at: int | None = None

    @classmethod
    def from_response(cls, response: httpx.Response) -> "RateLimitInfo | None":
        headers = response.headers
        if "RateLimit-Remaining" not in headers:
            return None

        def as_int(name: str) -> int | None:
            try:
                return int(headers[name])
            except (KeyError, ValueError):
                return None

        return cls(as_int("RateLimit-Limit"), as_int("RateLimit-Remaining"), as_int("RateLimit-Reset"))


class GitLabClient:
    """Async client for the GitLab REST API.

    Args:
        config: Client configuration.
        transport: Innermost transport, wrapped by the retry layer. Defaults
            to a pooled ``httpx.AsyncHTTPTransport``.

    Example:
        ```python
        async with GitLabClient(config) as gitlab:
            project = await gitlab.projects.get_project(42)
        ```
    """

    def __init__(self, config: ClientConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self.auth = AuthProvider(config.credential)
        self.rate_limit: RateLimitInfo | None = None
        self._origin = httpx.URL(config.api_url)
        self._http = httpx.AsyncClient(
            transport=create_transport_stack(config, transport),
            timeout=config.timeout,
            follow_redirects=False,
        )
        self._projects: ProjectsAPI | None = None
        self._groups: GroupsAPI | None = None

    async def __aenter__(self) -> "GitLabClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def projects(self) -> "ProjectsAPI":
        if self._projects is None:
            from gitlab_client_core.resources.projects import ProjectsAPI

            self._projects = ProjectsAPI(self)
        return self._projects

    @property
    def groups(self) -> "GroupsAPI":
        if self._groups is None:
            from gitlab_client_core.resources.groups import GroupsAPI

            self._groups = GroupsAPI(self)
        return self._groups

    @property
    def secrets(self) -> frozenset[str]:
        return self.auth.secrets

    def is_same_origin(self, url: str | httpx.URL) -> bool:
        url = httpx.URL(url)
        return (url.scheme, url.host, url.port) == (self._origin.scheme, self._origin.host, self._origin.port)

    async def send(
        self,
        spec: RequestSpec,
        *,
        url: str | httpx.URL | None = None,
        cancel: asyncio.Event | None = None,
    ) -> httpx.Response:
        """Send ``spec`` and return the final response with its body read.

        Follows redirects and retries once after refreshing the credential
        when the server answers 401 and the credential can be refreshed.

        Raises:
            TransportError: Connection, TLS or read failure, or too many redirects.
            AuthenticationError: The credential refresh failed.
            RequestCancelled: ``cancel`` was set.
        """
        request = build_request(spec, self.config, url=url)

        version = self.auth.version
        response = await self._cancellable(self._send_following_redirects(request), cancel)
        if response.status_code == 401 and self.auth.can_refresh:
            await response.aclose()
            logger.debug(f"{request.method} {request.url} returned 401, refreshing credential")
            await self._cancellable(self.auth.refresh(version), cancel)
            response = await self._cancellable(self._send_following_redirects(request), cancel)

        try:
            await self._cancellable(response.aread(), cancel)
        except httpx.DecodingError as e:
            raise DecodeError(f"Could not decode response content: {self._safe(e)}") from None
        except httpx.TransportError as e:
            message = f"{request.method} {request.url} failed reading the response: {self._safe(e)}"
            raise TransportError(message) from None
        finally:
            await response.aclose()

        self._record_rate_limit(response)
        logger.debug(f"{request.method} {request.url} -> {response.status_code}")
        return response

    async def execute(
        self, spec: RequestSpec, model: Any = None, *, cancel: asyncio.Event | None = None
    ) -> DecodedResult:
        """Send ``spec`` and decode the response into a three-way result."""
        response = await self.send(spec, cancel=cancel)
        return decode_response(response, spec, model, self.secrets)

    async def request(self, spec: RequestSpec, model: Any = None, *, cancel: asyncio.Event | None = None) -> Any:
        """Send ``spec`` and return the decoded value.

        Raises:
            APIError: For any unexpected status (including 404).
            DecodeError: If the body does not match ``model``.
        """
        result = await self.execute(spec, model, cancel=cancel)
        return result.unwrap()

    def paginate(
        self,
        spec: RequestSpec,
        model: Any = None,
        *,
        per_page: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Pager:
        if per_page is None:
            per_page = self.config.default_per_page
        return Pager(self, spec, model, per_page, cancel)

    def stream(
        self,
        spec: RequestSpec,
        model: Any = None,
        *,
        per_page: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ItemStream:
        return ItemStream(self.paginate(spec, model, per_page=per_page, cancel=cancel))

    async def _send_following_redirects(self, request: httpx.Request) -> httpx.Response:
        origin_host = request.url.host
        max_redirects = self.config.max_redirects
        redirects = 0

        while True:
            self._stamp(request, origin_host)
            response = await self._send_once(request)

            if not response.is_redirect or max_redirects == 0:
                return response

            if redirects >= max_redirects:
                await response.aclose()
                raise TransportError(f"{request.method} {request.url} exceeded {max_redirects} redirects")

            redirects += 1
            next_request = self._redirect_request(request, response)
            await response.aclose()
            logger.debug(f"Redirect {redirects}/{max_redirects}: {request.url} -> {next_request.url}")
            request = next_request

    async def _send_once(self, request: httpx.Request) -> httpx.Response:
        try:
            return await self._http.send(request, stream=True)
        except httpx.TransportError as e:
            message = f"{request.method} {request.url} failed: {self._safe(e)}"
            raise TransportError(message, retryable=request.method in IDEMPOTENT_METHODS) from None

    def _stamp(self, request: httpx.Request, origin_host: str) -> None:
        if request.url.host == origin_host:
            self.auth.stamp(request)
        else:
            self.auth.unstamp(request)

    @staticmethod
    def _redirect_request(request: httpx.Request, response: httpx.Response) -> httpx.Request:
        location = response.headers.get("Location")
        if not location:
            raise TransportError(f"{request.method} {request.url} redirected without a Location header")
        url = request.url.join(location)

        method = request.method
        if response.status_code == 303 and method != "HEAD":
            method = "GET"
        elif response.status_code in (301, 302) and method == "POST":
            method = "GET"

        headers = httpx.Headers(request.headers)
        # Recomputed from the new URL
        headers.pop("Host", None)
        content = None
        if method == request.method:
            content = request.content
        else:
            headers.pop("Content-Type", None)
            headers.pop("Content-Length", None)

        return httpx.Request(method, url, headers=headers, content=content, extensions=request.extensions)

    async def _cancellable(self, awaitable: Awaitable[T], cancel: asyncio.Event | None) -> T:
        if cancel is None:
            return await awaitable
        if cancel.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise RequestCancelled("Request cancelled")

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

        if task.done() and not task.cancelled():
            return task.result()

        # Let the aborted request unwind and release its connection
        with contextlib.suppress(asyncio.CancelledError):
            await task
        raise RequestCancelled("Request cancelled")

    def _record_rate_limit(self, response: httpx.Response) -> None:
        info = RateLimitInfo.from_response(response)
        if info is None:
            return
        self.rate_limit = info
        if info.remaining is not None and info.remaining < RATE_LIMIT_WARNING_THRESHOLD:
            logger.warning(f"GitLab rate limit nearly exhausted: {info.remaining} requests left until {info.reset_at}")

    def _safe(self, error: Exception) -> str:
        return self.auth.redact(str(error) or type(error).__name__)
