"""Retry transport for the GitLab API.

| Condition | Methods retried | Delay |
|-----------|-----------------|-------|
| 429 Too Many Requests | all | `Retry-After`, else `RateLimit-Reset`, else backoff |
| 503 Service Unavailable | GET, HEAD, PUT, DELETE, OPTIONS, TRACE | `Retry-After`, else backoff |
| other 5xx | GET, HEAD, PUT, DELETE, OPTIONS, TRACE | backoff |
| connect/read/write errors | GET, HEAD, PUT, DELETE, OPTIONS, TRACE | backoff |

Backoff before retry ``n`` is ``backoff_factor * 2 ** (n - 1)`` with a random
±``jitter`` share, capped at ``max_backoff``. A server-supplied
``Retry-After`` is honoured as given.

Example:
    ```python
    import httpx

    from gitlab_client_core.transport.retry import GitLabRetry

    transport = GitLabRetry(wrapped_transport=httpx.AsyncHTTPTransport(), max_retries=3)

    async with httpx.AsyncClient(transport=transport) as client:
        response = await client.get("https://gitlab.example.com/api/v4/projects")
    ```
"""

import asyncio
import logging
import random
import time

import httpx

from gitlab_client_core.errors.handler import parse_retry_after
from gitlab_client_core.request import IDEMPOTENT_METHODS

logger = logging.getLogger(__name__)


class GitLabRetry(httpx.AsyncBaseTransport):
    """Retry idempotent requests on transient failures and all requests on 429.

    Once the budget is spent the last response is returned unchanged (so the
    decoder can report it), or the last transport error is re-raised.

    Args:
        wrapped_transport: The underlying transport to wrap
        max_retries: Retries after the first attempt (default: 3, 0 disables)
        backoff_factor: Base delay in seconds (default: 0.25)
        jitter: Random share added to or taken from each backoff (default: 0.25)
        max_backoff: Cap for computed backoff, in seconds (default: 60)
    """

    IDEMPOTENT_METHODS: frozenset[str] = IDEMPOTENT_METHODS

    # Statuses whose Retry-After header is honoured
    RETRY_AFTER_STATUS_CODES: frozenset[int] = frozenset([429, 503])

    def __init__(
        self,
        *,
        wrapped_transport: httpx.AsyncBaseTransport,
        max_retries: int = 3,
        backoff_factor: float = 0.25,
        jitter: float = 0.25,
        max_backoff: float = 60.0,
    ) -> None:
        self._wrapped_transport = wrapped_transport
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.jitter = jitter
        self.max_backoff = max_backoff

    async def __aenter__(self):
        await self._wrapped_transport.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return await self._wrapped_transport.__aexit__(exc_type, exc_val, exc_tb)

    async def aclose(self) -> None:
        await self._wrapped_transport.aclose()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Send ``request``, retrying while the policy and budget allow.

        Args:
            request: The HTTP request to send

        Returns:
            HTTP response (after retries if needed)
        """
        retries = 0

        while True:
            try:
                response = await self._wrapped_transport.handle_async_request(request)
            except httpx.TransportError as e:
                if retries >= self.max_retries or request.method not in self.IDEMPOTENT_METHODS:
                    raise

                retries += 1
                delay = self._calculate_backoff_delay(retries)
                logger.warning(
                    f"Request {request.method} {request.url} failed with {type(e).__name__}, "
                    f"retrying in {delay:.2f}s (attempt {retries}/{self.max_retries})"
                )
                await asyncio.sleep(delay)
                continue

            should_retry, delay = self._should_retry_with_delay(request, response, retries)
            if not should_retry:
                return response

            await response.aclose()
            retries += 1
            logger.warning(
                f"Request {request.method} {request.url} failed with {response.status_code}, "
                f"retrying in {delay:.2f}s (attempt {retries}/{self.max_retries})"
            )
            await asyncio.sleep(delay)

    def _should_retry_with_delay(
        self, request: httpx.Request, response: httpx.Response, current_retries: int
    ) -> tuple[bool, float]:
        """Decide whether to retry and how long to wait first.

        Returns:
            Tuple of (should_retry, delay_in_seconds)
        """
        if current_retries >= self.max_retries:
            return False, 0.0

        status_code = response.status_code
        if status_code == 429:
            delay = self._server_delay(response)
            if delay is None:
                delay = self._calculate_backoff_delay(current_retries + 1)
            return True, delay

        if 500 <= status_code < 600 and request.method in self.IDEMPOTENT_METHODS:
            delay = self._server_delay(response) if status_code in self.RETRY_AFTER_STATUS_CODES else None
            if delay is None:
                delay = self._calculate_backoff_delay(current_retries + 1)
            return True, delay

        return False, 0.0

    def _server_delay(self, response: httpx.Response) -> float | None:
        """Delay the server asked for, from Retry-After or RateLimit-Reset."""
        delay = parse_retry_after(response)
        if delay is not None:
            return delay

        if response.status_code != 429:
            return None
        reset = response.headers.get("RateLimit-Reset")
        if not reset:
            return None
        try:
            delay = float(reset) - time.time()
        except ValueError:
            return None
        return min(delay, self.max_backoff) if delay > 0 else None

    def _calculate_backoff_delay(self, retry_number: int) -> float:
        """Exponential backoff with jitter, capped at ``max_backoff``.

        Args:
            retry_number: Current retry attempt (1-indexed)
        """
        delay = self.backoff_factor * (2 ** (retry_number - 1))
        if self.jitter:
            delay *= random.uniform(1 - self.jitter, 1 + self.jitter)
        return min(delay, self.max_backoff)
