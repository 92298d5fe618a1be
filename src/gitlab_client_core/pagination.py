"""Pagination over GitLab collection endpoints.

GitLab paginates with ``page``/``per_page`` query parameters and describes
the position in response headers::

    Link: <https://gitlab.example.com/api/v4/projects?page=2&per_page=10>; rel="next", ...
    X-Page: 1
    X-Per-Page: 10
    X-Next-Page: 2
    X-Prev-Page:
    X-Total: 25
    X-Total-Pages: 3

Totals are omitted for very large collections, in which case only the
``Link: rel="next"`` header tells whether more pages exist.

``Pager`` is a restartable cursor with explicit states::

    NEW --next()--> MID --next()--> ... --next()--> END
     ^                                               |
     +------------------ rewind() -------------------+

``ItemStream`` drains a pager element by element, once.
"""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import httpx

from gitlab_client_core.config import validate_per_page
from gitlab_client_core.decoder import decode_response
from gitlab_client_core.errors.exceptions import PagerExhaustedError
from gitlab_client_core.request import RequestSpec

if TYPE_CHECKING:
    import asyncio

    from gitlab_client_core.client import GitLabClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PagerState(Enum):
    NEW = "new"
    MID = "mid"
    END = "end"


def _header_int(headers: httpx.Headers, name: str) -> int | None:
    value = headers.get(name, "").strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class PageInfo:
    """Pagination headers of one response."""

    page: int | None = None
    per_page: int | None = None
    next_page: int | None = None
    prev_page: int | None = None
    total_items: int | None = None
    total_pages: int | None = None
    links: dict[str, str] | None = None

    @classmethod
    def from_response(cls, response: httpx.Response) -> "PageInfo":
        headers = response.headers
        links = {rel: link["url"] for rel, link in response.links.items() if "url" in link}
        return cls(
            page=_header_int(headers, "X-Page"),
            per_page=_header_int(headers, "X-Per-Page"),
            next_page=_header_int(headers, "X-Next-Page"),
            prev_page=_header_int(headers, "X-Prev-Page"),
            total_items=_header_int(headers, "X-Total"),
            total_pages=_header_int(headers, "X-Total-Pages"),
            links=links or None,
        )

    def link(self, rel: str) -> str | None:
        return (self.links or {}).get(rel)

    def has_next(self, current_page: int) -> bool:
        if self.link("next"):
            return True
        if self.total_pages is not None:
            return current_page < self.total_pages
        return False


class Pager(Generic[T]):
    """Restartable cursor over a paginated collection.

    Not safe for concurrent advancement: two callers iterating the same
    collection need two pagers.

    Args:
        client: Client used to send each page request.
        spec: GET request for the collection, without paging parameters.
        model: Type of each item.
        per_page: Items per page, 1 to 100.
        cancel: Optional cancellation signal applied to every page fetch.

    Raises:
        ConfigError: If ``per_page`` is outside 1 to 100.
    """

    def __init__(
        self,
        client: "GitLabClient",
        spec: RequestSpec,
        model: Any = None,
        per_page: int = 20,
        cancel: "asyncio.Event | None" = None,
    ):
        self._client = client
        self._spec = spec
        self._model = model
        self._per_page = validate_per_page(per_page)
        self._cancel = cancel
        self.rewind()

    @property
    def spec(self) -> RequestSpec:
        return self._spec

    @property
    def state(self) -> PagerState:
        return self._state

    @property
    def per_page(self) -> int:
        return self._per_page

    @property
    def current_page(self) -> int:
        """Number of the last page fetched; 0 before the first fetch."""
        return self._current_page

    @property
    def total_items(self) -> int | None:
        return self._info.total_items if self._info else None

    @property
    def total_pages(self) -> int | None:
        return self._info.total_pages if self._info else None

    @property
    def page_info(self) -> PageInfo | None:
        return self._info

    def rewind(self) -> None:
        """Return to NEW; the next ``next()`` fetches the first page again."""
        self._state = PagerState.NEW
        self._current_page = 0
        self._info: PageInfo | None = None
        self._has_next = True

    def has_next(self) -> bool:
        """Whether another page is available, judged from the last response."""
        if self._state is PagerState.NEW:
            return True
        return self._has_next

    async def first(self) -> list[T]:
        """Rewind and fetch the first page."""
        self.rewind()
        return await self.next()

    async def next(self) -> list[T]:
        """Fetch the next page.

        Raises:
            PagerExhaustedError: If the pager is at END.
        """
        if self._state is PagerState.END:
            raise PagerExhaustedError(f"No more pages for {self._spec.path} (page {self._current_page})")

        if self._state is PagerState.NEW:
            return await self._fetch(1)

        next_url = self._info.link("next") if self._info else None
        return await self._fetch(self._current_page + 1, next_url)

    async def page(self, number: int) -> list[T]:
        """Fetch page ``number`` (1-indexed) directly.

        The cursor is left where it was: ``state``, ``current_page`` and
        ``has_next()`` still describe the last ``next()``.
        """
        if number < 1:
            raise ValueError(f"Page numbers start at 1, got {number}")
        items, _ = await self._request_page(number)
        return items

    async def all(self, max_items: int | None = None) -> list[T]:
        """Fetch every page from the first and concatenate the items.

        Args:
            max_items: Stop once this many items have been collected and
                return exactly that many. ``None`` reads the whole collection.
        """
        if max_items is not None:
            if max_items < 0:
                raise ValueError(f"max_items must not be negative, got {max_items}")
            if max_items == 0:
                return []
        self.rewind()
        items: list[T] = []
        while self._state is not PagerState.END:
            items.extend(await self.next())
            if max_items is not None and len(items) >= max_items:
                logger.debug(f"Stopped paging {self._spec.path} at {max_items} items")
                return items[:max_items]
        return items

    def stream(self) -> "ItemStream[T]":
        """One-shot element iterator over a fresh copy of this pager."""
        return ItemStream(Pager(self._client, self._spec, self._model, self._per_page, self._cancel))

    async def _fetch(self, number: int, url: str | None = None) -> list[T]:
        items, info = await self._request_page(number, url)
        self._info = info
        self._current_page = info.page or number
        self._has_next = info.has_next(self._current_page)
        self._state = PagerState.MID if self._has_next else PagerState.END

        logger.debug(
            f"Fetched page {self._current_page}/{info.total_pages or '?'} of {self._spec.path} "
            f"({len(items)} items)"
        )
        return items

    async def _request_page(self, number: int, url: str | None = None) -> tuple[list[T], PageInfo]:
        spec = self._spec.with_query(page=number, per_page=self._per_page)
        if url is not None and not self._client.is_same_origin(url):
            logger.warning(f"Ignoring next link to a different origin: {httpx.URL(url).host}")
            url = None

        response = await self._client.send(spec, url=url, cancel=self._cancel)
        items = decode_response(response, spec, list[self._model] if self._model else list, self._client.secrets)
        return items.unwrap(), PageInfo.from_response(response)

    def __repr__(self) -> str:
        return (
            f"Pager(path={self._spec.path!r}, state={self._state.value}, page={self._current_page}, "
            f"per_page={self._per_page}, total_items={self.total_items})"
        )


class ItemStream(Generic[T]):
    """Element-by-element drain of a pager.

    Pages are fetched on demand. A stream is finite and cannot be restarted:
    once it has been exhausted, iterating it again yields nothing.
    """

    def __init__(self, pager: Pager[T]):
        self._pager = pager
        self._buffer: list[T] = []
        self._exhausted = False

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        while not self._buffer:
            if self._exhausted or not self._pager.has_next():
                self._exhausted = True
                raise StopAsyncIteration
            self._buffer = list(await self._pager.next())
        return self._buffer.pop(0)

    async def to_list(self) -> list[T]:
        return [item async for item in self]
