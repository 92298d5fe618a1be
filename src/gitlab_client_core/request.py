"""Describe GitLab API calls and turn them into httpx requests.

A ``RequestSpec`` is the logical description of one call: method, a path
template with ``{named}`` holes, the values for those holes, query
parameters and an optional body. ``build_request`` renders it against a
``ClientConfig`` into a wire-ready ``httpx.Request`` without credentials;
those are stamped later by the auth provider.

Encoding rules, shared by query strings and form bodies:

| Value | Wire form |
|-------|-----------|
| `None` | omitted |
| `True` / `False` | `true` / `false` |
| `IntEnum` | its integer value |
| other `Enum` | its (lowercase) string value |
| `datetime` | ISO-8601 in UTC with `Z` |
| `list` / `tuple` | comma-joined, or one pair per item for repeated keys |
| anything else | `str(value)` |

Query pairs are sorted by key then value so captured requests are
reproducible.
"""

import dataclasses
import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urlencode

import httpx

from gitlab_client_core.errors.exceptions import RequestBuildError
from gitlab_client_core.models.schema import format_timestamp, to_json

if TYPE_CHECKING:
    from gitlab_client_core.config import ClientConfig

METHODS: frozenset[str] = frozenset(["GET", "POST", "PUT", "DELETE"])
IDEMPOTENT_METHODS: frozenset[str] = frozenset(["GET", "HEAD", "PUT", "DELETE", "OPTIONS", "TRACE"])

_HOLE = re.compile(r"\{(\w+)\}")


class BodyKind(Enum):
    NONE = "none"
    FORM = "form"
    JSON = "json"


@dataclass(frozen=True)
class RequestSpec:
    """Logical description of one API call.

    Attributes:
        method: GET, POST, PUT or DELETE.
        path: Path below ``/api/v4`` with ``{name}`` holes, e.g.
            ``/projects/{id}/variables/{key}``.
        path_args: Exactly one value per hole.
        query: Query parameters; ``None`` values are dropped.
        body: Mapping (or model) sent as the request body.
        body_kind: How ``body`` is encoded.
        expected: Statuses that count as success.
        optional: Treat 404 as an absent result instead of a failure.
        repeated: Query keys whose list values are sent as repeated keys
            rather than comma-joined.
    """

    method: str
    path: str
    path_args: Mapping[str, Any] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Any = None
    body_kind: BodyKind = BodyKind.NONE
    expected: frozenset[int] = frozenset([200])
    optional: bool = False
    repeated: frozenset[str] = frozenset()

    def __post_init__(self):
        method = self.method.upper()
        if method not in METHODS:
            raise RequestBuildError(f"Unsupported method: {self.method}")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "expected", frozenset(self.expected))
        object.__setattr__(self, "repeated", frozenset(self.repeated))
        if self.body is not None and self.body_kind is BodyKind.NONE:
            object.__setattr__(self, "body_kind", BodyKind.JSON)

    @property
    def idempotent(self) -> bool:
        return self.method in IDEMPOTENT_METHODS

    def with_query(self, **params: Any) -> "RequestSpec":
        """Copy with ``params`` merged into the query."""
        return dataclasses.replace(self, query={**self.query, **params})

    def as_optional(self) -> "RequestSpec":
        return dataclasses.replace(self, optional=True)


def render_path(template: str, path_args: Mapping[str, Any]) -> str:
    """Fill every ``{hole}`` with its percent-encoded argument.

    ``/`` inside an argument is encoded too, so ``group/project`` becomes
    ``group%2Fproject``.

    Raises:
        RequestBuildError: If holes and arguments do not match exactly.
    """
    holes = _HOLE.findall(template)
    missing = [hole for hole in holes if path_args.get(hole) is None]
    extra = sorted(set(path_args) - set(holes))
    if missing or extra:
        problems = []
        if missing:
            problems.append(f"missing {', '.join(missing)}")
        if extra:
            problems.append(f"unexpected {', '.join(extra)}")
        raise RequestBuildError(f"Path arguments do not match {template!r}: {'; '.join(problems)}")

    return _HOLE.sub(lambda m: quote(encode_value(path_args[m.group(1)]), safe=""), template)


def encode_value(value: Any) -> str:
    """Encode one scalar the way GitLab expects it on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, IntEnum):
        return str(int(value))
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def encode_params(params: Mapping[str, Any], repeated: frozenset[str] = frozenset()) -> list[tuple[str, str]]:
    """Flatten a parameter bag into sorted ``(key, value)`` pairs."""
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            items = [encode_value(item) for item in value if item is not None]
            if key in repeated:
                pairs.extend((key, item) for item in items)
            else:
                pairs.append((key, ",".join(items)))
        else:
            pairs.append((key, encode_value(value)))
    return sorted(pairs)


def default_headers(config: "ClientConfig") -> dict[str, str]:
    return {
        "Accept": "application/json",
        "User-Agent": config.user_agent,
        "Accept-Encoding": "gzip" if config.compression else "identity",
    }


def _encode_body(spec: RequestSpec) -> tuple[bytes | None, str | None]:
    if spec.body_kind is BodyKind.NONE or spec.body is None:
        return None, None

    body = to_json(spec.body)
    if spec.body_kind is BodyKind.JSON:
        return json.dumps(body, ensure_ascii=False).encode("utf-8"), "application/json"

    if not isinstance(body, Mapping):
        raise RequestBuildError(f"Form body must be a mapping, got {type(spec.body).__name__}")
    return urlencode(encode_params(body, spec.repeated)).encode("ascii"), "application/x-www-form-urlencoded"


def build_request(spec: RequestSpec, config: "ClientConfig", url: str | httpx.URL | None = None) -> httpx.Request:
    """Render ``spec`` into an unauthenticated ``httpx.Request``.

    Args:
        spec: What to call.
        config: Supplies the base URL and default headers.
        url: Absolute URL to use instead of rendering path and query, as
            when following a pagination ``Link`` header.
    """
    if url is None:
        path = render_path(spec.path, spec.path_args)
        query = urlencode(encode_params(spec.query, spec.repeated), quote_via=quote)
        target = f"{config.api_url}{path}"
        if query:
            target = f"{target}?{query}"
        url = httpx.URL(target)

    content, content_type = _encode_body(spec)
    headers = default_headers(config)
    if content_type is not None:
        headers["Content-Type"] = content_type

    return httpx.Request(
        spec.method, url, headers=headers, content=content, extensions={"timeout": config.timeout.as_dict()}
    )
