"""Typed JSON decoding and encoding for GitLab models.

Decoding validates raw JSON text with a pydantic ``TypeAdapter``. Models
ignore unknown keys and are strict toward known keys holding the wrong type:
the first error raises ``DecodeError`` with the JSON pointer of the
offending value.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

import pydantic
from pydantic import BaseModel, TypeAdapter

from gitlab_client_core.errors.exceptions import DecodeError

_ANY_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


def pointer_join(pointer: str, token: str | int) -> str:
    """Append one reference token to a JSON pointer (RFC 6901 escaping)."""
    token = str(token).replace("~", "~0").replace("/", "~1")
    return f"{pointer}/{token}"


def pointer_from_loc(loc: Iterable[str | int]) -> str:
    """JSON pointer for a pydantic error location."""
    pointer = ""
    for token in loc:
        pointer = pointer_join(pointer, token)
    return pointer


@lru_cache(maxsize=None)
def adapter_for(tp: Any) -> TypeAdapter:
    return TypeAdapter(tp)


def from_json(tp: Any, content: str | bytes) -> Any:
    """Validate JSON text ``content`` into an instance of ``tp``.

    ``tp`` may be a model, an enum, a builtin scalar, ``datetime``, ``date``,
    ``list[...]``, ``dict[str, ...]``, ``X | None`` or ``Any``.

    Raises:
        DecodeError: If ``content`` is not JSON or does not match ``tp``.
    """
    try:
        return adapter_for(tp).validate_json(content)
    except pydantic.ValidationError as e:
        error = e.errors(include_url=False, include_input=False)[0]
        if error["type"] == "json_invalid":
            raise DecodeError(f"Response body is not valid JSON: {error['msg']}") from None
        raise DecodeError(error["msg"], pointer_from_loc(error["loc"])) from None


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with a ``Z`` suffix; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def to_json(value: Any) -> Any:
    """Convert a model (or any nesting of them) into JSON-ready data.

    Model fields that are ``None`` are left out.
    """
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    return _ANY_ADAPTER.dump_python(value, mode="json", exclude_none=True)
