"""GitLab error body models.

GitLab reports failures in a handful of shapes::

    {"message": "404 Project Not Found"}
    {"message": {"name": ["has already been taken"], "path": ["is too short"]}}
    {"message": ["first problem", "second problem"]}
    {"error": "invalid_token", "error_description": "Token was revoked"}

``ErrorDetail`` tags the shape it found and normalizes it into a single
message plus per-field reasons.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

MAX_EXCERPT_BYTES = 2048


class ErrorBodyKind(Enum):
    """Which variant of error body the server sent."""

    MESSAGE = "message"  # "message" is a string
    FIELDS = "fields"  # "message" is an object of field -> reasons
    LIST = "list"  # "message" is a list of strings
    ERROR = "error"  # OAuth style "error" / "error_description"
    RAW = "raw"  # not JSON, or JSON without a recognised key


@dataclass
class ErrorDetail:
    """Normalized error payload."""

    kind: ErrorBodyKind
    message: str
    field_errors: dict[str, list[str]] = field(default_factory=dict)
    body_excerpt: str = ""

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ErrorDetail":
        """Parse the error body of a response whose content has been read."""
        return cls.from_content(response.content)

    @classmethod
    def from_content(cls, content: bytes) -> "ErrorDetail":
        excerpt = excerpt_body(content)

        try:
            data = json.loads(content) if content else None
        except (ValueError, UnicodeDecodeError):
            data = None

        if not isinstance(data, dict):
            if isinstance(data, list):
                return cls(ErrorBodyKind.LIST, _join_reasons(data), body_excerpt=excerpt)
            return cls(ErrorBodyKind.RAW, excerpt, body_excerpt=excerpt)

        if "message" in data:
            return cls._from_message(data["message"], excerpt)

        if "error" in data:
            message = str(data["error"])
            description = data.get("error_description")
            if description:
                message = f"{message}: {description}"
            return cls(ErrorBodyKind.ERROR, message, body_excerpt=excerpt)

        return cls(ErrorBodyKind.RAW, excerpt, body_excerpt=excerpt)

    @classmethod
    def _from_message(cls, value: Any, excerpt: str) -> "ErrorDetail":
        if isinstance(value, dict):
            field_errors = {str(key): _as_reasons(reasons) for key, reasons in value.items()}
            lines = [f"{name} {', '.join(reasons)}".strip() for name, reasons in field_errors.items()]
            return cls(ErrorBodyKind.FIELDS, "; ".join(lines), field_errors, excerpt)

        if isinstance(value, list):
            return cls(ErrorBodyKind.LIST, _join_reasons(value), body_excerpt=excerpt)

        return cls(ErrorBodyKind.MESSAGE, str(value), body_excerpt=excerpt)


def excerpt_body(content: bytes, limit: int = MAX_EXCERPT_BYTES) -> str:
    """Decode at most ``limit`` bytes of a body for inclusion in an error."""
    return content[:limit].decode("utf-8", errors="replace")


def _as_reasons(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value]
    if isinstance(value, dict):
        return [f"{key} {reason}" for key, reasons in value.items() for reason in _as_reasons(reasons)]
    return [str(value)]


def _join_reasons(values: list) -> str:
    return "; ".join(str(value) for value in values)
