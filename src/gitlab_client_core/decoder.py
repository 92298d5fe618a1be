"""Interpret responses as typed results.

``decode_response`` produces one of three mutually exclusive outcomes:

- ``Value``: the status was expected and the body decoded into the model
- ``Absent``: a 404 on a spec marked optional; carries the ``NotFoundError``
- ``Failure``: anything else; carries the exception describing it

Callers that did not ask for an optional read use ``unwrap()``, which
returns the value or raises the carried exception.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx

from gitlab_client_core.errors.exceptions import DecodeError, GitLabError, NotFoundError
from gitlab_client_core.errors.handler import error_for_response
from gitlab_client_core.models.schema import from_json
from gitlab_client_core.request import RequestSpec

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Value(Generic[T]):
    value: T

    @property
    def present(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def value_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Absent:
    """Optional read that found nothing; ``error`` explains why."""

    error: NotFoundError

    @property
    def present(self) -> bool:
        return False

    def unwrap(self):
        raise self.error

    def value_or(self, default: Any) -> Any:
        return default


@dataclass(frozen=True)
class Failure:
    error: GitLabError

    @property
    def present(self) -> bool:
        return False

    def unwrap(self):
        raise self.error

    def value_or(self, default: Any) -> Any:
        raise self.error


DecodedResult = Value[T] | Absent | Failure


def parse_body(content: bytes) -> Any:
    """Parse a JSON body; an empty body is ``None``.

    Raises:
        DecodeError: If the body is not valid JSON.
    """
    if not content or not content.strip():
        return None
    try:
        return json.loads(content)
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodeError(f"Response body is not valid JSON: {e}") from None


def decode_response(
    response: httpx.Response,
    spec: RequestSpec,
    model: Any = None,
    secrets: Iterable[str] = (),
) -> DecodedResult:
    """Decode a response whose content has already been read.

    An expected 204 decodes to ``None`` whatever ``model`` is; any other
    expected status must carry a body matching ``model``.

    Args:
        response: The final response for ``spec``.
        spec: Supplies the expected statuses and the optional flag.
        model: Target type for the body (see ``models.schema.from_json``);
            ``None`` keeps the parsed JSON as is.
        secrets: Redacted from any error produced.
    """
    if response.status_code not in spec.expected:
        error = error_for_response(response, secrets)
        if spec.optional and isinstance(error, NotFoundError):
            logger.debug(f"{spec.method} {spec.path} not found, returning absent")
            return Absent(error)
        return Failure(error)

    if response.status_code == 204:
        return Value(None)

    try:
        if model is None:
            return Value(parse_body(response.content))
        if not response.content.strip():
            raise DecodeError("Empty response body")
        return Value(from_json(model, response.content))
    except DecodeError as e:
        logger.debug(f"Could not decode {spec.method} {spec.path} response: {e}")
        return Failure(e)
