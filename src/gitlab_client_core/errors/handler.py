"""Error handling utilities for HTTP responses."""

from collections.abc import Iterable
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

import httpx

from gitlab_client_core.errors.exceptions import (
    APIError,
    BadRequestError,
    ClientError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ServerError,
    UnauthorizedError,
    ValidationError,
)
from gitlab_client_core.errors.models import ErrorDetail
from gitlab_client_core.errors.redaction import redact

EXCEPTION_MAP: dict[int, type[APIError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}


def exception_class_for(status_code: int) -> type[APIError]:
    """Map an HTTP status code onto the exception class reporting it."""
    if status_code in EXCEPTION_MAP:
        return EXCEPTION_MAP[status_code]
    if 400 <= status_code < 500:
        return ClientError
    if 500 <= status_code < 600:
        return ServerError
    return APIError


def error_for_response(response: httpx.Response, secrets: Iterable[str] = ()) -> APIError:
    """Build the exception describing a failed response.

    The response content must already have been read. Every string that ends
    up on the exception passes through :func:`redact` first.

    Args:
        response: HTTP response object
        secrets: Values that must never appear in the resulting exception

    Returns:
        APIError subclass based on status code
    """
    secrets = list(secrets)
    detail = ErrorDetail.from_response(response)
    status_code = response.status_code
    exc_class = exception_class_for(status_code)

    message = redact(detail.message, secrets) or response.reason_phrase
    field_errors = {
        name: [redact(reason, secrets) for reason in reasons] for name, reasons in detail.field_errors.items()
    }

    kwargs = {
        "status_code": status_code,
        "reason": response.reason_phrase,
        "field_errors": field_errors,
        "body_excerpt": redact(detail.body_excerpt, secrets),
    }
    try:
        kwargs["method"] = response.request.method
        kwargs["url"] = redact(str(response.request.url), secrets)
    except RuntimeError:
        # Response built without a request (tests, hand-made responses)
        pass

    full_message = f"HTTP {status_code} {response.reason_phrase}: {message}"

    if exc_class is RateLimitError:
        return RateLimitError(
            full_message,
            retry_after=parse_retry_after(response),
            reset_at=_parse_int(response.headers.get("RateLimit-Reset")),
            **kwargs,
        )

    return exc_class(full_message, **kwargs)


def raise_for_status(response: httpx.Response, secrets: Iterable[str] = ()) -> None:
    """Raise appropriate exception for HTTP error responses.

    Args:
        response: HTTP response object
        secrets: Values to redact from the raised exception

    Raises:
        APIError subclass based on status code
    """
    if response.is_success:
        return
    raise error_for_response(response, secrets)


def parse_retry_after(response: httpx.Response) -> float | None:
    """Parse a Retry-After header in either delay-seconds or HTTP-date form.

    Returns:
        Delay in seconds, or None if header is missing, invalid or in the past
    """
    retry_after = response.headers.get("Retry-After")
    if not retry_after:
        return None

    try:
        delay = float(retry_after)
        return delay if delay >= 0 else None
    except ValueError:
        pass

    try:
        retry_date = parsedate_to_datetime(retry_after)
    except (ValueError, TypeError):
        return None

    delay = (retry_date - datetime.now(UTC)).total_seconds()
    # Clock skew
    return delay if delay >= 0 else None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
