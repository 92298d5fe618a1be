"""Structured exceptions for the GitLab client."""


class GitLabError(Exception):
    """Base exception for every failure raised by this library."""

    pass


class ConfigError(GitLabError, ValueError):
    """Malformed base URL, missing credential, or out-of-range setting."""

    pass


class RequestBuildError(GitLabError, ValueError):
    """A request could not be assembled from its description."""

    pass


class APIError(GitLabError):
    """Base exception for API errors.

    Carries everything the server told us about the failure, with secrets
    already redacted. The originating request is described by method and URL
    only, never by its headers.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
        field_errors: dict[str, list[str]] | None = None,
        body_excerpt: str | None = None,
        method: str | None = None,
        url: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.reason = reason
        self.field_errors = field_errors if field_errors is not None else {}
        self.body_excerpt = body_excerpt
        self.method = method
        self.url = url

    @property
    def http_status(self) -> int | None:
        return self.status_code


class AuthenticationError(APIError):
    """401/403 responses, or a failed credential refresh."""

    pass


class UnauthorizedError(AuthenticationError):
    """401 Unauthorized."""

    pass


class ForbiddenError(AuthenticationError):
    """403 Forbidden."""

    pass


class ClientError(APIError):
    """4xx client errors other than 401, 403 and 404."""

    pass


class BadRequestError(ClientError):
    """400 Bad Request."""

    pass


class ConflictError(ClientError):
    """409 Conflict."""

    pass


class ValidationError(ClientError):
    """422 Unprocessable Entity (validation errors)."""

    pass


class NotFoundError(APIError):
    """404 Not Found on an operation that does not treat absence as a result."""

    pass


class RateLimitError(APIError):
    """429 Too Many Requests, surfaced once the retry budget is spent."""

    def __init__(self, message: str, retry_after: float | None = None, reset_at: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after
        self.reset_at = reset_at


class ServerError(APIError):
    """5xx server errors."""

    pass


class TransportError(GitLabError):
    """DNS, connect, TLS, read or write failure.

    ``retryable`` is true when the method was idempotent and no part of the
    response body had been handed to the decoder yet.
    """

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class DecodeError(GitLabError):
    """Response body is not JSON, or does not match the expected shape."""

    def __init__(self, message: str, pointer: str = ""):
        super().__init__(f"{message} (at '{pointer or '/'}')")
        self.pointer = pointer


class RequestCancelled(GitLabError):
    """The caller's cancellation signal fired while a call was in flight."""

    pass


class PagerExhaustedError(GitLabError):
    """A pager was advanced past its last page."""

    pass
