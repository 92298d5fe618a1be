"""Error taxonomy and GitLab error body handling."""

from gitlab_client_core.errors.exceptions import (
    APIError,
    AuthenticationError,
    BadRequestError,
    ClientError,
    ConfigError,
    ConflictError,
    DecodeError,
    ForbiddenError,
    GitLabError,
    NotFoundError,
    PagerExhaustedError,
    RateLimitError,
    RequestBuildError,
    RequestCancelled,
    ServerError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)
from gitlab_client_core.errors.handler import error_for_response, parse_retry_after, raise_for_status
from gitlab_client_core.errors.models import ErrorBodyKind, ErrorDetail
from gitlab_client_core.errors.redaction import SecretRedactionFilter, redact

__all__ = [
    "APIError",
    "AuthenticationError",
    "BadRequestError",
    "ClientError",
    "ConfigError",
    "ConflictError",
    "DecodeError",
    "ErrorBodyKind",
    "ErrorDetail",
    "ForbiddenError",
    "GitLabError",
    "NotFoundError",
    "PagerExhaustedError",
    "RateLimitError",
    "RequestBuildError",
    "RequestCancelled",
    "SecretRedactionFilter",
    "ServerError",
    "TransportError",
    "UnauthorizedError",
    "ValidationError",
    "error_for_response",
    "parse_retry_after",
    "raise_for_status",
    "redact",
]
