"""
API error taxonomy.

Handlers report failures as `ApiError` values (returned inside `Err` or
raised). Each error carries an `ErrorKind`; `status_for` is the one place
that turns a kind into an HTTP status code.

Exceptions that are not `ApiError`s are classified by
`ApiError.from_exception`:

- pymongo duplicate-key errors become CONFLICT
- any other pymongo error becomes UNAVAILABLE (message hidden)
- anything else becomes BAD_REQUEST carrying the exception's text
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pymongo.errors import DuplicateKeyError, PyMongoError


class ErrorKind(str, Enum):
    """Classes of request failure."""

    BAD_REQUEST = "bad_request"
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"


_STATUS_BY_KIND = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.METHOD_NOT_ALLOWED: 405,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNAVAILABLE: 503,
    ErrorKind.INTERNAL: 500,
}


def status_for(kind: ErrorKind) -> int:
    """Return the HTTP status code for an error kind."""
    return _STATUS_BY_KIND[kind]


def describe_exception(exc: BaseException) -> str:
    """Non-empty human-readable text for an arbitrary exception."""
    text = str(exc).strip()
    return text or repr(exc)


class ApiError(Exception):
    """
    Base exception for all request-level failures.

    Attributes:
        kind: Failure class, mapped to a status by `status_for`
        message: Message placed in the response envelope
        errors: Optional list of detail messages (e.g. per-field problems)
    """

    kind: ErrorKind = ErrorKind.BAD_REQUEST
    default_message = "Bad request"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[List[Any]] = None,
        kind: Optional[ErrorKind] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.errors = errors
        if kind is not None:
            self.kind = kind

    @property
    def status_code(self) -> int:
        return status_for(self.kind)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ApiError":
        """Classify an exception raised while handling a request."""
        if isinstance(exc, ApiError):
            return exc
        if isinstance(exc, DuplicateKeyError):
            return ConflictError(_duplicate_key_message(exc))
        if isinstance(exc, PyMongoError):
            return ServiceUnavailableError(
                "Database operation failed. Please try again later."
            )
        return BadRequestError(describe_exception(exc))


class BadRequestError(ApiError):
    kind = ErrorKind.BAD_REQUEST
    default_message = "Bad request"


class ValidationError(ApiError):
    """Raised when request input fails validation."""

    kind = ErrorKind.VALIDATION
    default_message = "Validation failed"


class AuthenticationError(ApiError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Authentication required"


class ForbiddenError(ApiError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Access denied"


class NotFoundError(ApiError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class ConflictError(ApiError):
    kind = ErrorKind.CONFLICT
    default_message = "Resource conflict"


class ServiceUnavailableError(ApiError):
    kind = ErrorKind.UNAVAILABLE
    default_message = "Service temporarily unavailable"


def _duplicate_key_message(exc: DuplicateKeyError) -> str:
    details = exc.details or {}
    key_value = details.get("keyValue") or {}
    if not key_value:
        return "Resource already exists"
    field, value = next(iter(key_value.items()))
    return f"{field[:1].upper()}{field[1:]} '{value}' already exists"


__all__ = [
    "ApiError",
    "AuthenticationError",
    "BadRequestError",
    "ConflictError",
    "ErrorKind",
    "ForbiddenError",
    "NotFoundError",
    "ServiceUnavailableError",
    "ValidationError",
    "describe_exception",
    "status_for",
]
