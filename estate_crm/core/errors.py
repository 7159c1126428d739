"""
core/errors.py
--------------
Error taxonomy and the tagged result type returned by the store adapter.

ErrorKind     → stable, client-visible error identifier (+ HTTP status).
AppError      → raised by guards and services; rendered by the global
                exception handler in main.py.
Outcome[T]    → success-or-failure value returned by every repository call.
                Store exceptions are converted into a failed Outcome at the
                repository boundary and never propagate past it.
Page[T]       → one page of a cursor-paginated query.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from fastapi import status

T = TypeVar("T")


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "Unauthenticated"
    INVALID_TOKEN = "InvalidToken"
    TOKEN_EXPIRED = "TokenExpired"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    INVALID_ARGUMENT = "InvalidArgument"
    STORE_ERROR = "StoreError"
    EXTERNAL_SERVICE_ERROR = "ExternalServiceError"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.TOKEN_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.STORE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.EXTERNAL_SERVICE_ERROR: status.HTTP_502_BAD_GATEWAY,
}


class AppError(Exception):
    """Base class for every expected, client-visible failure."""

    kind: ErrorKind = ErrorKind.STORE_ERROR
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind.value} message={self.message!r}>"


class Unauthenticated(AppError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Authentication required"


class InvalidToken(AppError):
    kind = ErrorKind.INVALID_TOKEN
    default_message = "Invalid token"


class TokenExpired(AppError):
    kind = ErrorKind.TOKEN_EXPIRED
    default_message = "Token expired"


class Forbidden(AppError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Access denied"


class NotFound(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class Conflict(AppError):
    kind = ErrorKind.CONFLICT
    default_message = "Resource already exists"


class InvalidArgument(AppError):
    kind = ErrorKind.INVALID_ARGUMENT
    default_message = "Invalid argument"


class StoreError(AppError):
    kind = ErrorKind.STORE_ERROR
    default_message = "Storage operation failed"


class ExternalServiceError(AppError):
    kind = ErrorKind.EXTERNAL_SERVICE_ERROR
    default_message = "External service unavailable"


_ERROR_CLASSES = {cls.kind: cls for cls in AppError.__subclasses__()}


def error_for(kind: ErrorKind, message: Optional[str] = None) -> AppError:
    return _ERROR_CLASSES[kind](message)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Tagged result: either ``data`` (ok) or ``error`` + ``message``."""

    ok: bool
    data: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: Optional[T] = None) -> "Outcome[T]":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Outcome[T]":
        return cls(ok=False, error=kind, message=message)

    def unwrap(self) -> Optional[T]:
        """Return the data, or raise the AppError matching the failure kind."""
        if not self.ok:
            raise error_for(self.error, self.message)
        return self.data


@dataclass
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    cursor: Optional[str] = None
    has_more: bool = False
