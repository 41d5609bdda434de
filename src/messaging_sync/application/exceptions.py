from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from messaging_sync.application.dto.result import Err


class ErrorKind(StrEnum):
    VALIDATION = "ValidationError"
    NETWORK = "NetworkError"
    AUTH = "AuthError"
    NOT_FOUND = "NotFoundError"
    PERMISSION = "PermissionError"


class AppError(Exception):
    """Base application error."""

    kind: ErrorKind = ErrorKind.NETWORK

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION


class NetworkError(AppError):
    kind = ErrorKind.NETWORK


class AuthError(AppError):
    kind = ErrorKind.AUTH


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class ForbiddenError(AppError):
    kind = ErrorKind.PERMISSION


class MessageSendError(AppError):
    """A send failed after the optimistic entry was rolled back.

    ``text`` is the caller's original input, for restoring the compose box.
    """

    def __init__(self, detail: str, kind: ErrorKind, text: str) -> None:
        super().__init__(detail)
        self.kind = kind
        self.text = text


_BY_KIND: dict[ErrorKind, type[AppError]] = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.NETWORK: NetworkError,
    ErrorKind.AUTH: AuthError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.PERMISSION: ForbiddenError,
}


def error_for(err: Err) -> AppError:
    """Exception matching a failed transport result."""
    return _BY_KIND[err.error_kind](err.message)
