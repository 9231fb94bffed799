"""
Application error taxonomy.

Every failure the request pipeline raises on purpose is an AppError subclass.
The HTTP status lives on the class so the terminal exception handler can
classify without inspecting messages.
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import status


class AppError(Exception):
    """Base application error carrying a public message and an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        context: Optional[str] = None,
        original: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context
        self.original = original

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, context={self.context!r})"


class AuthenticationError(AppError):
    """Missing, invalid, expired or revoked credential."""

    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "authentication_error"

    def __init__(
        self,
        message: str,
        *,
        clear_cookie: bool = False,
        context: Optional[str] = None,
        original: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, context=context, original=original)
        self.clear_cookie = clear_cookie


class ValidationError(AppError):
    """Malformed query string or request body."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "validation_error"


class NotFoundError(AppError):
    """Row absent or owned by another tenant; the two are indistinguishable."""

    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class ConflictError(AppError):
    """Referential mismatch or uniqueness violation detected by a write."""

    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"


class InternalError(AppError):
    """Unexpected store or runtime failure. The message is safe to return."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "internal_error"

    def __init__(
        self,
        message: str = "Internal server error. Please contact support.",
        *,
        context: Optional[str] = None,
        original: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, context=context, original=original)


def describe(error: Any) -> str:
    """Short human-readable description used by log lines."""
    if isinstance(error, AppError):
        return f"{error.kind}: {error.message}"
    if isinstance(error, BaseException):
        return f"{type(error).__name__}: {error}"
    return repr(error)
