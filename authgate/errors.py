"""Operational error taxonomy.

Every expected failure is raised as an ``AppError`` carrying an HTTP status
code and a client-safe message. The centralized handler in ``authgate.main``
turns them into JSON responses; call sites never build error responses
themselves.
"""

from typing import Optional


class AppError(Exception):
    """Base class for operational errors surfaced to API clients."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.is_operational = True

    @property
    def status(self) -> str:
        """'fail' for client errors, 'error' for server errors."""
        return "fail" if 400 <= self.status_code < 500 else "error"


class ValidationError(AppError):
    status_code = 400


class Unauthorized(AppError):
    status_code = 401


class Forbidden(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


class ServerError(AppError):
    status_code = 500


class InvalidToken(Unauthorized):
    """Session token failed signature, structure, or expiry checks."""


class TokenInvalidOrExpired(ValidationError):
    """Password reset token did not match or its window has passed."""

    def __init__(self, message: str = "Token is invalid or has expired"):
        super().__init__(message)
