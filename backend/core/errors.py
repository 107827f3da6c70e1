"""Application error taxonomy.

Route handlers and dependencies raise these; the handlers registered in
``backend.main`` render them as a uniform JSON envelope::

    {"error": "Forbidden", "message": "...", "details": null}
"""

from typing import Any

from fastapi import status


class AppError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "Internal Server Error"
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None, details: list[dict[str, Any]] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.message, "details": self.details}


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Validation failed"
    default_message = "Request validation failed"


class DuplicateEmailError(AppError):
    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"
    default_message = "Email already exists"


class InvalidCredentialsError(AppError):
    """Unknown email and wrong password share this error so accounts can't be enumerated."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Unauthorized"
    default_message = "Invalid email or password"


class AuthRequiredError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Unauthorized"
    default_message = "Authentication required"


class TokenExpiredError(AuthRequiredError):
    default_message = "Session expired, please sign in again"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Forbidden"
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not Found"
    default_message = "Resource not found"


class RateLimitedError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error = "Too Many Requests"
    default_message = "Rate limit exceeded. Please slow down."


class HashingError(AppError):
    """Password hashing backend failed; never raised for a merely wrong password."""

    default_message = "Error hashing"


class InvalidTokenError(Exception):
    """Token signature or structure is invalid."""


class ExpiredTokenError(InvalidTokenError):
    """Token was valid but its expiry has passed."""
