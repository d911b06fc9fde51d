"""Typed errors raised by the access-control and scoping layer.

Each error carries the HTTP status it maps to; the translation to a response
happens once, in provincial_hr.api.errors.
"""
from __future__ import annotations
from typing import Optional


class ApiError(Exception):
    """Base error with HTTP status and optional machine-readable code.

    Attributes:
        status: HTTP status code
        message: Client-safe error message
        code: Optional stable error code (e.g. PERFORMANCE_LOCKED)
    """

    status = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        self.message = message or self.default_message
        self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert to the error envelope."""
        body = {"success": False, "error": self.message}
        if self.code:
            body["code"] = self.code
        return body


class Unauthenticated(ApiError):
    """No session, or the session lacks a user id or role."""
    status = 401
    default_message = "Authentication required"


class InvalidCredentials(ApiError):
    """Unknown username or wrong password (deliberately indistinguishable)."""
    status = 401
    default_message = "Invalid credentials"


class Forbidden(ApiError):
    """Authenticated, but wrong role or out-of-scope province."""
    status = 403
    default_message = "Forbidden"


class InvalidIdentifier(ApiError):
    status = 400
    default_message = "Invalid ID format"


class WrongProvince(ApiError):
    """The record exists but belongs to a different province than the path."""
    status = 400
    default_message = "Employee does not belong to this province"


class ValidationError(ApiError):
    status = 400
    default_message = "Validation error"


class NotFound(ApiError):
    status = 404
    default_message = "Resource not found"


class Conflict(ApiError):
    status = 409
    default_message = "Resource already exists"


class Locked(ApiError):
    status = 423
    default_message = "Performance records are locked by global admin"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = "PERFORMANCE_LOCKED"):
        super().__init__(message, code)


class TooManyRequests(ApiError):
    status = 429
    default_message = "Too many login attempts, please try again later"

    def __init__(self, message: Optional[str] = None, retry_after: int = 0):
        self.retry_after = retry_after
        super().__init__(message)


class InternalError(ApiError):
    status = 500
