"""
Service-layer exceptions.

Each class carries the HTTP status and a stable error code; api/errors.py
turns them into the response envelope. The message is the only text that
reaches the client.
"""
from __future__ import annotations

from typing import Optional


class ServiceError(Exception):
    """Base class for service-layer exceptions mapped to HTTP responses."""

    status_code: int = 400
    error_code: str = "BAD_REQUEST"
    default_message: str = "Bad request"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code


class BadRequestError(ServiceError):
    status_code = 400
    error_code = "BAD_REQUEST"


class InvalidCredentialsFormat(BadRequestError):
    """Login identifier missing, ambiguous or malformed (400)."""
    error_code = "INVALID_CREDENTIALS_FORMAT"
    default_message = "Either email or phone must be provided"


class AuthenticationError(ServiceError):
    """Authentication failed or missing (401)."""
    status_code = 401
    error_code = "UNAUTHORIZED"
    default_message = "Unauthorized"


Unauthorized = AuthenticationError


class TokenExpiredError(AuthenticationError):
    default_message = "Token expired"


class InvalidTokenError(AuthenticationError):
    default_message = "Invalid token"


class ForbiddenError(ServiceError):
    """Access denied (403)."""
    status_code = 403
    error_code = "FORBIDDEN"
    default_message = "Access denied."


class NotFoundError(ServiceError):
    status_code = 404
    error_code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(ServiceError):
    status_code = 409
    error_code = "CONFLICT"
    default_message = "Conflict"


__all__ = [
    "ServiceError",
    "BadRequestError",
    "InvalidCredentialsFormat",
    "AuthenticationError",
    "Unauthorized",
    "TokenExpiredError",
    "InvalidTokenError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
]
