"""Error taxonomy shared by the security core and the API layer.

Every error carries the HTTP status it maps to and a client-safe message.
The exception handlers in ``app.main`` render them as ``{"message": ...}``.
"""
from __future__ import annotations


class AppError(Exception):
    """Base class for errors that terminate a request with a known status."""

    status_code: int = 500
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        self.message = message or self.message
        # Extra context, only exposed to clients in development.
        self.detail = detail
        super().__init__(self.message)


class AuthHeaderMissing(AppError):
    status_code = 401
    message = "Authorization header required"


class TokenMissing(AppError):
    status_code = 401
    message = "Authorization token required"


class InvalidTokenError(AppError):
    """Malformed, wrongly signed or expired bearer token."""

    status_code = 403
    message = "Invalid or expired token"


class PrincipalNotFound(AppError):
    status_code = 401
    message = "Employee not found"


class RoleNotFound(AppError):
    status_code = 403
    message = "Access denied: Role not found"


class InsufficientRole(AppError):
    status_code = 403
    message = "Access denied: Insufficient privileges"


class AuthenticationFailed(AppError):
    status_code = 401
    message = "Authentication failed"


class RateLimited(AppError):
    status_code = 429
    message = "Too many failed login attempts. Please try again later."

    def __init__(self, retry_after: float, message: str | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(message)


class ValidationFailed(AppError):
    status_code = 400
    message = "Invalid input"


class Conflict(AppError):
    status_code = 409
    message = "Resource already exists"


class CryptoError(AppError):
    """Encryption or decryption of a sensitive field failed."""

    status_code = 500
    message = "Unable to process protected data"


class StorageError(AppError):
    status_code = 500
    message = "Storage operation failed"
