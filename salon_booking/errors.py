"""
API error types.

Every error the API reports on purpose is an ``HTTPException`` subclass with
a machine-readable ``code``; ``main.py`` renders them all as
``{"success": false, "message": ..., "code": ...}``.
"""

from typing import Any, Optional

from fastapi import HTTPException


class AppError(HTTPException):
    status_code = 500
    code = "INTERNAL_ERROR"
    message = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        errors: Optional[list[Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.message = message or self.message
        self.errors = errors
        super().__init__(status_code=self.status_code, detail=self.message, headers=headers)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "message": self.message, "code": self.code}
        if self.errors:
            body["errors"] = self.errors
        return body


# 400
class ValidationFailed(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Invalid input data"


class InvalidService(AppError):
    status_code = 400
    code = "INVALID_SERVICE"
    message = "Invalid service selected"


class InvalidPreference(AppError):
    status_code = 400
    code = "INVALID_PREFERENCE"
    message = "Invalid time preference selected"


class StateConflict(AppError):
    status_code = 400
    code = "INVALID_STATE"
    message = "Request is not pending"


class InvalidCurrentPassword(AppError):
    status_code = 400
    code = "INVALID_CURRENT_PASSWORD"
    message = "Current password is incorrect"


class InvalidResetToken(AppError):
    status_code = 400
    code = "INVALID_RESET_TOKEN"
    message = "Reset token is invalid or has expired"


# 401
class AuthError(AppError):
    status_code = 401
    code = "AUTH_ERROR"
    message = "Authentication failed"

    def __init__(self, message: Optional[str] = None, **kwargs: Any):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


class InvalidCredentials(AuthError):
    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class TokenRequired(AuthError):
    code = "TOKEN_REQUIRED"
    message = "Access token is required"


class InvalidToken(AuthError):
    code = "INVALID_TOKEN"
    message = "Invalid access token"


class TokenExpired(AuthError):
    code = "TOKEN_EXPIRED"
    message = "Access token has expired"


class UserNotFound(AuthError):
    code = "USER_NOT_FOUND"
    message = "User not found or account deactivated"


# 403
class InsufficientPermissions(AppError):
    status_code = 403
    code = "INSUFFICIENT_PERMISSIONS"
    message = "Access denied"


# 404
class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found"


class RequestNotFound(NotFound):
    code = "REQUEST_NOT_FOUND"
    message = "Request not found"


class ServiceNotFound(NotFound):
    code = "SERVICE_NOT_FOUND"
    message = "Service not found"


# 423
class AccountLocked(AppError):
    status_code = 423
    code = "ACCOUNT_LOCKED"
    message = "Account is locked"

    def __init__(self, minutes_remaining: int):
        self.minutes_remaining = minutes_remaining
        super().__init__(f"Account is locked. Try again in {minutes_remaining} minutes.")


# 429 / 503
class RateLimitExceeded(AppError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    message = "Too many requests, please try again later"


class ServiceUnavailable(AppError):
    status_code = 503
    code = "SERVICE_UNAVAILABLE"
    message = "Service temporarily unavailable"


# 500
class InternalError(AppError):
    pass


class SubmissionFailed(InternalError):
    message = "Failed to create booking request"


class ApprovalFailed(InternalError):
    message = "Failed to approve request"
