"""
Custom Exception Classes for the CMS

This module defines custom exceptions for consistent error responses
across the application, and the closed set of failure kinds surfaced by
the user repository around the auth provider.
"""

import enum
from typing import Any

from fastapi import status


class CMSException(Exception):
    """Base exception class for all CMS-related exceptions"""

    error_code = "CMS_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(CMSException):
    """Raised when authentication fails"""

    error_code = "AUTH_FAILED"

    def __init__(self, message: str = "Authentication failed", details: dict[str, Any] | None = None):
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED, details=details or {})


class InvalidTokenError(AuthenticationError):
    """Raised when a bearer token is invalid, expired or revoked"""

    error_code = "AUTH_INVALID_TOKEN"

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message=message)


class AuthorizationError(CMSException):
    """Raised when user lacks permission for an action"""

    error_code = "AUTH_PERMISSION_DENIED"

    def __init__(
        self, message: str = "You do not have permission to perform this action", required_groups: list[str] | None = None
    ):
        details = {"required_groups": required_groups} if required_groups else {}
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class AuthErrorKind(str, enum.Enum):
    """Failure categories reported by the user repository."""

    LOGIN_REQUIRED = "login_required"
    PASSWORD_REQUIRED = "password_required"
    USER_EXISTS = "user_exists"
    USER_NOT_FOUND = "user_not_found"
    USER_ALREADY_ACTIVATED = "user_already_activated"
    GROUP_NOT_FOUND = "group_not_found"
    WRONG_PASSWORD = "wrong_password"
    USER_NOT_ACTIVATED = "user_not_activated"
    USER_SUSPENDED = "user_suspended"
    USER_BANNED = "user_banned"
    ACTIVATION_FAILED = "activation_failed"


AUTH_ERROR_STATUS: dict[AuthErrorKind, int] = {
    AuthErrorKind.LOGIN_REQUIRED: status.HTTP_400_BAD_REQUEST,
    AuthErrorKind.PASSWORD_REQUIRED: status.HTTP_400_BAD_REQUEST,
    AuthErrorKind.USER_EXISTS: status.HTTP_409_CONFLICT,
    AuthErrorKind.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    AuthErrorKind.USER_ALREADY_ACTIVATED: status.HTTP_409_CONFLICT,
    AuthErrorKind.GROUP_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    AuthErrorKind.WRONG_PASSWORD: status.HTTP_401_UNAUTHORIZED,
    AuthErrorKind.USER_NOT_ACTIVATED: status.HTTP_403_FORBIDDEN,
    AuthErrorKind.USER_SUSPENDED: status.HTTP_403_FORBIDDEN,
    AuthErrorKind.USER_BANNED: status.HTTP_403_FORBIDDEN,
    AuthErrorKind.ACTIVATION_FAILED: status.HTTP_400_BAD_REQUEST,
}


class AuthFailure(CMSException):
    """Raised when a failed user-repository result is unwrapped"""

    def __init__(self, kind: AuthErrorKind, message: str):
        self.kind = kind
        self.error_code = f"AUTH_{kind.name}"
        super().__init__(
            message=message,
            status_code=AUTH_ERROR_STATUS[kind],
            details={"kind": kind.value},
        )


# ============================================================================
# Resource Not Found Exceptions
# ============================================================================


class ResourceNotFoundError(CMSException):
    """Base class for resource not found errors"""

    error_code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: Any | None = None):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class UserNotFoundError(ResourceNotFoundError):
    """Raised when a user is not found"""

    def __init__(self, user_id: Any | None = None):
        super().__init__(resource_type="User", resource_id=user_id)


class ContentNotFoundError(ResourceNotFoundError):
    """Raised when a gallery or news item is not found"""

    def __init__(self, resource_type: str = "Content", content_id: Any | None = None):
        super().__init__(resource_type=resource_type, resource_id=content_id)


# ============================================================================
# Validation & Business Logic Exceptions
# ============================================================================


class ValidationError(CMSException):
    """Raised when input validation fails"""

    error_code = "VALIDATION_FAILED"

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=error_details)


class DuplicateResourceError(CMSException):
    """Raised when attempting to create a duplicate resource"""

    error_code = "VALIDATION_DUPLICATE_RESOURCE"

    def __init__(self, resource_type: str, field: str, value: Any):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource_type": resource_type, "field": field, "value": value},
        )
