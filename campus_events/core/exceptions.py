"""
Domain errors for Campus Events Service.
Every error carries a stable code, a user-safe message and the HTTP status it maps to.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Stable error kind tags exposed to API clients."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INVALID_STATE = "INVALID_STATE"
    INVALID_OR_EXPIRED_CODE = "INVALID_OR_EXPIRED_CODE"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500
    default_message: str = "An internal error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Malformed input, rejected before anything is persisted."""
    code = ErrorCode.VALIDATION_ERROR
    status_code = 422
    default_message = "Invalid input"


class PermissionDeniedError(DomainError):
    """Caller lacks authority over the event or action."""
    code = ErrorCode.PERMISSION_DENIED
    status_code = 403
    default_message = "You are not allowed to perform this action"


class InvalidStateError(DomainError):
    """Transition is illegal from the event's current status."""
    code = ErrorCode.INVALID_STATE
    status_code = 409
    default_message = "Action not allowed in the current event status"


class InvalidOrExpiredCodeError(DomainError):
    """No usable OTP challenge matched. Reasons are deliberately not distinguished."""
    code = ErrorCode.INVALID_OR_EXPIRED_CODE
    status_code = 400
    default_message = "Invalid or expired OTP"


class AlreadyRegisteredError(DomainError):
    """The student already holds a registration for this event."""
    code = ErrorCode.ALREADY_REGISTERED
    status_code = 409
    default_message = "You are already registered for this event"


class DeliveryFailedError(DomainError):
    """The SMS provider did not accept the message."""
    code = ErrorCode.DELIVERY_FAILED
    status_code = 502
    default_message = "Failed to send SMS"


class NotFoundError(DomainError):
    """Referenced event, registration or challenge is absent."""
    code = ErrorCode.NOT_FOUND
    status_code = 404
    default_message = "Resource not found"


class InternalError(DomainError):
    """Wraps unexpected storage or infrastructure failures."""
    code = ErrorCode.INTERNAL_ERROR
    status_code = 500
    default_message = "An internal error occurred"
