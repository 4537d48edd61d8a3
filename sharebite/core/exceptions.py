"""
Custom exception classes
Application errors carry a stable error code that the HTTP layer maps to a status.
"""

from typing import Any, Dict, Optional


class BaseApplicationError(Exception):
    """Base class for all application errors"""

    default_code = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        super().__init__(self.message)


class DatabaseError(BaseApplicationError):
    """Store level failure"""
    default_code = "DATABASE_ERROR"


class CommitFailedError(DatabaseError):
    """An atomic batch or transaction did not apply; nothing was written"""
    default_code = "COMMIT_FAILED"


class PreconditionFailed(DatabaseError):
    """A conditional write found the document in an unexpected state"""
    default_code = "PRECONDITION_FAILED"


class AuthenticationError(BaseApplicationError):
    """Missing or invalid credentials"""
    default_code = "AUTHENTICATION_REQUIRED"


class PermissionDeniedError(BaseApplicationError):
    """Caller is not allowed to perform the operation"""
    default_code = "PERMISSION_DENIED"


class ValidationError(BaseApplicationError):
    """Malformed input, rejected before any store access"""
    default_code = "VALIDATION_ERROR"


class BusinessLogicError(BaseApplicationError):
    """Lifecycle rule violations"""
    default_code = "BUSINESS_RULE_VIOLATION"


class NotFoundError(BusinessLogicError):
    """Referenced food item or request does not exist"""
    default_code = "NOT_FOUND"


class UnavailableError(BusinessLogicError):
    """Food item is no longer available"""
    default_code = "FOOD_ITEM_UNAVAILABLE"


class DuplicateRequestError(BusinessLogicError):
    """Shelter already holds an active request for the food item"""
    default_code = "DUPLICATE_REQUEST"


class AlreadyAllocatedError(BusinessLogicError):
    """Food item has already been allocated to another request"""
    default_code = "ALREADY_ALLOCATED"


class InvalidTransitionError(BusinessLogicError):
    """Status change not permitted from the current status"""
    default_code = "INVALID_TRANSITION"

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot move request from '{current}' to '{target}'",
            details={"current_status": current, "target_status": target},
        )
