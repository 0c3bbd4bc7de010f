"""
Application exceptions.

Every error surfaced to API clients derives from ``BaseAppException``; the
handlers in ``messmate.core.handlers`` turn them into the response envelope.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"

    # Authentication & Authorization
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"
    TOKEN_INVALID = "TOKEN_INVALID"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"

    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"

    # Domain preconditions
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    INSUFFICIENT_QUANTITY = "INSUFFICIENT_QUANTITY"
    MENU_UNAVAILABLE = "MENU_UNAVAILABLE"

    # Infrastructure
    DATABASE_ERROR = "DATABASE_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Carries a client-facing message, a stable error code, optional details
    and the HTTP status code used when the error reaches the API layer.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the error envelope"""
        body: Dict[str, Any] = {
            "success": False,
            "message": self.message,
            "error": self.error_code.value,
        }
        if self.details:
            body["details"] = self.details
        return body

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


class ValidationError(BaseAppException):
    """Request data failed validation"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, error_code, details, 400)


class DuplicateEntryError(BaseAppException):
    """A unique value is already taken"""

    def __init__(self, message: str = "Resource already exists", field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, ErrorCode.DUPLICATE_ENTRY, details, 400)


class AuthenticationError(BaseAppException):
    """Missing, invalid or expired credentials"""

    def __init__(
        self,
        message: str = "Not authorized to access this route",
        error_code: ErrorCode = ErrorCode.AUTHENTICATION_FAILED,
    ):
        super().__init__(message, error_code, None, 401)


class AuthorizationError(BaseAppException):
    """Authenticated but not allowed"""

    def __init__(self, message: str = "Not authorized to perform this action"):
        super().__init__(message, ErrorCode.AUTHORIZATION_FAILED, None, 403)


class NotFoundError(BaseAppException):
    """Requested resource does not exist"""

    def __init__(self, resource_type: str = "Resource", resource_id: Optional[Any] = None):
        message = f"{resource_type} not found"
        details = {"resource_type": resource_type}
        if resource_id is not None:
            details["resource_id"] = str(resource_id)
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)


class InvalidStateError(BaseAppException):
    """Operation not allowed in the entity's current state"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.INVALID_STATE, details, 400)


class InsufficientBalanceError(BaseAppException):
    """Wallet balance does not cover the amount"""

    def __init__(self, required: Any = None, available: Any = None):
        details = {}
        if required is not None:
            details = {"required_amount": float(required), "current_balance": float(available or 0)}
        super().__init__("Insufficient wallet balance", ErrorCode.INSUFFICIENT_BALANCE, details, 400)


class InsufficientStockError(BaseAppException):
    """Inventory item does not hold the requested quantity"""

    def __init__(self, requested: Any = None, available: Any = None):
        details = {}
        if requested is not None:
            details = {"requested": float(requested), "available": float(available or 0)}
        super().__init__("Insufficient stock", ErrorCode.INSUFFICIENT_STOCK, details, 400)


class InsufficientQuantityError(BaseAppException):
    """Menu item has fewer portions left than requested"""

    def __init__(self, requested: Optional[int] = None, available: Optional[int] = None):
        details = {}
        if requested is not None:
            details = {"requested": requested, "available": available}
        super().__init__("Insufficient quantity available", ErrorCode.INSUFFICIENT_QUANTITY, details, 400)


class MenuUnavailableError(BaseAppException):
    """Menu item is switched off or outside its serving window"""

    def __init__(self, message: str = "Menu item not available"):
        super().__init__(message, ErrorCode.MENU_UNAVAILABLE, None, 400)


class ServerError(BaseAppException):
    """Unexpected failure"""

    def __init__(self, message: str = "Server Error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.INTERNAL_ERROR, details, 500)


__all__ = [
    "ErrorCode",
    "BaseAppException",
    "ValidationError",
    "DuplicateEntryError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "InvalidStateError",
    "InsufficientBalanceError",
    "InsufficientStockError",
    "InsufficientQuantityError",
    "MenuUnavailableError",
    "ServerError",
]
