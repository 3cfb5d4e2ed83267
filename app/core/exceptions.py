"""
Custom Exception Hierarchy

Provides structured exceptions for consistent error handling across the application.
"""
from decimal import Decimal
from typing import Any
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for API responses"""

    # General errors (1xxx)
    INTERNAL_ERROR = "ERR_1000"
    VALIDATION_ERROR = "ERR_1001"
    NOT_FOUND = "ERR_1002"
    ALREADY_EXISTS = "ERR_1003"
    UNAUTHORIZED = "ERR_1004"
    FORBIDDEN = "ERR_1005"
    RESOURCE_LOCKED = "ERR_1007"

    # Inventory errors (2xxx)
    INSUFFICIENT_STOCK = "ERR_2001"
    PRODUCT_UNAVAILABLE = "ERR_2002"

    # Order errors (3xxx)
    ORDER_NOT_FOUND = "ERR_3001"

    # Wallet errors (4xxx)
    TRANSACTION_NOT_FOUND = "ERR_4001"
    INSUFFICIENT_FUNDS = "ERR_4002"
    INVALID_AMOUNT = "ERR_4003"
    INVALID_TRANSACTION_TYPE = "ERR_4004"

    # Payment request errors (5xxx)
    PAYMENT_REQUEST_NOT_FOUND = "ERR_5001"

    # State machine errors (6xxx)
    INVALID_STATE_TRANSITION = "ERR_6001"
    INVALID_STATE = "ERR_6003"
    ALREADY_TERMINAL = "ERR_6004"


def _money(value: Decimal | float | int) -> str:
    return f"{Decimal(str(value)):.2f}"


class AppException(Exception):
    """Base exception for all application errors"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response"""
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.message,
                "details": self.details
            }
        }


class ValidationException(AppException):
    """Raised when input validation fails"""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None
    ):
        super().__init__(
            message=message,
            error_code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )
        if field:
            self.details["field"] = field


class NotFoundException(AppException):
    """Raised when a requested resource is not found"""

    def __init__(
        self,
        resource: str,
        identifier: Any,
        error_code: ErrorCode = ErrorCode.NOT_FOUND
    ):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            error_code=error_code,
            status_code=404,
            details={"resource": resource, "identifier": str(identifier)}
        )


class ForbiddenError(AppException):
    """Raised when the caller is neither the owner nor an admin"""

    def __init__(self, message: str = "Access denied", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.FORBIDDEN,
            status_code=403,
            details=details
        )


class ResourceLockedError(AppException):
    """Raised when another request holds the lock for the same wallet"""

    def __init__(self, resource: str, retry_after_seconds: int):
        super().__init__(
            message=f"{resource} is busy with another request, try again shortly",
            error_code=ErrorCode.RESOURCE_LOCKED,
            status_code=409,
            details={"resource": resource, "retry_after_seconds": retry_after_seconds}
        )


class InsufficientStockError(AppException):
    """Raised when a reservation cannot be satisfied for a product"""

    def __init__(self, product_id: int, product_name: str | None, requested: int, available: int):
        label = product_name or f"product {product_id}"
        super().__init__(
            message=f"Insufficient stock for {label}. Available: {available}",
            error_code=ErrorCode.INSUFFICIENT_STOCK,
            status_code=400,
            details={
                "product_id": product_id,
                "requested": requested,
                "available": available,
            }
        )


class WalletException(AppException):
    """Base exception for wallet-related errors"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        user_id: int | None = None,
        details: dict[str, Any] | None = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=400,
            details=details
        )
        if user_id:
            self.details["user_id"] = user_id


class InsufficientFundsError(WalletException):
    """Raised when the cached wallet balance cannot cover a debit"""

    def __init__(self, user_id: int, required: Decimal, available: Decimal):
        shortfall = Decimal(str(required)) - Decimal(str(available))
        super().__init__(
            message=(
                f"Insufficient wallet balance. "
                f"You need ${_money(required)} but have ${_money(available)}"
            ),
            error_code=ErrorCode.INSUFFICIENT_FUNDS,
            user_id=user_id,
            details={
                "required": _money(required),
                "available": _money(available),
                "shortfall": _money(shortfall),
            }
        )
        self.required = Decimal(str(required))
        self.available = Decimal(str(available))
        self.shortfall = shortfall


class InvalidAmountError(WalletException):
    """Raised when a ledger amount is zero, negative or below a minimum"""

    def __init__(self, amount: Any, minimum: Decimal | None = None):
        if minimum is not None:
            message = f"Amount must be at least ${_money(minimum)}"
        else:
            message = "Amount must be greater than 0"
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_AMOUNT,
            details={"amount": str(amount)}
        )


class StateMachineException(AppException):
    """Base exception for state machine errors"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: dict[str, Any] | None = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=400,
            details=details
        )


class InvalidStatusError(StateMachineException):
    """Raised when a status value is not part of the state machine"""

    def __init__(self, status: str, valid_statuses: list[str]):
        super().__init__(
            message=f"Invalid status: {status}",
            error_code=ErrorCode.INVALID_STATE,
            details={"status": status, "valid_statuses": valid_statuses}
        )


class InvalidTransitionError(StateMachineException):
    """Raised when state transition is not allowed"""

    def __init__(self, entity: str, entity_id: int, current_state: str, target_state: str):
        super().__init__(
            message=f"{entity} {entity_id}: invalid transition from '{current_state}' to '{target_state}'",
            error_code=ErrorCode.INVALID_STATE_TRANSITION,
            details={
                "entity": entity,
                "entity_id": entity_id,
                "current_state": current_state,
                "target_state": target_state,
            }
        )


class AlreadyTerminalError(StateMachineException):
    """Raised when a completed/failed/accepted/rejected record is touched again"""

    def __init__(self, entity: str, entity_id: int, current_state: str):
        super().__init__(
            message=f"{entity} {entity_id} already processed (status: {current_state})",
            error_code=ErrorCode.ALREADY_TERMINAL,
            details={
                "entity": entity,
                "entity_id": entity_id,
                "current_state": current_state,
            }
        )
