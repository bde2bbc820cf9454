"""
Custom exceptions for the Flamex POS backend
"""

from typing import Any, Optional

from flamex_pos.infrastructure.utilities.constants import ErrorCodes


class FlamexError(Exception):
    """Base exception for the POS core"""

    status_code = 500

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        error_code: Optional[str] = None,
        errors: Optional[list[Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message
        self.error_code = error_code or ErrorCodes.GENERAL_ERROR
        self.errors = errors


class NotFoundError(FlamexError):
    """Referenced record does not exist"""

    status_code = 404

    def __init__(self, message: str, resource: Optional[str] = None):
        super().__init__(message, error_code=ErrorCodes.NOT_FOUND)
        self.resource = resource


class ValidationError(FlamexError):
    """Malformed or semantically invalid input"""

    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        errors: Optional[list[Any]] = None,
    ):
        super().__init__(message, error_code=ErrorCodes.VALIDATION_ERROR, errors=errors)
        self.field = field


class ConflictError(FlamexError):
    """Unique key collision (phone, CNIC, category name, business key...)"""

    status_code = 409

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, error_code=ErrorCodes.CONFLICT)
        self.field = field


class DatabaseError(FlamexError):
    """Database-related errors"""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(
            message,
            ErrorCodes.GENERIC_ERROR_MESSAGE,
            ErrorCodes.DATABASE_ERROR,
        )
        self.operation = operation


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: int):
        super().__init__("Order not found", resource="order")
        self.order_id = order_id


class TableOccupiedError(ValidationError):
    def __init__(self, table_number: int):
        super().__init__(f"Table #{table_number} is already occupied", field="table_number")
        self.table_number = table_number


class MenuItemsNotFoundError(ValidationError):
    def __init__(self, missing_ids: list[int]):
        super().__init__(
            f"Menu items not found: {', '.join(str(i) for i in missing_ids)}",
            field="items",
        )
        self.missing_ids = missing_ids
