"""
Application constants for the Flamex POS backend

Centralizes enumerations, thresholds and other hard-coded values.
"""

from enum import Enum
from typing import Final


class OrderType(str, Enum):
    DINE_IN = "dine_in"
    DELIVERY = "delivery"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class RiderStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TimelineInterval(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class DatePreset(str, Enum):
    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"


# Database configuration constants
class DatabaseSettings:
    """Database connection and pool configuration"""

    POOL_RECYCLE_SECONDS: Final[int] = 3600  # 1 hour

    PRODUCTION_POOL_SIZE: Final[int] = 20
    PRODUCTION_MAX_OVERFLOW: Final[int] = 30

    DEVELOPMENT_POOL_SIZE: Final[int] = 5
    DEVELOPMENT_MAX_OVERFLOW: Final[int] = 10

    SQLITE_PREFIX: Final[str] = "sqlite"


# Logging configuration constants
class LoggingSettings:
    """Logging file sizes and rotation settings"""

    MAX_LOG_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10MB
    MAIN_LOG_BACKUP_COUNT: Final[int] = 10
    ERROR_LOG_BACKUP_COUNT: Final[int] = 10


class FileSettings:
    """File paths and directory settings"""

    MAIN_LOG_FILE: Final[str] = "app.log"
    ERROR_LOG_FILE: Final[str] = "errors.log"


class ConfigValidation:
    """Configuration validation constants"""

    VALID_ENVIRONMENTS: Final[list[str]] = ["development", "test", "staging", "production"]
    VALID_LOG_LEVELS: Final[list[str]] = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ErrorCodes:
    """Standardized error codes"""

    GENERAL_ERROR: Final[str] = "GENERAL_ERROR"
    DATABASE_ERROR: Final[str] = "DATABASE_ERROR"
    VALIDATION_ERROR: Final[str] = "VALIDATION_ERROR"
    NOT_FOUND: Final[str] = "NOT_FOUND"
    CONFLICT: Final[str] = "CONFLICT"

    GENERIC_ERROR_MESSAGE: Final[str] = "Internal Server Error"


class PaginationSettings:
    DEFAULT_PAGE: Final[int] = 1
    CUSTOMER_ORDERS_PAGE_SIZE: Final[int] = 10
    SEARCH_RESULT_LIMIT: Final[int] = 50
    PHONE_SEARCH_LIMIT: Final[int] = 10


# Customer loyalty segmentation (orders in range, inclusive bounds)
class LoyaltyThresholds:
    MIN_ORDERS: Final[int] = 1
    NEW_MAX_ORDERS: Final[int] = 1
    REGULAR_MAX_ORDERS: Final[int] = 5
    LOYAL_MAX_ORDERS: Final[int] = 10


# Profit/loss recommendation heuristics
class ProfitThresholds:
    MIN_MARGIN_PERCENT: Final[int] = 20
    MAX_EXPENSE_RATIO: Final[str] = "0.7"
    MAX_UNPROFITABLE_DAY_RATIO: Final[str] = "0.3"
    HIGH_CATEGORY_RATIO: Final[str] = "0.1"


class ReportSettings:
    TOP_ITEMS_LIMIT: Final[int] = 10
    RECENT_DELIVERIES_PER_RIDER: Final[int] = 5
    UNKNOWN_AREA: Final[str] = "Unknown"
    UNCATEGORIZED: Final[str] = "Uncategorized"
    GUEST_NAME: Final[str] = "Guest"


class ExpenseDefaults:
    PAYMENT_METHOD: Final[str] = "cash"
    QUANTITY: Final[int] = 1
    UNIT: Final[str] = "PCS"
