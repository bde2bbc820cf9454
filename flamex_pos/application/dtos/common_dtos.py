"""
Common DTOs

The response envelope every service result is wrapped in, plus the error
boundary that converts raised errors into that envelope.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from flamex_pos.infrastructure.utilities.constants import ErrorCodes
from flamex_pos.infrastructure.utilities.exceptions import FlamexError
from flamex_pos.infrastructure.utilities.helpers import dumps

logger = logging.getLogger(__name__)


@dataclass
class ApiResponse:
    """Uniform ``{success, message, data, errors}`` envelope"""

    success: bool
    message: str
    data: Any = None
    errors: Optional[List[Any]] = None

    @classmethod
    def ok(cls, message: str, data: Any = None) -> "ApiResponse":
        return cls(True, message, data)

    @classmethod
    def error(cls, message: str, errors: Optional[List[Any]] = None) -> "ApiResponse":
        return cls(False, message, None, errors)

    def to_dict(self) -> dict:
        result: dict = {"success": self.success, "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        if self.errors is not None:
            result["errors"] = self.errors
        return result

    def to_json(self, **kwargs) -> str:
        return dumps(self.to_dict(), **kwargs)


def _error_details(exc: FlamexError) -> Optional[List[Any]]:
    if exc.errors is not None:
        return exc.errors
    field = getattr(exc, "field", None)
    if field:
        return [{"field": field, "message": exc.user_message}]
    return None


def handle_service_errors(
    success_message: str, status_code: int = 200
) -> Callable[[Callable[..., Any]], Callable[..., Tuple[ApiResponse, int]]]:
    """Wrap a service call so it returns ``(ApiResponse, status_code)``.

    Domain errors keep their message and status; database failures are
    logged and reported with a generic message.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Tuple[ApiResponse, int]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Tuple[ApiResponse, int]:
            try:
                data = func(*args, **kwargs)
            except FlamexError as exc:
                level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
                logger.log(
                    level,
                    "[%s] %s",
                    exc.status_code,
                    exc.message,
                    extra={"error_code": exc.error_code, "operation": func.__name__},
                )
                return ApiResponse.error(exc.user_message, _error_details(exc)), exc.status_code
            except SQLAlchemyError as exc:
                logger.error(
                    "💥 DATABASE ERROR in %s: %s",
                    func.__name__,
                    exc,
                    exc_info=True,
                    extra={"error_code": ErrorCodes.DATABASE_ERROR},
                )
                return ApiResponse.error(ErrorCodes.GENERIC_ERROR_MESSAGE), 500
            return ApiResponse.ok(success_message, data), status_code

        return wrapper

    return decorator

