"""
Tests for request DTOs and the response envelope
"""

import json
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from flamex_pos.application.dtos.common_dtos import ApiResponse, handle_service_errors
from flamex_pos.application.dtos.order_dtos import parse_enum
from flamex_pos.infrastructure.utilities.constants import OrderStatus
from flamex_pos.infrastructure.utilities.exceptions import (
    ConflictError,
    NotFoundError,
    OrderNotFoundError,
    TableOccupiedError,
    ValidationError,
)


class TestParseEnum:
    def test_valid_value(self):
        assert parse_enum(OrderStatus, "ready", "order_status") == "ready"
        assert parse_enum(OrderStatus, None, "order_status") is None

    def test_invalid_value_lists_choices(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_enum(OrderStatus, "eaten", "order_status")

        assert "Expected one of: pending, preparing, ready, completed, cancelled" in str(exc_info.value)
        assert exc_info.value.field == "order_status"


class TestApiResponse:
    def test_ok_envelope(self):
        response = ApiResponse.ok("Fetched", {"total": Decimal("10.50")})

        assert response.to_dict() == {
            "success": True,
            "message": "Fetched",
            "data": {"total": Decimal("10.50")},
        }
        assert json.loads(response.to_json())["data"]["total"] == 10.5

    def test_error_envelope(self):
        response = ApiResponse.error("Bad input", [{"field": "name", "message": "required"}])

        assert response.to_dict() == {
            "success": False,
            "message": "Bad input",
            "errors": [{"field": "name", "message": "required"}],
        }


class TestHandleServiceErrors:
    """Errors raised by services map onto status codes"""

    def test_success(self):
        call = handle_service_errors("Created", 201)(lambda: {"id": 1})

        response, status = call()

        assert status == 201
        assert response.success is True
        assert response.data == {"id": 1}

    @pytest.mark.parametrize(
        "error, status",
        [
            (NotFoundError("Customer not found", resource="customer"), 404),
            (OrderNotFoundError(5), 404),
            (ValidationError("Invalid phone"), 400),
            (TableOccupiedError(4), 400),
            (ConflictError("Phone number already exists", field="phone"), 409),
        ],
    )
    def test_domain_errors(self, error, status):
        def fail():
            raise error

        response, code = handle_service_errors("never")(fail)()

        assert code == status
        assert response.success is False
        assert response.message == error.user_message

    def test_field_becomes_error_detail(self):
        def fail():
            raise TableOccupiedError(4)

        response, _ = handle_service_errors("never")(fail)()

        assert response.errors == [
            {"field": "table_number", "message": "Table #4 is already occupied"}
        ]

    def test_database_error_is_generic(self):
        def fail():
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        response, code = handle_service_errors("never")(fail)()

        assert code == 500
        assert response.message == "Internal Server Error"
        assert "locked" not in response.to_json()
