"""
Tests for database management and logging setup
"""

import json
import logging
from unittest.mock import patch

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import OperationalError

from flamex_pos.config import Settings
from flamex_pos.infrastructure.database import operations
from flamex_pos.infrastructure.database.operations import DatabaseManager
from flamex_pos.infrastructure.logging.logging_config import (
    PerformanceLogger,
    PosJsonFormatter,
    setup_logging,
)


class TestDatabaseManager:
    """Test DatabaseManager"""

    def test_create_tables(self, db_manager):
        tables = set(inspect(db_manager.get_engine()).get_table_names())

        assert {
            "categories",
            "menu_items",
            "customers",
            "customer_addresses",
            "riders",
            "orders",
            "order_items",
            "order_edit_history",
            "expenses",
            "users",
            "business_info",
        } <= tables

    def test_foreign_keys_are_enforced(self, db_manager):
        with db_manager.get_session() as session:
            assert session.execute(text("PRAGMA foreign_keys")).scalar() == 1

    def test_health_check(self, db_manager):
        assert db_manager.health_check() == {"status": "healthy", "environment": "test"}

    def test_health_check_failure(self, db_manager):
        with patch.object(
            DatabaseManager,
            "get_session",
            side_effect=OperationalError("SELECT 1", {}, Exception("unreachable")),
        ):
            result = db_manager.health_check()

        assert result["status"] == "unhealthy"
        assert "unreachable" in result["error"]

    def test_close_resets_engine(self):
        manager = DatabaseManager(config=Settings(database_url="sqlite:///:memory:"))
        first = manager.get_engine()
        manager.close()

        assert manager.get_engine() is not first
        manager.close()

    def test_init_db_uses_global_manager(self):
        manager = DatabaseManager(config=Settings(database_url="sqlite:///:memory:"))
        operations.set_db_manager(manager)
        try:
            operations.init_db()
            assert "orders" in inspect(manager.get_engine()).get_table_names()
        finally:
            operations.set_db_manager(None)


class TestLogging:
    def test_setup_logging_writes_json_files(self, tmp_path):
        setup_logging(str(tmp_path))
        try:
            logging.getLogger("flamex_pos.test").error("Stock ran out", extra={"item": "Fries"})
            for handler in logging.getLogger().handlers:
                handler.flush()

            record = json.loads((tmp_path / "errors.log").read_text().strip().splitlines()[-1])
            assert record["message"] == "Stock ran out"
            assert record["level"] == "ERROR"
            assert record["item"] == "Fries"
            assert (tmp_path / "app.log").exists()
        finally:
            root = logging.getLogger()
            for handler in list(root.handlers):
                handler.close()
                root.removeHandler(handler)

    def test_json_formatter_adds_operation_time(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "done", None, None)
        record.operation_time = 12.5

        payload = json.loads(PosJsonFormatter().format(record))

        assert payload["operation_time_ms"] == 12.5
        assert payload["logger"] == "x"

    def test_performance_logger_reports_failure(self, caplog):
        caplog.set_level(logging.DEBUG)

        with pytest.raises(RuntimeError):
            with PerformanceLogger("daily_sales_report"):
                raise RuntimeError("boom")

        failed = [r for r in caplog.records if r.getMessage() == "Failed operation: daily_sales_report"]
        assert failed[0].error_message == "boom"
        assert failed[0].success is False
