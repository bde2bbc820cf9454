"""
Tests for the command line entry point
"""

import json
from unittest.mock import patch

import pytest

import main
from tests.helpers import line


@pytest.fixture
def cli(container):
    """Run ``main.main`` against the test container without touching log files"""

    def run(*argv):
        with patch("main.setup_logging"), patch("main.get_container", return_value=container):
            return main.main(list(argv))

    return run


class TestParser:
    def test_report_names(self):
        args = main.build_parser().parse_args(["report", "order-timeline", "--interval", "weekly"])

        assert args.command == "report"
        assert main._report_kwargs(args) == {
            "start": None,
            "end": None,
            "preset": None,
            "interval": "weekly",
        }

    def test_unknown_report(self):
        with pytest.raises(SystemExit):
            main.build_parser().parse_args(["report", "weather"])

    def test_daily_sales_kwargs(self):
        args = main.build_parser().parse_args(["report", "daily-sales", "--date", "2024-01-01"])
        assert main._report_kwargs(args) == {"report_date": "2024-01-01"}


class TestMain:
    """Test main() commands"""

    def test_init_db(self, capsys):
        with patch("main.setup_logging"), patch("main.init_db") as init_db:
            assert main.main(["init-db"]) == 0

        init_db.assert_called_once()
        assert "Database tables created" in capsys.readouterr().out

    def test_health(self, capsys, db_manager):
        with patch("main.setup_logging"), patch("main.get_db_manager", return_value=db_manager):
            assert main.main(["health"]) == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["data"]["status"] == "healthy"

    def test_report(self, cli, capsys):
        assert cli("report", "daily-sales", "--date", "2024-01-01") == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["success"] is True
        assert payload["data"]["date"] == "2024-01-01"
        assert payload["data"]["summary"]["total_orders"] == 0

    def test_report_with_bad_range(self, cli, capsys):
        assert cli("report", "order-summary", "--start", "2024-02-01", "--end", "2024-01-01") == 4

        payload = json.loads(capsys.readouterr().out)
        assert payload["success"] is False

    def test_create_admin(self, cli, capsys, container):
        assert cli("create-admin", "--username", "boss", "--password", "pw", "--full-name", "Boss") == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["data"]["role"] == "admin"
        assert "password" not in payload["data"]
        assert container.get_user_service().verify_credentials("boss", "pw") is not None

    def test_create_admin_twice(self, cli, capsys):
        cli("create-admin", "--username", "boss", "--password", "pw", "--full-name", "Boss")
        capsys.readouterr()

        assert cli("create-admin", "--username", "boss", "--password", "pw", "--full-name", "Boss") == 4
        assert json.loads(capsys.readouterr().out)["message"] == "Username already exists"

    def test_report_with_filter(self, cli, capsys, order_service, menu_items):
        order_service.create_order({"items": [line(menu_items[0])]})

        assert cli("report", "order-summary", "--filter", "today") == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["data"]["summary"]["total_orders"] == 1
