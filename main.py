#!/usr/bin/env python3
"""
Command line entry point for the Flamex POS backend

Creates the schema, checks the database, bootstraps the first admin account
and prints any report as the JSON response envelope.
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

from flamex_pos.application.dtos.common_dtos import ApiResponse, handle_service_errors
from flamex_pos.config import get_config
from flamex_pos.container import get_container
from flamex_pos.infrastructure.database.operations import get_db_manager, init_db
from flamex_pos.infrastructure.logging.logging_config import setup_logging

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# report name -> (service method, accepts a start/end range)
REPORTS = {
    "daily-sales": ("get_daily_sales_report", False),
    "monthly-sales": ("get_monthly_sales_report", False),
    "yearly-sales": ("get_yearly_sales_report", False),
    "order-summary": ("get_order_summary_report", True),
    "order-timeline": ("get_order_timeline_report", True),
    "top-items": ("get_top_selling_items_report", True),
    "low-stock": ("get_low_stock_items_report", False),
    "top-customers": ("get_top_customers_report", True),
    "customer-loyalty": ("get_customer_loyalty_report", True),
    "rider-performance": ("get_rider_performance_report", True),
    "financial-summary": ("get_financial_summary_report", True),
    "profit-loss": ("get_profit_loss_report", True),
    "delivery-overview": ("get_delivery_overview_report", True),
    "delivery-areas": ("get_delivery_area_analysis", True),
    "delivery-cod": ("get_delivery_cod_orders", True),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Flamex POS backend")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create all database tables")
    commands.add_parser("health", help="Check the database connection")

    admin = commands.add_parser("create-admin", help="Create an admin user")
    admin.add_argument("--username", required=True)
    admin.add_argument("--password", required=True)
    admin.add_argument("--full-name", required=True)

    report = commands.add_parser("report", help="Print a report as JSON")
    report.add_argument("name", choices=sorted(REPORTS))
    report.add_argument("--start", help="Range start (YYYY-MM-DD)")
    report.add_argument("--end", help="Range end (YYYY-MM-DD)")
    report.add_argument(
        "--filter",
        dest="preset",
        choices=["today", "yesterday", "this_week", "this_month"],
        help="Named range; overrides --start and --end",
    )
    report.add_argument("--date", help="Day for daily-sales (YYYY-MM-DD)")
    report.add_argument("--year", type=int, help="Year for monthly/yearly sales")
    report.add_argument("--month", type=int, help="Month for monthly sales")
    report.add_argument(
        "--interval", default="daily", help="hourly, daily, weekly or monthly for order-timeline"
    )
    report.add_argument("--status", default="pending", help="pending or received for delivery-cod")
    report.add_argument("--limit", type=int, help="Row limit for top-items and top-customers")
    return parser


def _report_kwargs(args: argparse.Namespace) -> dict:
    _, ranged = REPORTS[args.name]
    kwargs: dict = {}
    if ranged:
        kwargs.update(start=args.start, end=args.end, preset=args.preset)
    if args.name == "daily-sales":
        kwargs["report_date"] = args.date
    elif args.name == "monthly-sales":
        kwargs.update(year=args.year, month=args.month)
    elif args.name == "yearly-sales":
        kwargs["year"] = args.year
    elif args.name == "order-timeline":
        kwargs["interval"] = args.interval
    elif args.name == "delivery-cod":
        kwargs["status"] = args.status
    elif args.name in ("top-items", "top-customers") and args.limit:
        kwargs["limit"] = args.limit
    return kwargs


def run_report(args: argparse.Namespace) -> tuple[ApiResponse, int]:
    method_name, _ = REPORTS[args.name]
    report = getattr(get_container().get_reports_service(), method_name)
    call = handle_service_errors(f"{args.name} report generated")(report)
    return call(**_report_kwargs(args))


def create_admin(args: argparse.Namespace) -> tuple[ApiResponse, int]:
    create = handle_service_errors("Admin user created", 201)(
        get_container().get_user_service().create_user
    )
    return create(
        {
            "username": args.username,
            "password": args.password,
            "full_name": args.full_name,
            "role": "admin",
        }
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging()
    config = get_config()
    logger.info("Configuration loaded for %s (%s)", config.app_name, config.environment)

    if args.command == "init-db":
        init_db()
        print("✅ Database tables created successfully!")
        return 0

    if args.command == "health":
        status = get_db_manager().health_check()
        print(ApiResponse.ok("Database health check", status).to_json(indent=2))
        return 0 if status["status"] == "healthy" else 1

    if args.command == "create-admin":
        response, status_code = create_admin(args)
    else:
        response, status_code = run_report(args)

    print(response.to_json(indent=2))
    return 0 if response.success else status_code // 100


if __name__ == "__main__":
    sys.exit(main())
