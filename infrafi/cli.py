"""Command-line interface for InfraFi position analytics."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .config import AppConfig, load_config
from .events import parse_user_history
from .fixed_point import parse_amount, validate_amount
from .logging_setup import configure_logging
from .models import Position, TimelinePoint
from .rate_model import (
    borrow_rate,
    describe_model,
    format_apy,
    format_utilization,
    rate_curve,
    supply_rate,
)
from .services import PositionAnalytics

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="infrafi",
        description="InfraFi lending position analytics",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root, "
        "built-in protocol parameters if absent)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    position = sub.add_parser("position", help="LTV and health factor of a position")
    position.add_argument("--collateral", required=True, help="Collateral value, in tokens")
    position.add_argument("--principal", required=True, help="Borrowed principal, in tokens")
    position.add_argument("--interest", default="0", help="Accrued interest, in tokens")

    validate = sub.add_parser("validate", help="Validate an amount against a maximum")
    validate.add_argument("amount", help="Amount as typed by the user")
    validate.add_argument("--max", dest="max_amount", required=True, help="Upper bound, in tokens")

    rates = sub.add_parser("rates", help="Show the interest rate model")
    rates.add_argument(
        "--utilization",
        type=float,
        default=None,
        help="Utilization in percent to evaluate the curve at",
    )

    timeline = sub.add_parser("timeline", help="User performance timeline")
    timeline.add_argument("address", help="Wallet address")
    timeline.add_argument(
        "--input",
        default=None,
        help="Saved subgraph response (JSON) instead of querying the subgraph",
    )

    return parser


def _load(config_path: str | None) -> AppConfig:
    if config_path is None and not DEFAULT_CONFIG_PATH.exists():
        logger.debug("No config.yaml found, using built-in protocol parameters")
        return AppConfig()
    return load_config(config_path)


def _format_timeline_row(point: TimelinePoint) -> str:
    return (
        f"{point.label:<20} supplied {point.supplied:>14,.4f}  "
        f"borrowed {point.borrowed:>14,.4f}  collateral {point.collateral:>14,.4f}  "
        f"interest +{point.supply_interest:,.4f}/-{point.borrow_interest:,.4f}  "
        f"net {point.net_position:>14,.4f}"
    )


def _cmd_position(args: argparse.Namespace, config: AppConfig) -> int:
    decimals = config.display.decimals
    try:
        position = Position(
            principal=parse_amount(args.principal, decimals),
            accrued_interest=parse_amount(args.interest, decimals),
            collateral_value=parse_amount(args.collateral, decimals),
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    analytics = PositionAnalytics(config)
    print(analytics.render_report(analytics.assess(position)))
    return 0


def _cmd_validate(args: argparse.Namespace, config: AppConfig) -> int:
    decimals = config.display.decimals
    try:
        max_amount = parse_amount(args.max_amount, decimals)
    except ValueError as e:
        print(f"Error: --max {e}", file=sys.stderr)
        return 2

    result = validate_amount(args.amount, max_amount, decimals)
    if result.is_valid:
        print("✅ Valid")
        return 0
    print(f"❌ {result.error}")
    return 1


def _cmd_rates(args: argparse.Namespace, config: AppConfig) -> int:
    model = config.protocol.interest_rate_model
    lender_share = config.protocol.revenue_sharing.lender_share

    for line in describe_model(model):
        print(line)

    if args.utilization is not None:
        utilization = round(args.utilization * 100)
        print("")
        print(f"At {format_utilization(utilization)} utilization:")
        print(f"  Borrow APY: {format_apy(borrow_rate(model, utilization))}")
        print(
            f"  Supply APY: {format_apy(supply_rate(model, utilization, lender_share))}"
        )

    print("")
    print("Utilization  Borrow APY")
    for utilization, rate in rate_curve(model):
        print(f"{format_utilization(utilization):>11}  {format_apy(rate):>10}")
    return 0


async def _cmd_timeline(args: argparse.Namespace, config: AppConfig) -> int:
    analytics = PositionAnalytics(config)

    if args.input:
        try:
            with open(args.input) as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Error: cannot read {args.input}: {e}", file=sys.stderr)
            return 2
        if isinstance(payload, dict) and "data" in payload:
            payload = payload["data"]
        history = parse_user_history(payload)
    else:
        if not config.subgraph.url:
            print("Error: subgraph.url is not configured", file=sys.stderr)
            return 2
        history = await analytics.fetch_history(args.address)

    points = analytics.timeline_from_history(history)
    if not points:
        print(f"No activity found for {args.address}")
        return 0

    for point in points:
        print(_format_timeline_row(point))

    if history.position is not None:
        print("")
        print(analytics.render_summary(analytics.summarize_user(history.position)))
    return 0


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = _load(args.config)

    if args.command == "position":
        return _cmd_position(args, config)
    if args.command == "validate":
        return _cmd_validate(args, config)
    if args.command == "rates":
        return _cmd_rates(args, config)
    if args.command == "timeline":
        return await _cmd_timeline(args, config)

    build_parser().print_help()
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
