#!/usr/bin/env python3
"""Command-line interface for the payment sweep.

Usage:
    payment-sweep sweep
    payment-sweep sweep --grace-minutes 10 --format detailed_text
    payment-sweep sweep --format json --output sweep.json
    payment-sweep set-setting payment_qr_url https://example.com/qr.png
    payment-sweep get-setting payment_qr_url
"""

import argparse
import asyncio
import logging
import sys
from datetime import timedelta
from typing import Optional

from ..database import (
    SettingsRepository,
    close_db,
    get_db_context,
    init_db,
)
from .errors import InvalidConfiguration, StoreUnavailable
from .service import (
    ReconciliationSweep,
    get_grace_period,
    grace_period_from_minutes,
    validate_grace_period,
)
from .store import SQLAlchemyPaymentStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID_CONFIGURATION = 1
EXIT_STORE_UNAVAILABLE = 2


async def run_sweep_async(
    grace_period: timedelta,
    output_file: Optional[str] = None,
    output_format: str = "text",
    include_details: bool = True,
) -> int:
    """Run a sweep against the configured database.

    Args:
        grace_period: Minimum age before a pending payment is expired.
        output_file: Optional output file path.
        output_format: Output format ('json', 'csv', 'text', 'detailed_text').
        include_details: Include the pending listing in JSON output.

    Returns:
        Exit code.
    """
    await init_db()
    try:
        async with get_db_context() as session:
            sweep = ReconciliationSweep(SQLAlchemyPaymentStore(session))
            report = await sweep.run_sweep(grace_period)

            output = sweep.generate_report(
                report=report,
                format=output_format,
                include_details=include_details,
            )
    finally:
        await close_db()

    if output_file:
        with open(output_file, "w") as f:
            f.write(output)
        logger.info(f"Report written to {output_file}")
    else:
        print(output)

    return EXIT_OK


def run_sweep(
    grace_period: timedelta,
    output_file: Optional[str] = None,
    output_format: str = "text",
    include_details: bool = True,
) -> int:
    """Run a sweep (sync wrapper), mapping failures to exit codes."""
    try:
        return asyncio.run(run_sweep_async(
            grace_period=grace_period,
            output_file=output_file,
            output_format=output_format,
            include_details=include_details,
        ))
    except InvalidConfiguration as e:
        logger.error(str(e))
        return EXIT_INVALID_CONFIGURATION
    except StoreUnavailable as e:
        logger.error(f"Sweep aborted: {e}")
        return EXIT_STORE_UNAVAILABLE


async def set_setting_async(key: str, value: str) -> int:
    await init_db()
    try:
        async with get_db_context() as session:
            setting = await SettingsRepository(session).upsert(key, value)
            print(f"{setting.key} = {setting.value}")
    finally:
        await close_db()
    return EXIT_OK


async def get_setting_async(key: str) -> int:
    await init_db()
    try:
        async with get_db_context() as session:
            value = await SettingsRepository(session).get(key)
    finally:
        await close_db()

    if value is None:
        logger.error(f"Setting {key} is not set")
        return 1
    print(value)
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="payment-sweep",
        description="Expire pending payments that were never confirmed.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    sweep_parser = subparsers.add_parser(
        "sweep",
        help="Expire stale pending payments and print a report",
    )
    sweep_parser.add_argument(
        "--grace-minutes", "-g",
        type=float,
        default=None,
        help="Grace period in minutes (default: SWEEP_GRACE_PERIOD_MINUTES or 5)",
    )
    sweep_parser.add_argument(
        "--output", "-o",
        help="Output file path (default: stdout)",
    )
    sweep_parser.add_argument(
        "--format", "-f",
        choices=["json", "csv", "text", "detailed_text"],
        default="detailed_text",
        help="Output format (default: detailed_text)",
    )
    sweep_parser.add_argument(
        "--summary-only",
        action="store_true",
        help="Leave the pending listing out of JSON output",
    )

    setting_parser = subparsers.add_parser(
        "set-setting",
        help="Create or update an operational setting",
    )
    setting_parser.add_argument("key", help="Setting name, e.g. payment_qr_url")
    setting_parser.add_argument("value", help="New value")

    get_setting_parser = subparsers.add_parser(
        "get-setting",
        help="Print an operational setting",
    )
    get_setting_parser.add_argument("key", help="Setting name, e.g. payment_qr_url")

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Optional list of command-line arguments (for testing).

    Returns:
        Exit code.
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == "sweep":
        try:
            if parsed_args.grace_minutes is not None:
                grace_period = grace_period_from_minutes(parsed_args.grace_minutes)
            else:
                grace_period = get_grace_period()
            validate_grace_period(grace_period)
        except InvalidConfiguration as e:
            logger.error(str(e))
            return EXIT_INVALID_CONFIGURATION

        return run_sweep(
            grace_period=grace_period,
            output_file=parsed_args.output,
            output_format=parsed_args.format,
            include_details=not parsed_args.summary_only,
        )

    if parsed_args.command == "set-setting":
        return asyncio.run(set_setting_async(parsed_args.key, parsed_args.value))

    if parsed_args.command == "get-setting":
        return asyncio.run(get_setting_async(parsed_args.key))

    return 0


if __name__ == "__main__":
    sys.exit(main())
