#!/usr/bin/env python3
"""
Disable Cosmos DB Analytical Storage

This script finds every SQL container of a Cosmos DB account that has
analytical storage (Synapse Link analytical store) enabled and disables it.

Disabling analytical storage cannot be undone, so the script shows everything
it is about to change and asks for confirmation first, unless --yes is given.
With --list-enabled it only reports and never changes anything.

Run Stages:
1. Verify the Azure CLI is installed (cli backend) and the session is logged in
2. List databases (or the single --database-name) and their containers
3. Keep containers whose analyticalStorageTtl is present and non-zero
4. Preview mode: print the grouped listing and stop
5. Otherwise: print the listing, confirm, disable each container with retries,
   and print how many were disabled

Exit codes:
    0  Any completed run, including a declined confirmation, nothing enabled,
       and partial failures while disabling
    1  Missing tooling or configuration, or nothing could be enumerated
    2  Invalid command line arguments
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Callable

from dotenv import load_dotenv

# Load .env before local imports that need env vars
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from config.settings import config
from scripts.cosmos.analytical_storage_manager import AnalyticalStorageManager
from scripts.cosmos.confirmation import confirm_disable
from scripts.cosmos.cosmos_client import CosmosManagementClient, build_client
from scripts.cosmos.reporter import (
    RenderConfig,
    Reporter,
    save_enabled_csv,
    save_outcomes_csv,
)
from utils.logging import setup_analytical_storage_logging


def run_disable(
    client: CosmosManagementClient,
    reporter: Reporter,
    resource_group: str,
    account_name: str,
    database_name: str | None = None,
    list_enabled: bool = False,
    auto_confirm: bool = False,
    max_retries: int | None = None,
    retry_delay: float | None = None,
    report_csv: str | None = None,
    input_func: Callable[[str], str] = input,
    logger: logging.Logger | None = None,
) -> int:
    """
    Run one enumerate, confirm, disable, report cycle.

    Returns:
        int: Exit code (0 for every completed run)

    Raises:
        DatabaseNotFound: If database_name could not be retrieved
        EnumerationFailed: If nothing could be enumerated
    """
    client.ensure_logged_in()
    reporter.header(account_name, resource_group)

    manager = AnalyticalStorageManager(
        client,
        reporter=reporter,
        max_retries=max_retries,
        retry_delay=retry_delay,
        logger=logger,
    )
    result = manager.enumerate_enabled(database_name)

    if list_enabled:
        reporter.render_preview(result)
        if report_csv:
            save_enabled_csv(result, report_csv)
        return 0

    reporter.render_summary_header()

    if not result.enabled:
        reporter.nothing_to_disable()
        return 0

    reporter.render_pending(result.enabled)

    if not confirm_disable(result.enabled, auto_confirm, reporter, input_func):
        return 0

    run_result = manager.disable_all(result.enabled)
    reporter.completed(run_result)

    if report_csv:
        save_outcomes_csv(run_result, report_csv)

    return 0


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def _non_negative_float(value: str) -> float:
    number = float(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"cannot be negative, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Disable analytical storage on Cosmos DB SQL containers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -g my-rg -a my-account --list-enabled      # Only list containers with analytical storage
  %(prog)s -g my-rg -a my-account                     # Disable after confirmation
  %(prog)s -g my-rg -a my-account -d orders           # Restrict to one database
  %(prog)s -g my-rg -a my-account --yes               # Unattended, no confirmation prompt
  %(prog)s -g my-rg -a my-account --backend sdk       # Use the Azure SDK instead of the az CLI
  %(prog)s -g my-rg -a my-account --report-csv out.csv  # Also write results to CSV
        """,
    )

    parser.add_argument(
        "--resource-group",
        "-g",
        required=True,
        help="Resource group name containing the Cosmos DB account",
    )
    parser.add_argument(
        "--account-name",
        "-a",
        required=True,
        help="Cosmos DB account name",
    )
    parser.add_argument(
        "--database-name",
        "-d",
        default=None,
        help="Specific database name to target (default: all databases)",
    )
    parser.add_argument(
        "--list-enabled",
        "-l",
        action="store_true",
        help="List containers with analytical storage enabled without disabling",
    )
    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Skip the confirmation prompt before disabling analytical storage",
    )
    parser.add_argument(
        "--backend",
        choices=config.SUPPORTED_BACKENDS,
        default=config.CLIENT_BACKEND,
        help=f"Remote client to use (default: {config.CLIENT_BACKEND})",
    )
    parser.add_argument(
        "--subscription-id",
        default=config.AZURE_SUBSCRIPTION_ID,
        help="Azure subscription id (required for --backend sdk unless AZURE_SUBSCRIPTION_ID is set)",
    )
    parser.add_argument(
        "--max-retries",
        type=_positive_int,
        default=config.MAX_RETRIES,
        metavar="N",
        help=f"Attempts per remote call (default: {config.MAX_RETRIES})",
    )
    parser.add_argument(
        "--retry-delay",
        type=_non_negative_float,
        default=config.RETRY_DELAY_SECONDS,
        metavar="SECONDS",
        help=f"Fixed delay between attempts in seconds (default: {config.RETRY_DELAY_SECONDS})",
    )
    parser.add_argument(
        "--report-csv",
        default=None,
        metavar="FILE",
        help="Also write the listing (or the disable outcomes) to a CSV file",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=config.SUPPORTED_LOG_LEVELS,
        help=(
            f"Logging level (default: {config.LOG_LEVEL}). "
            "Retry diagnostics are logged at WARNING and are always shown"
        ),
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main function for the analytical storage tool.

    Returns:
        int: Exit code (0 for success, 1 for failure)
    """
    args = build_parser().parse_args(argv)

    try:
        config.validate()
    except ValueError as e:
        print(f"\nERROR: Invalid configuration: {e!s}", file=sys.stderr)
        return 1

    logger = setup_analytical_storage_logging(args.log_level)
    reporter = Reporter(RenderConfig.detect(no_color=args.no_color))

    try:
        client = build_client(
            args.backend,
            args.resource_group,
            args.account_name,
            subscription_id=args.subscription_id,
            logger=logger,
        )

        return run_disable(
            client,
            reporter,
            resource_group=args.resource_group,
            account_name=args.account_name,
            database_name=args.database_name,
            list_enabled=args.list_enabled,
            auto_confirm=args.yes,
            max_retries=args.max_retries,
            retry_delay=args.retry_delay,
            report_csv=args.report_csv,
            logger=logger,
        )

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 1
    except Exception as e:
        logger.error(f"Run failed: {e!s}")
        print(f"\nERROR: {e!s}", file=sys.stderr)
        print(
            f"Check the log file '{config.LOG_FILE}' for detailed error information.",
            file=sys.stderr,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
