#!/usr/bin/env python3
"""CLI entry point for Tempest weather alerts."""

import argparse
import logging
import os
import sys

from .alerters import create_alerter_from_config
from .config import config
from .evaluator import AlertEvaluator
from .scheduler import AlertScheduler
from tempest_common.store import WeatherStore

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_scheduler(db_path: str | None = None, console: bool = False) -> AlertScheduler:
    store = WeatherStore(db_path=db_path or config.TEMPEST_DB_PATH)
    alerter = create_alerter_from_config(console_fallback=console)
    return AlertScheduler(store, evaluator=AlertEvaluator(store, alerter=alerter))


def serve(args: argparse.Namespace) -> int:
    """Run the HTTP API with the scheduler on a background thread."""
    from tempest_dashboard.app import create_app

    overrides = {"ENABLE_SCHEDULER": True, "CONSOLE_ALERTS": args.console}
    if args.db_path:
        overrides["TEMPEST_DB_PATH"] = args.db_path
    if args.interval:
        overrides["SWEEP_INTERVAL_SECONDS"] = args.interval

    app = create_app(overrides)
    try:
        app.run(host=args.host, port=args.port)
    finally:
        app.scheduler.stop()
    return 0


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Tempest Weather Alerts - evaluate station readings against alert rules"
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--once",
        action="store_true",
        help="Run a single alert sweep and exit",
    )
    mode.add_argument(
        "--cleanup",
        action="store_true",
        help=f"Delete history older than {config.HISTORY_RETENTION_DAYS} days and exit",
    )
    mode.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP API with the scheduler in the background",
    )

    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help=f"Sweep interval in seconds (default: {config.SWEEP_INTERVAL_SECONDS})",
    )
    parser.add_argument(
        "--db-path",
        type=str,
        default=None,
        help=f"Database path (default: {config.TEMPEST_DB_PATH})",
    )
    parser.add_argument(
        "--console",
        action="store_true",
        help="Log notifications to the console for unconfigured channels",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="API bind address (with --serve)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", 5000)),
        help="API port (with --serve)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()
    setup_logging(args.verbose)

    logger.info("Tempest Weather Alerts")
    logger.info(f"  Database: {args.db_path or config.TEMPEST_DB_PATH}")
    logger.info(f"  Email: {'configured' if config.is_email_configured() else 'not configured'}")
    logger.info(f"  SMS: {'configured' if config.is_sms_configured() else 'not configured'}")

    if args.serve:
        return serve(args)

    scheduler = build_scheduler(args.db_path, console=args.console)

    if args.once:
        triggered = scheduler.check_alerts()
        logger.info(f"Alerts triggered: {triggered}")
        return 0

    if args.cleanup:
        deleted = scheduler.cleanup_old_history()
        logger.info(f"History rows deleted: {deleted}")
        return 0

    try:
        scheduler.run_continuous(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
