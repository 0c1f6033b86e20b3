"""
Command-line entry point.

Deletes rows older than a threshold date from a single PostgreSQL table,
optionally in bounded batches, inside one transaction:

    pg-maintenance --password secret events 2024-01-01 --batch 1000
    DB_PASSWORD=secret pg-maintenance events --days 90
"""

from __future__ import annotations

import argparse
import sys
from datetime import date, datetime, timedelta, timezone
from typing import Sequence

from pydantic import ValidationError

from . import db
from .core.config import APP_NAME, APP_VERSION, SUPPORTED_SSL_MODES, Settings, validate_settings
from .core.errors import ConfigurationError, MaintenanceError
from .core.logging import configure_structlog, get_logger
from .models.deletion import DEFAULT_PREDICATE_COLUMN, DeletionRequest
from .services.batch_deleter import BatchDeleter

# CLI flag -> Settings field
_SETTINGS_FLAGS = {
    "host": "host",
    "port": "port",
    "dbname": "name",
    "user": "username",
    "password": "password",
    "sslmode": "sslmode",
    "connect_timeout": "connect_timeout",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pg-maintenance",
        description="Delete rows older than a given date from a PostgreSQL table "
        "using parameterized queries, optionally in batches.",
    )
    parser.add_argument("table_name", help="Table to delete rows from")
    parser.add_argument(
        "threshold",
        nargs="?",
        help="Delete rows whose predicate column is before this date (e.g. 2024-01-01)",
    )
    parser.add_argument("-H", "--host", help="Database host (default: localhost, env DB_HOST)")
    parser.add_argument("-P", "--port", type=int, help="Database port (default: 5432, env DB_PORT)")
    parser.add_argument("-D", "--dbname", help="Database name (default: postgres, env DB_NAME)")
    parser.add_argument("-U", "--user", help="Database user (default: postgres, env DB_USERNAME)")
    parser.add_argument("-W", "--password", help="Database password (env DB_PASSWORD)")
    parser.add_argument(
        "-B",
        "--batch",
        type=int,
        default=0,
        help="Maximum number of rows to delete per statement (default: 0, no batching)",
    )
    parser.add_argument(
        "-C",
        "--column",
        default=DEFAULT_PREDICATE_COLUMN,
        help=f"Date column compared with the threshold (default: {DEFAULT_PREDICATE_COLUMN})",
    )
    parser.add_argument(
        "--days",
        type=int,
        help="Derive the threshold as today (UTC) minus this many days",
    )
    parser.add_argument(
        "--sslmode",
        choices=SUPPORTED_SSL_MODES,
        help="TLS mode (default: require, env DB_SSLMODE)",
    )
    parser.add_argument(
        "--connect-timeout",
        type=int,
        help="Seconds to wait for the connection (default: 10, env DB_CONNECT_TIMEOUT)",
    )
    parser.add_argument("-V", "--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return parser


def threshold_from_days(days: int, today: date | None = None) -> str:
    if days < 0:
        raise ConfigurationError("--days must not be negative")
    today = today or datetime.now(timezone.utc).date()
    return (today - timedelta(days=days)).isoformat()


def build_settings(args: argparse.Namespace) -> Settings:
    """Merge CLI flags over DB_* environment variables and validate."""
    overrides = {
        field: getattr(args, flag)
        for flag, field in _SETTINGS_FLAGS.items()
        if getattr(args, flag, None) is not None
    }
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(_format_validation_error(exc)) from exc
    validate_settings(settings)
    return settings


def build_request(args: argparse.Namespace) -> DeletionRequest:
    if args.threshold is not None and args.days is not None:
        raise ConfigurationError("Pass either a threshold or --days, not both")
    if args.threshold is None and args.days is None:
        raise ConfigurationError("A threshold date or --days is required")

    threshold = args.threshold if args.threshold is not None else threshold_from_days(args.days)
    try:
        return DeletionRequest(
            table_name=args.table_name,
            threshold=threshold,
            batch_size=args.batch,
            column=args.column,
        )
    except ValidationError as exc:
        raise ConfigurationError(_format_validation_error(exc)) from exc


def _format_validation_error(exc: ValidationError) -> str:
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()))
        msg = str(err.get("msg", "")).removeprefix("Value error, ")
        messages.append(f"{field}: {msg}" if field else msg)
    return "; ".join(messages)


def main(argv: Sequence[str] | None = None) -> int:
    configure_structlog()
    logger = get_logger(__name__)

    args = build_parser().parse_args(argv)

    try:
        settings = build_settings(args)
        request = build_request(args)
        conn = db.connect(settings)
    except MaintenanceError as exc:
        logger.error(exc.message, context=exc.context)
        return exc.exit_code

    # The connection is released on every exit path, after the error is reported
    try:
        BatchDeleter(conn).run(request)
    except MaintenanceError as exc:
        logger.error(exc.message, context=exc.context)
        return exc.exit_code
    finally:
        db.close(conn)
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
