"""
Error taxonomy for a maintenance run.

Every fatal condition is a MaintenanceError carrying:
- a human-readable message (usually the database server's own error text)
- a context label naming the phase that failed
- the process exit code to report
"""

from __future__ import annotations


class MaintenanceError(Exception):
    context = "Maintenance error"
    exit_code = 1

    def __init__(self, message: str, context: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if context is not None:
            self.context = context


class ConfigurationError(MaintenanceError, ValueError):
    context = "Configuration error"


class DatabaseConnectionError(MaintenanceError):
    context = "Database connection error"


class TransactionStartError(MaintenanceError):
    context = "Transaction start error"


class QueryExecutionError(MaintenanceError):
    context = "Query execution error"


class CommitError(MaintenanceError):
    context = "Transaction commit error"


def describe_db_error(exc: BaseException) -> str:
    """Return the server's error text for a psycopg exception."""
    diag = getattr(exc, "diag", None)
    primary = getattr(diag, "message_primary", None) if diag is not None else None
    lines = (primary or str(exc)).strip().splitlines()
    # libpq appends hints on later lines; only the first names the failure
    return lines[0].strip() if lines else exc.__class__.__name__
