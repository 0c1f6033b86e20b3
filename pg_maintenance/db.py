from __future__ import annotations

import psycopg
from psycopg.conninfo import make_conninfo

from .core.config import Settings
from .core.errors import DatabaseConnectionError, describe_db_error
from .core.logging import get_logger


def build_conninfo(settings: Settings) -> str:
    """Render settings as a libpq connection string, passed through verbatim."""
    return make_conninfo(
        host=settings.host,
        port=settings.port,
        dbname=settings.name,
        user=settings.username,
        password=settings.password,
        sslmode=settings.sslmode,
        connect_timeout=settings.connect_timeout,
    )


def connect(settings: Settings) -> psycopg.Connection:
    """Open the run's single connection.

    The connection is in autocommit mode: the deletion engine issues BEGIN,
    COMMIT and ROLLBACK itself. Any failure to reach or authenticate against
    the server is fatal and is not retried.
    """
    try:
        conn = psycopg.connect(build_conninfo(settings), autocommit=True)
    except psycopg.Error as exc:
        raise DatabaseConnectionError(describe_db_error(exc)) from exc
    get_logger(__name__).info("Connected to the database.")
    return conn


def close(conn: psycopg.Connection | None) -> None:
    """Close the connection; safe to call more than once."""
    if conn is None or conn.closed:
        return
    logger = get_logger(__name__)
    try:
        conn.close()
    except psycopg.Error as exc:
        logger.error(describe_db_error(exc), context="Connection close error")
        return
    logger.info("Database connection closed.")
