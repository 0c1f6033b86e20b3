"""
Root conftest.py for pytest configuration and shared fixtures.
"""
import json
import os
from typing import Callable
from unittest.mock import MagicMock, Mock

import pytest

# Keep the developer's shell from leaking DB_* settings into tests
for _key in [k for k in os.environ if k.upper().startswith("DB_")]:
    del os.environ[_key]

from pg_maintenance.core.config import Settings
from pg_maintenance.core.logging import configure_structlog


@pytest.fixture(autouse=True)
def reset_environment():
    """Reset environment variables after each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture(autouse=True)
def configure_logging():
    """Start every test from the production logging configuration."""
    configure_structlog()
    yield


@pytest.fixture
def settings() -> Settings:
    return Settings(
        host="db.internal",
        port=5433,
        name="appdb",
        username="maint",
        password="s3cret",
    )


@pytest.fixture
def fake_connection() -> Callable[..., MagicMock]:
    """
    Build a mock psycopg connection.

    ``rowcounts`` is consumed one item per DELETE; an exception instance in
    it is raised instead. ``errors`` maps a control statement (BEGIN, COMMIT,
    ROLLBACK) to the exception it raises.
    """

    def _factory(rowcounts=(), errors=None) -> MagicMock:
        conn = MagicMock(name="connection")
        conn.closed = False
        counts = iter(rowcounts)
        failures = errors or {}

        def _execute(query, params=None):
            if query in failures:
                raise failures[query]
            if query.startswith("DELETE"):
                result = next(counts)
                if isinstance(result, Exception):
                    raise result
                return Mock(rowcount=result)
            return Mock(rowcount=-1)

        conn.execute.side_effect = _execute
        return conn

    return _factory


@pytest.fixture
def log_events(configure_logging, capsys):
    """Parse the JSON lines written to the captured stdout and stderr."""

    def _read():
        captured = capsys.readouterr()
        out = [json.loads(line) for line in captured.out.splitlines() if line.strip()]
        err = [json.loads(line) for line in captured.err.splitlines() if line.strip()]
        return out, err

    return _read
