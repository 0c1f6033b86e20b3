"""Allow-list validation for SQL identifiers embedded in statement text.

PostgreSQL cannot bind identifiers as query parameters, so table and column
names are interpolated into the DELETE statement. Only names made of ASCII
letters, digits and underscores are accepted; anything else is refused before
a connection is ever opened.
"""

from __future__ import annotations

import re

from ..core.errors import ConfigurationError

# PostgreSQL's NAMEDATALEN - 1; longer names are truncated by the server
MAX_IDENTIFIER_LENGTH = 63

_IDENTIFIER_RE = re.compile(r"[A-Za-z0-9_]+")


def is_valid_identifier(name: str | None) -> bool:
    if not name or len(name) > MAX_IDENTIFIER_LENGTH:
        return False
    return _IDENTIFIER_RE.fullmatch(name) is not None


def quote_identifier(name: str, kind: str = "identifier") -> str:
    """Validate ``name`` and return it double-quoted for use in SQL text."""
    if not is_valid_identifier(name):
        raise ConfigurationError(f"Invalid {kind}: {name!r}")
    return f'"{name}"'
