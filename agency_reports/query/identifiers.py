# agency_reports/query/identifiers.py
"""Identifier validation and quoting for dynamically built report queries.

Table, column and alias names cannot be bound as parameters, so every name
that ends up in query text is checked against a strict grammar here first
and only then quoted.
"""

import re
from typing import Any

from agency_reports.core.exceptions import InvalidIdentifier, InvalidTenant

# PostgreSQL truncates identifiers longer than 63 bytes
MAX_IDENTIFIER_LENGTH = 63

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
DATABASE_NAME_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*")

QUOTE_CHAR = '"'

RESERVED_KEYWORDS = frozenset(
    [
        "all", "analyse", "analyze", "and", "any", "array", "as", "asc", "asymmetric",
        "authorization", "binary", "both", "case", "cast", "check", "collate", "column",
        "constraint", "create", "cross", "current_catalog", "current_date", "current_role",
        "current_schema", "current_time", "current_timestamp", "current_user", "default",
        "deferrable", "desc", "distinct", "do", "else", "end", "except", "false", "fetch",
        "for", "foreign", "from", "grant", "group", "having", "in", "initially", "intersect",
        "into", "lateral", "leading", "left", "like", "limit", "localtime", "localtimestamp",
        "not", "null", "offset", "on", "only", "or", "order", "outer", "over", "overlaps",
        "placing", "primary", "references", "returning", "right", "select", "session_user",
        "similar", "some", "symmetric", "table", "then", "to", "trailing", "true", "union",
        "unique", "user", "using", "variadic", "verbose", "when", "where", "window", "with",
    ]
)


def is_valid_identifier(name: Any) -> bool:
    """Check a bare name against the identifier grammar without raising."""
    return (
        isinstance(name, str)
        and 0 < len(name) <= MAX_IDENTIFIER_LENGTH
        and IDENTIFIER_PATTERN.fullmatch(name) is not None
    )


def validate_identifier(name: Any, kind: str = "identifier") -> str:
    """
    Validate a table, column or alias name.

    Args:
        name: The candidate name, exactly as supplied by the caller
        kind: Label used in the error message ('table', 'column', ...)

    Returns:
        The name, unchanged

    Raises:
        InvalidIdentifier: If the name is empty, too long, dotted or contains
            anything outside letters, digits and underscores
    """
    if not isinstance(name, str) or not name:
        raise InvalidIdentifier(f"Invalid {kind}: must be a non-empty string")

    if len(name) > MAX_IDENTIFIER_LENGTH:
        raise InvalidIdentifier(
            f"Invalid {kind}: must be at most {MAX_IDENTIFIER_LENGTH} characters"
        )

    if IDENTIFIER_PATTERN.fullmatch(name) is None:
        raise InvalidIdentifier(
            f"Invalid {kind} {name!r}: only letters, digits and underscores are allowed, "
            "and it must start with a letter or underscore"
        )

    return name


def quote_identifier(name: str) -> str:
    """
    Quote an already-validated identifier.

    Passing a name that was not validated is a programming error and raises
    ValueError rather than InvalidIdentifier.
    """
    if not is_valid_identifier(name):
        raise ValueError("quote_identifier() requires a validated identifier")

    escaped = name.replace(QUOTE_CHAR, QUOTE_CHAR * 2)
    return f"{QUOTE_CHAR}{escaped}{QUOTE_CHAR}"


def validate_database_name(name: Any) -> str:
    """
    Validate a tenant database name and return it trimmed.

    Database names may also contain hyphens, but must not be a reserved
    PostgreSQL keyword.
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidTenant("Database name must be a non-empty string")

    trimmed = name.strip()

    if len(trimmed) > MAX_IDENTIFIER_LENGTH:
        raise InvalidTenant(
            f"Database name must be between 1 and {MAX_IDENTIFIER_LENGTH} characters"
        )

    if DATABASE_NAME_PATTERN.fullmatch(trimmed) is None:
        raise InvalidTenant(
            "Database name contains invalid characters. Only letters, numbers, underscores, "
            "and hyphens are allowed, and it must start with a letter or underscore."
        )

    if trimmed.lower() in RESERVED_KEYWORDS:
        raise InvalidTenant(f"Database name cannot be a reserved PostgreSQL keyword: {trimmed}")

    return trimmed
