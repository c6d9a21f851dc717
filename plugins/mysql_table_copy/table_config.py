"""
Table Configuration Utility Module

This module validates and quotes the table names a copy works on. Names are
given as 'table', 'db.table' or '`db`.`table`' and are checked before any SQL
text is built from them.
"""

import os
import re
from typing import Optional, Tuple
import logging

logger = logging.getLogger(__name__)

# MySQL identifier length limit
MAX_IDENTIFIER_LENGTH = 64

_IDENTIFIER_PATTERN = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_$]*$')
_QUOTED_PATTERN = re.compile(r'^`([^`]+)`\.`([^`]+)`$|^`([^`]+)`$')


def validate_sql_identifier(identifier: str, identifier_type: str = "identifier") -> str:
    """
    Validate a SQL identifier to prevent SQL injection.

    Args:
        identifier: The identifier to validate
        identifier_type: Type description for error messages (e.g., "table name")

    Returns:
        The validated identifier (unchanged if valid)

    Raises:
        ValueError: If the identifier is invalid

    Examples:
        >>> validate_sql_identifier("users")
        'users'
        >>> validate_sql_identifier("drop; --")  # doctest: +SKIP
        ValueError: Invalid identifier 'drop; --': ...
    """
    if not identifier:
        raise ValueError(f"Invalid {identifier_type}: cannot be empty")

    if len(identifier) > MAX_IDENTIFIER_LENGTH:
        raise ValueError(
            f"Invalid {identifier_type}: exceeds maximum length of {MAX_IDENTIFIER_LENGTH} characters "
            f"(got {len(identifier)} characters)"
        )

    if not _IDENTIFIER_PATTERN.match(identifier):
        raise ValueError(
            f"Invalid {identifier_type} '{identifier}': must start with letter or underscore "
            "and contain only alphanumeric characters, underscores and '$'"
        )

    return identifier


def parse_table_name(entry: str) -> Tuple[Optional[str], str]:
    """
    Parse a table name into (database, table).

    Handles:
    - Simple format: "users" -> (None, "users")
    - Qualified format: "shop.users" -> ("shop", "users")
    - Back-ticked format: "`shop`.`users`" -> ("shop", "users")

    Args:
        entry: Table name in one of the formats above

    Returns:
        Tuple of (database or None, table)

    Raises:
        ValueError: If the name is empty or any part is not a valid identifier
    """
    if entry is None:
        raise ValueError("Invalid table name: cannot be empty")

    entry = entry.strip()

    match = _QUOTED_PATTERN.match(entry)
    if match:
        if match.group(3):
            database, table = None, match.group(3)
        else:
            database, table = match.group(1), match.group(2)
    elif '.' in entry:
        database, table = entry.split('.', 1)
    else:
        database, table = None, entry

    if database is not None:
        validate_sql_identifier(database, "database name")
    validate_sql_identifier(table, "table name")

    return database, table


def validate_table_name(entry: str) -> str:
    """Validate a table name and return it in canonical 'db.table' / 'table' form."""
    database, table = parse_table_name(entry)
    return f"{database}.{table}" if database else table


def quote_identifier(identifier: str) -> str:
    """
    Quote a MySQL identifier with back-ticks.

    Embedded back-ticks are doubled, so the result is always a single identifier.

    Examples:
        >>> quote_identifier("created_at")
        '`created_at`'
        >>> quote_identifier("odd`name")
        '`odd``name`'
    """
    escaped = identifier.replace('`', '``')
    return f"`{escaped}`"


def quote_table_name(entry: str) -> str:
    """
    Validate a table name and render it back-tick-quoted.

    Examples:
        >>> quote_table_name("users")
        '`users`'
        >>> quote_table_name("shop.users")
        '`shop`.`users`'
    """
    database, table = parse_table_name(entry)
    if database:
        return f"{quote_identifier(database)}.{quote_identifier(table)}"
    return quote_identifier(table)


def resolve_table_pair(source_table: str, dest_table: Optional[str] = None) -> Tuple[str, str]:
    """
    Validate the source/destination pair, defaulting the destination to the source name.

    Args:
        source_table: Source table name
        dest_table: Destination table name (None or blank to reuse the source name)

    Returns:
        Tuple of canonical (source_table, dest_table)
    """
    source = validate_table_name(source_table)
    if dest_table is None or not dest_table.strip():
        _, table = parse_table_name(source)
        logger.info(f"No destination table given, using '{table}'")
        return source, table
    return source, validate_table_name(dest_table)


def load_default_table(env_var: str, default: str = "") -> str:
    """
    Read a default table name from the environment.

    Used for DAG Param defaults at parse time, so an invalid value is logged
    and dropped rather than raised.
    """
    value = os.environ.get(env_var, default).strip()
    if not value:
        return default
    try:
        return validate_table_name(value)
    except ValueError as e:
        logger.warning(f"Ignoring {env_var}: {e}")
        return default
