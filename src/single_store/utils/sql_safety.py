"""
SQL safety utilities for preventing SQL injection.

Table and column names are the only caller-influenced text rendered into
statements (the table prefix and the entity column come from settings).
They are validated against a strict ASCII pattern and the dialect's length
limit before being quoted. Values always travel as driver parameters.
"""

import re

# Strict ASCII-only pattern for SQL identifiers
VALID_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

# (open quote, close quote, maximum identifier length)
DIALECTS = {
    "postgresql": ('"', '"', 63),
    "sqlserver": ("[", "]", 128),
}


def validate_identifier(identifier: str, max_length: int | None = None) -> None:
    """
    Validate a SQL identifier (table name, column name, etc.).

    Raises:
        ValueError: If the identifier is empty, too long or contains invalid characters
    """
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")

    if not isinstance(identifier, str) or not VALID_IDENTIFIER.match(identifier):
        raise ValueError(
            f"Invalid SQL identifier: {identifier!r}. "
            "Only ASCII letters, digits, and underscores are allowed, "
            "and must start with a letter or underscore."
        )

    if max_length is not None and len(identifier) > max_length:
        raise ValueError(
            f"SQL identifier {identifier!r} is {len(identifier)} characters long; "
            f"the limit is {max_length}"
        )


def validate_table_prefix(prefix: str) -> None:
    """An empty prefix is allowed; anything else must itself be a valid identifier."""
    if prefix:
        validate_identifier(prefix)


def quote_identifier(identifier: str, db_type: str) -> str:
    """
    Validate ``identifier`` for ``db_type`` and quote it.

    Raises:
        ValueError: If the identifier is invalid or the dialect is unknown
    """
    try:
        open_quote, close_quote, max_length = DIALECTS[db_type]
    except KeyError:
        raise ValueError(f"No identifier quoting for database type {db_type!r}") from None

    validate_identifier(identifier, max_length=max_length)
    return f"{open_quote}{identifier}{close_quote}"


def validate_integer_param(value: int, param_name: str, min_value: int = 0) -> None:
    """
    Validate an integer setting.

    Args:
        value: The value to validate
        param_name: Name of the parameter (for error messages)
        min_value: Minimum allowed value (default 0)

    Raises:
        ValueError: If the value is not an integer or below minimum
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(
            f"Invalid {param_name}: {value!r}. Must be an integer."
        )

    if value < min_value:
        raise ValueError(
            f"Invalid {param_name}: {value}. Must be >= {min_value}."
        )
