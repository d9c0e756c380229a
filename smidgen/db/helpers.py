from __future__ import annotations

import re

from sqlalchemy.exc import DBAPIError

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

# SQLSTATE class 23 code for foreign key violations (PostgreSQL, ANSI)
FOREIGN_KEY_SQLSTATE = "23503"
# ER_ROW_IS_REFERENCED_2 / ER_NO_REFERENCED_ROW_2
MYSQL_FOREIGN_KEY_ERRNOS = frozenset({1451, 1452})


def _validate_identifier(name: str, identifier_type: str = "identifier") -> str:
    """
    Validate that an identifier (schema/table/column name) is safe for SQL interpolation.

    Identifiers cannot be bind parameters, so every name that ends up inside a
    generated statement passes through here first. We restrict to
    alphanumeric + underscore, which is a subset of what MySQL, PostgreSQL and
    SQLite accept unquoted.

    Table names additionally have to exist in the live catalog
    (see ``TableCatalog.validate``); format checking alone does not make a
    caller-supplied table name trusted.

    Args:
        name: The identifier to validate
        identifier_type: Description of the identifier (for error messages)

    Returns:
        The validated identifier (unchanged if valid)

    Raises:
        TypeError: If identifier is not a string
        ValueError: If identifier contains unsafe characters or is invalid

    Example:
        >>> _validate_identifier("businessunit", "table")
        'businessunit'
        >>> _validate_identifier("'; DROP TABLE--", "table")
        ValueError: Invalid table '; DROP TABLE--': ...
    """
    if not isinstance(name, str):
        raise TypeError(f"{identifier_type} must be a string, got {type(name).__name__}")

    if not name:
        raise ValueError(f"{identifier_type} cannot be empty")

    if not _IDENTIFIER_RE.match(name):
        raise ValueError(
            f"Invalid {identifier_type} {name!r}: "
            "must start with letter/underscore and contain only alphanumeric characters and underscores"
        )

    # MySQL caps identifiers at 64 characters, PostgreSQL at 63
    if len(name) > 63:
        raise ValueError(f"{identifier_type} {name!r} exceeds the 63-character identifier limit")

    return name


def qualified_table(schema: str, table: str) -> str:
    """Return ``schema.table`` after validating both parts."""
    return f"{_validate_identifier(schema, 'schema')}.{_validate_identifier(table, 'table')}"


def is_foreign_key_violation(exc: BaseException) -> bool:
    """
    Report whether a driver error is a foreign key constraint violation.

    Checks, in order: the SQLSTATE exposed by psycopg (``pgcode``/``sqlstate``),
    the MySQL error number in ``args[0]``, and finally the error text, which is
    the only signal SQLite gives ("FOREIGN KEY constraint failed").
    """
    orig = exc.orig if isinstance(exc, DBAPIError) else exc
    if orig is None:
        return False

    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate == FOREIGN_KEY_SQLSTATE:
        return True

    args = getattr(orig, "args", None) or ()
    if args and args[0] in MYSQL_FOREIGN_KEY_ERRNOS:
        return True

    return "foreign key constraint" in str(orig).lower()
