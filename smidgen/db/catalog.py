from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import InvalidTableError
from .helpers import _validate_identifier

logger = logging.getLogger(__name__)


class TableCatalog:
    """
    Allow-list of table names, read live from the schema's catalog.

    Table identifiers cannot be bind parameters, so every generated statement
    takes its table name from ``validate()``, which only ever returns a name
    the catalog itself reported. The catalog is fetched on every call; there
    is no cache to go stale.
    """

    def __init__(self, schema: str) -> None:
        self.schema = _validate_identifier(schema, "schema")

    def tables(self, engine: Engine) -> frozenset[str]:
        """Base tables (views excluded) currently in the schema."""
        return frozenset(inspect(engine).get_table_names(schema=self.schema))

    def validate(self, engine: Engine, table: str) -> str:
        """
        Check ``table`` against the live catalog and return the catalog's spelling.

        An exact match wins; otherwise a single case-insensitive match is
        accepted (PostgreSQL folds unquoted names to lower case).

        Raises:
            InvalidTableError: If the name is malformed, absent, ambiguous, or the
                catalog cannot be read. Fails closed in every case.
        """
        try:
            _validate_identifier(table, "table")
        except (TypeError, ValueError) as exc:
            raise InvalidTableError(str(exc)) from exc

        try:
            known = self.tables(engine)
        except SQLAlchemyError as exc:
            logger.error("failed to read table catalog for schema %s: %s", self.schema, exc)
            raise InvalidTableError(
                f"unable to verify table {table!r}: catalog query failed"
            ) from exc

        if table in known:
            return table

        folded = [name for name in known if name.lower() == table.lower()]
        if len(folded) == 1:
            return folded[0]

        raise InvalidTableError(f"table {table!r} does not exist in schema {self.schema}")
