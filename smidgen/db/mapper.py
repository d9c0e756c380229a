from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy import bindparam, column, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.sql.expression import TextualSelect

from ..config import PrivilegeTier
from ..errors import (
    DbWriteError,
    ForeignKeyViolation,
    InvalidTableError,
    NotFoundError,
    QueryError,
)
from .audit import AuditSink, AuditStatus
from .catalog import TableCatalog
from .connection import ConnectionManager
from .helpers import _validate_identifier, is_foreign_key_violation, qualified_table
from .metrics import observe_db_operation
from .models import FieldSpec, RecordSchema, schema_of
from .session import DbSession

logger = logging.getLogger(__name__)

# bind name for the WHERE <id_column> = ... predicate
_PK_PARAM = "pk_value"


def _typed(fields: tuple[FieldSpec, ...]) -> list:
    return [bindparam(f.column, type_=f.sql_type) for f in fields]


class RecordMapper:
    """
    Generic CRUD over any ``@record`` type against one schema.

    Every operation:
    1) acquires the engine for the tier the operation needs
       (read for fetches, write for insert/update, delete for delete),
    2) validates the table against the live catalog,
    3) builds and runs its statement in its own transaction,
    4) submits an audit entry for the outcome, whatever it was.

    Column lists, bind parameters and result types all come from the record's
    ``RecordSchema``; nothing is inferred from the table itself.

    Errors are surfaced typed and never retried:
    - InvalidTableError: table/column rejected, no SQL built
    - QueryError: read-path failure
    - NotFoundError: zero rows matched/affected
    - ForeignKeyViolation: write broke a foreign key
    - DbWriteError: any other write failure
    - DbConnectionError / InvalidPrivilegeError: from the ConnectionManager
    """

    def __init__(
        self,
        manager: ConnectionManager,
        catalog: Optional[TableCatalog] = None,
        audit: Optional[AuditSink] = None,
    ) -> None:
        self.manager = manager
        self.catalog = catalog or TableCatalog(manager.schema)
        self.audit = audit

    @contextmanager
    def _operation(
        self,
        operation: str,
        table: str,
        tier: PrivilegeTier,
        action: Optional[str],
    ) -> Iterator[tuple[Engine, str]]:
        label = action or f"{operation.upper()} on: {table}"
        metric_table = "invalid"
        status = AuditStatus.SUCCESS
        start = time.monotonic()
        try:
            engine = self.manager.acquire(tier)
            canonical = self.catalog.validate(engine, table)
            metric_table = canonical
            yield engine, qualified_table(self.catalog.schema, canonical)
        except NotFoundError:
            status = AuditStatus.WARN
            raise
        except Exception:
            status = AuditStatus.FAILED
            raise
        finally:
            observe_db_operation(
                metric_table, operation, status.value.lower(), time.monotonic() - start
            )
            if self.audit is not None:
                self.audit.record(label, status)

    @staticmethod
    def _id_column(id_column: str) -> str:
        try:
            return _validate_identifier(id_column, "id column")
        except (TypeError, ValueError) as exc:
            raise InvalidTableError(str(exc)) from exc

    @staticmethod
    def _select(schema: RecordSchema, target: str, where: str = "") -> TextualSelect:
        cols = ", ".join(schema.columns)
        stmt = text(f"SELECT {cols} FROM {target}{where}")
        return stmt.columns(*[column(f.column, f.sql_type) for f in schema.fields])

    def fetch_all(self, table: str, shape: type, *, action: Optional[str] = None) -> list[Any]:
        """
        Return every row of ``table`` as ``shape`` records; empty list when there are none.
        """
        schema = schema_of(shape)
        with self._operation("fetch_all", table, PrivilegeTier.READ, action) as (engine, target):
            stmt = self._select(schema, target)
            try:
                with DbSession(engine) as session:
                    rows = session.fetch_all(stmt)
                return [schema.from_row(row) for row in rows]
            except (SQLAlchemyError, KeyError) as exc:
                raise QueryError(f"failed to query rows from table {target}: {exc}") from exc

    def fetch_by_id(
        self,
        table: str,
        id_column: str,
        id_value: Any,
        shape: type,
        *,
        action: Optional[str] = None,
    ) -> Any:
        schema = schema_of(shape)
        with self._operation("fetch_by_id", table, PrivilegeTier.READ, action) as (engine, target):
            id_column = self._id_column(id_column)
            stmt = self._select(schema, target, f" WHERE {id_column} = :{_PK_PARAM}")
            try:
                with DbSession(engine) as session:
                    row = session.fetch_one(stmt, {_PK_PARAM: id_value})
                result = schema.from_row(row) if row is not None else None
            except (SQLAlchemyError, KeyError) as exc:
                raise QueryError(f"failed to query rows from table {target}: {exc}") from exc

            if result is None:
                raise NotFoundError(f"no row with {id_column}={id_value!r} in table {target}")
            return result

    def insert(self, table: str, record: Any, *, action: Optional[str] = None) -> Any:
        """
        Insert ``record`` and return its new identifier.

        The identifier field of ``record`` is ignored: the store's own
        auto-increment/sequence assigns it, so concurrent inserts never
        collide. The key is read back with RETURNING where the dialect
        supports it, ``lastrowid`` otherwise.
        """
        schema = schema_of(record)
        values = schema.values(record)
        fields = schema.value_fields
        with self._operation("insert", table, PrivilegeTier.WRITE, action) as (engine, target):
            if not fields:
                raise DbWriteError(f"{schema.record_type.__name__} has no columns besides its identifier")

            cols = ", ".join(f.column for f in fields)
            placeholders = ", ".join(f":{f.column}" for f in fields)
            sql = f"INSERT INTO {target} ({cols}) VALUES ({placeholders})"
            try:
                with DbSession(engine) as session:
                    returning = session.supports_returning
                    if returning:
                        sql += f" RETURNING {schema.id_field.column}"
                    stmt = text(sql).bindparams(*_typed(fields))
                    new_id = session.insert(
                        stmt, {f.column: values[f.column] for f in fields}, returning=returning
                    )
            except IntegrityError as exc:
                if is_foreign_key_violation(exc):
                    raise ForeignKeyViolation(
                        f"insert into {target} references a missing row: {exc.orig}"
                    ) from exc
                raise DbWriteError(f"failed to insert into {target}: {exc}") from exc
            except SQLAlchemyError as exc:
                raise DbWriteError(f"failed to insert into {target}: {exc}") from exc

            logger.debug("inserted %s=%s into %s", schema.id_field.column, new_id, target)
            return new_id

    def update(
        self,
        table: str,
        id_column: str,
        id_value: Any,
        record: Any,
        *,
        action: Optional[str] = None,
    ) -> None:
        """
        Overwrite every non-identifier field of the row keyed by ``id_column``.

        The identifier itself is never updated through this path.
        """
        schema = schema_of(record)
        values = schema.values(record)
        fields = schema.value_fields
        with self._operation("update", table, PrivilegeTier.WRITE, action) as (engine, target):
            id_column = self._id_column(id_column)
            if not fields:
                raise DbWriteError(f"{schema.record_type.__name__} has no columns besides its identifier")

            set_clause = ", ".join(f"{f.column} = :{f.column}" for f in fields)
            stmt = text(
                f"UPDATE {target} SET {set_clause} WHERE {id_column} = :{_PK_PARAM}"
            ).bindparams(*_typed(fields))
            params = {f.column: values[f.column] for f in fields}
            params[_PK_PARAM] = id_value
            try:
                with DbSession(engine) as session:
                    rowcount = session.execute(stmt, params)
            except IntegrityError as exc:
                if is_foreign_key_violation(exc):
                    raise ForeignKeyViolation(
                        f"update of {target} references a missing row: {exc.orig}"
                    ) from exc
                raise DbWriteError(f"failed to update {target}: {exc}") from exc
            except SQLAlchemyError as exc:
                raise DbWriteError(f"failed to update {target}: {exc}") from exc

            if rowcount == 0:
                raise NotFoundError(f"item with {id_column}={id_value!r} does not exist in table {target}")

    def delete(
        self,
        table: str,
        id_column: str,
        id_value: Any,
        *,
        action: Optional[str] = None,
    ) -> None:
        with self._operation("delete", table, PrivilegeTier.DELETE, action) as (engine, target):
            id_column = self._id_column(id_column)
            stmt = text(f"DELETE FROM {target} WHERE {id_column} = :{_PK_PARAM}")
            try:
                with DbSession(engine) as session:
                    rowcount = session.execute(stmt, {_PK_PARAM: id_value})
            except IntegrityError as exc:
                if is_foreign_key_violation(exc):
                    raise ForeignKeyViolation(
                        f"row {id_column}={id_value!r} in {target} is still referenced: {exc.orig}"
                    ) from exc
                raise DbWriteError(f"failed to delete from {target}: {exc}") from exc
            except SQLAlchemyError as exc:
                raise DbWriteError(f"failed to delete from {target}: {exc}") from exc

            if rowcount == 0:
                raise NotFoundError(f"item with {id_column}={id_value!r} does not exist in table {target}")
