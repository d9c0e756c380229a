from __future__ import annotations

import dataclasses
import datetime as dt
import types
import typing
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, Optional

from sqlalchemy.types import (
    Boolean,
    Date,
    DateTime,
    Float,
    Integer,
    Numeric,
    String,
    TypeEngine,
)

from .helpers import _validate_identifier

SCHEMA_ATTR = "__record_schema__"

# bool before int: bool is an int subclass
_SQL_TYPES: tuple[tuple[type, type[TypeEngine]], ...] = (
    (bool, Boolean),
    (int, Integer),
    (float, Float),
    (Decimal, Numeric),
    (str, String),
    (dt.datetime, DateTime),
    (dt.date, Date),
)


def _sql_type_for(python_type: type) -> TypeEngine:
    for candidate, sql_type in _SQL_TYPES:
        if python_type is candidate:
            return sql_type()
    raise TypeError(f"unsupported record field type: {python_type!r}")


def _unwrap_optional(hint: Any) -> tuple[type, bool]:
    if typing.get_origin(hint) in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1 and len(typing.get_args(hint)) == 2:
            return args[0], True
        raise TypeError(f"unsupported union field type: {hint!r}")
    return hint, False


@dataclass(frozen=True)
class FieldSpec:
    """One record field and the column it maps to."""

    name: str
    column: str
    python_type: type
    sql_type: TypeEngine
    nullable: bool = False


@dataclass(frozen=True)
class RecordSchema:
    """
    Ordered field descriptor for a record kind.

    Field 0 is the primary identifier. Field order is column order in every
    generated statement.
    """

    record_type: type
    fields: tuple[FieldSpec, ...]

    @property
    def id_field(self) -> FieldSpec:
        return self.fields[0]

    @property
    def value_fields(self) -> tuple[FieldSpec, ...]:
        """Every field except the identifier."""
        return self.fields[1:]

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(f.column for f in self.fields)

    def values(self, record: Any) -> dict[str, Any]:
        """column -> value for every field of ``record``."""
        if not isinstance(record, self.record_type):
            raise TypeError(
                f"expected {self.record_type.__name__}, got {type(record).__name__}"
            )
        return {f.column: getattr(record, f.name) for f in self.fields}

    def from_row(self, row: Mapping[str, Any]) -> Any:
        """Build a record from a row mapping keyed by column name."""
        return self.record_type(**{f.name: row[f.column] for f in self.fields})


def record(cls: type) -> type:
    """
    Class decorator that resolves and attaches a ``RecordSchema``.

    The class must be a dataclass. Columns default to the field name and can
    be overridden with ``field(metadata={"column": "..."})``. Everything is
    checked once here, so the mapper never inspects a record's type at query
    time.

    Usage:
        @record
        @dataclass(frozen=True)
        class BusinessUnit:
            unit_id: int
            name: str
    """
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{cls.__name__} must be a dataclass to be used as a record")

    hints = typing.get_type_hints(cls)
    specs = []
    for f in dataclasses.fields(cls):
        python_type, nullable = _unwrap_optional(hints[f.name])
        column = _validate_identifier(f.metadata.get("column", f.name), "column")
        specs.append(
            FieldSpec(
                name=f.name,
                column=column,
                python_type=python_type,
                sql_type=_sql_type_for(python_type),
                nullable=nullable,
            )
        )

    if not specs:
        raise TypeError(f"{cls.__name__} has no fields; field 0 must be the identifier")

    setattr(cls, SCHEMA_ATTR, RecordSchema(record_type=cls, fields=tuple(specs)))
    return cls


def schema_of(shape: Any) -> RecordSchema:
    """Return the ``RecordSchema`` for a record class or instance."""
    schema: Optional[RecordSchema] = getattr(shape, SCHEMA_ATTR, None)
    if schema is None:
        name = shape.__name__ if isinstance(shape, type) else type(shape).__name__
        raise TypeError(f"{name} is not a record type; decorate it with @record")
    return schema
