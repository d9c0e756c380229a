"""
Per-entity services over the generic RecordMapper.

Services own what the mapper deliberately does not: action labels for the
audit trail, required-field checks, and the empty-list policy (an empty
listing is NotFoundError for every entity, which an HTTP layer maps to 404).
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from ..db.mapper import RecordMapper
from ..errors import NotFoundError, RequiredFieldError

logger = logging.getLogger(__name__)


def _is_zero(value: Any) -> bool:
    return value is None or value == "" or value == 0


class RecordReader:
    """Read-only access to one record kind."""

    table: ClassVar[str]
    id_column: ClassVar[str]
    record_type: ClassVar[type]
    noun: ClassVar[str]
    plural: ClassVar[str]

    def __init__(self, mapper: RecordMapper) -> None:
        self.mapper = mapper

    def list_all(self) -> list[Any]:
        """
        Raises:
            NotFoundError: If the table holds no rows
        """
        rows = self.mapper.fetch_all(
            self.table, self.record_type, action=f"GET_{self.plural}"
        )
        if not rows:
            raise NotFoundError("no records found")
        return rows

    def get(self, record_id: Any) -> Any:
        return self.mapper.fetch_by_id(
            self.table,
            self.id_column,
            record_id,
            self.record_type,
            action=f"GET_{self.noun}_BY_ID",
        )


class RecordService(RecordReader):
    """Full CRUD for one record kind."""

    required: ClassVar[tuple[str, ...]] = ()

    def check_required(self, item: Any) -> None:
        if not isinstance(item, self.record_type):
            raise TypeError(
                f"expected {self.record_type.__name__}, got {type(item).__name__}"
            )
        for name in self.required:
            if _is_zero(getattr(item, name)):
                raise RequiredFieldError(name)

    def add(self, item: Any) -> Any:
        """Insert ``item`` and return the identifier the store assigned."""
        self.check_required(item)
        new_id = self.mapper.insert(self.table, item, action=f"ADD_{self.noun}")
        logger.info("added %s %s=%s", self.table, self.id_column, new_id)
        return new_id

    def update(self, record_id: Any, item: Any) -> None:
        self.check_required(item)
        self.mapper.update(
            self.table, self.id_column, record_id, item, action=f"UPDATE_{self.noun}"
        )

    def delete(self, record_id: Any) -> None:
        self.mapper.delete(
            self.table, self.id_column, record_id, action=f"DELETE_{self.noun}"
        )
