from .audit import AuditLog, AuditSink, AuditStatus
from .catalog import TableCatalog
from .connection import ConnectionManager
from .mapper import RecordMapper
from .models import FieldSpec, RecordSchema, record, schema_of
from .session import DbSession

__all__ = [
    "AuditLog",
    "AuditSink",
    "AuditStatus",
    "ConnectionManager",
    "DbSession",
    "FieldSpec",
    "RecordMapper",
    "RecordSchema",
    "TableCatalog",
    "record",
    "schema_of",
]
