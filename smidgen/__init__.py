from .config import DbConfig, DbCredentials, PrivilegeTier, load_db_config
from .db import AuditSink, AuditStatus, ConnectionManager, RecordMapper, TableCatalog

__all__ = [
    "AuditSink",
    "AuditStatus",
    "ConnectionManager",
    "DbConfig",
    "DbCredentials",
    "PrivilegeTier",
    "RecordMapper",
    "TableCatalog",
    "load_db_config",
]
