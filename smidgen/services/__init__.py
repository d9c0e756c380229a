from .base import RecordReader, RecordService
from .health import HealthCheck, HealthReport, HealthService
from .records import (
    AuditLogService,
    BusinessUnitService,
    EquipmentAssignmentService,
    EquipmentService,
    ManufacturerService,
    UserService,
)

__all__ = [
    "AuditLogService",
    "BusinessUnitService",
    "EquipmentAssignmentService",
    "EquipmentService",
    "HealthCheck",
    "HealthReport",
    "HealthService",
    "ManufacturerService",
    "RecordReader",
    "RecordService",
    "UserService",
]
