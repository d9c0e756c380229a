from __future__ import annotations

from ..db.mapper import RecordMapper
from ..models import (
    AuditLog,
    BusinessUnit,
    Equipment,
    EquipmentAssignment,
    Manufacturer,
    User,
)
from .base import RecordReader, RecordService


class BusinessUnitService(RecordService):
    table = "businessunit"
    id_column = "unit_id"
    record_type = BusinessUnit
    noun = "BUSINESS_UNIT"
    plural = "BUSINESS_UNITS"
    required = ("name", "point_of_contact", "address_line_one", "state", "city", "country")


class EquipmentService(RecordService):
    table = "equipment"
    id_column = "equipment_id"
    record_type = Equipment
    noun = "EQUIPMENT"
    plural = "EQUIPMENT"
    required = ("business_unit_id", "manufacturer", "model", "date_received")


class EquipmentAssignmentService(RecordService):
    table = "equipment_assignment"
    id_column = "assignment_id"
    record_type = EquipmentAssignment
    noun = "EQUIPMENT_ASSIGNMENT"
    plural = "EQUIPMENT_ASSIGNMENTS"
    required = ("user_id", "equipment_id", "date_of_assignment")


class ManufacturerService(RecordService):
    table = "manufacturers"
    id_column = "manufacturer_id"
    record_type = Manufacturer
    noun = "MANUFACTURER"
    plural = "MANUFACTURERS"
    required = ("name", "primary_service", "point_of_contact", "location", "date_added")


class UserService(RecordService):
    table = "smidgenusers"
    id_column = "user_id"
    record_type = User
    noun = "USER"
    plural = "USERS"
    required = (
        "business_unit_id",
        "username",
        "password_hash",
        "password_salt",
        "first_name",
        "last_name",
        "primary_email",
    )


class AuditLogService(RecordReader):
    """Audit rows are written only by the AuditSink; this side reads them."""

    table = "auditlog"
    id_column = "log_id"
    record_type = AuditLog
    noun = "AUDIT_LOG"
    plural = "AUDIT_LOGS"

    def __init__(self, mapper: RecordMapper) -> None:
        super().__init__(mapper)
        self.table = mapper.manager.config.audit_table
