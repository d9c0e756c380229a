from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .db.audit import AuditLog
from .db.models import record

__all__ = [
    "AuditLog",
    "BusinessUnit",
    "Equipment",
    "EquipmentAssignment",
    "Manufacturer",
    "User",
]


@record
@dataclass(frozen=True)
class BusinessUnit:
    unit_id: int
    name: str
    point_of_contact: str
    address_line_one: str
    address_line_two: Optional[str]
    state: str
    city: str
    country: str


@record
@dataclass(frozen=True)
class Equipment:
    equipment_id: int
    business_unit_id: int
    manufacturer: str
    model: str
    description: Optional[str]
    date_received: date
    last_inventoried: Optional[date]


@record
@dataclass(frozen=True)
class EquipmentAssignment:
    assignment_id: int
    user_id: int
    equipment_id: int
    date_of_assignment: datetime


@record
@dataclass(frozen=True)
class Manufacturer:
    manufacturer_id: int
    name: str
    primary_service: str
    point_of_contact: str
    location: str
    date_added: datetime


@record
@dataclass(frozen=True)
class User:
    user_id: int
    business_unit_id: int
    username: str
    password_hash: str
    password_salt: str
    first_name: str
    last_name: str
    primary_email: str
