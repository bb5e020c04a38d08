"""Database models"""

from app.models.user import User, StaffRole
from app.models.customer import Customer
from app.models.table import Table
from app.models.schedule import ScheduleEntry, Weekday
from app.models.reservation import Reservation, ReservationStatus, ReservationChannel
from app.models.audit import AuditEntry, AuditAction

__all__ = [
    "User",
    "StaffRole",
    "Customer",
    "Table",
    "ScheduleEntry",
    "Weekday",
    "Reservation",
    "ReservationStatus",
    "ReservationChannel",
    "AuditEntry",
    "AuditAction",
]
