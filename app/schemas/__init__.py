"""Pydantic schemas for request/response validation"""

from app.schemas.common import ApiResponse
from app.schemas.auth import (
    Token,
    TokenPayload,
    LoginRequest,
    UserResponse,
    CustomerRegister,
    CustomerResponse,
)
from app.schemas.table import TableCreate, TableResponse
from app.schemas.schedule import (
    ScheduleCreate,
    ScheduleUpdate,
    ScheduleResponse,
    AvailableHoursResponse,
)
from app.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationResponse,
    StatusChangeRequest,
    AvailabilityResponse,
    ReservationStats,
)
from app.schemas.audit import AuditEntryResponse

__all__ = [
    "ApiResponse",
    "Token",
    "TokenPayload",
    "LoginRequest",
    "UserResponse",
    "CustomerRegister",
    "CustomerResponse",
    "TableCreate",
    "TableResponse",
    "ScheduleCreate",
    "ScheduleUpdate",
    "ScheduleResponse",
    "AvailableHoursResponse",
    "ReservationCreate",
    "ReservationUpdate",
    "ReservationResponse",
    "StatusChangeRequest",
    "AvailabilityResponse",
    "ReservationStats",
    "AuditEntryResponse",
]
