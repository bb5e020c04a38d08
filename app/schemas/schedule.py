"""Operating hours schemas"""

from datetime import time
from typing import Optional, List
from pydantic import BaseModel, field_validator

from app.models.schedule import Weekday
from app.schemas.common import parse_time


def _weekday(value):
    if isinstance(value, str):
        value = value.strip().lower()
    try:
        return Weekday(value)
    except ValueError:
        raise ValueError("Día inválido (lunes..domingo)")


class ScheduleCreate(BaseModel):
    """Create schedule entry"""
    dia: Weekday
    hora_apertura: time
    hora_cierre: time

    @field_validator("dia", mode="before")
    @classmethod
    def validate_dia(cls, value):
        return _weekday(value)

    @field_validator("hora_apertura", "hora_cierre", mode="before")
    @classmethod
    def validate_hours(cls, value):
        return parse_time(value)


class ScheduleUpdate(BaseModel):
    """Update schedule entry"""
    dia: Optional[Weekday] = None
    hora_apertura: Optional[time] = None
    hora_cierre: Optional[time] = None

    @field_validator("dia", mode="before")
    @classmethod
    def validate_dia(cls, value):
        return None if value is None else _weekday(value)

    @field_validator("hora_apertura", "hora_cierre", mode="before")
    @classmethod
    def validate_hours(cls, value):
        return None if value is None else parse_time(value)


class ScheduleResponse(BaseModel):
    """Schedule entry response"""
    id_horario: int
    dia: Weekday
    hora_apertura: time
    hora_cierre: time

    class Config:
        from_attributes = True


class AvailableHoursResponse(BaseModel):
    """Bookable start times for a weekday"""
    dia: Weekday
    horas: List[time]
