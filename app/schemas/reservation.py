"""Reservation schemas"""

from datetime import date, datetime, time
from typing import Optional
from pydantic import BaseModel, field_validator

from app.models.reservation import ReservationStatus, ReservationChannel
from app.schemas.common import parse_date, parse_time


def _positive_int(value, message: str) -> int:
    if isinstance(value, bool):
        raise ValueError(message)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(message)
    if number != value and str(number) != str(value).strip():
        raise ValueError(message)
    if number < 1:
        raise ValueError(message)
    return number


class ReservationCreate(BaseModel):
    """Create reservation request"""
    id_mesa: int
    fecha_reserva: date
    hora_reserva: time
    numero_personas: int
    notas: Optional[str] = None
    estado: Optional[ReservationStatus] = None
    tipo_reserva: Optional[ReservationChannel] = None

    @field_validator("id_mesa", mode="before")
    @classmethod
    def validate_id_mesa(cls, value):
        return _positive_int(value, "ID de mesa inválido")

    @field_validator("numero_personas", mode="before")
    @classmethod
    def validate_numero_personas(cls, value):
        return _positive_int(value, "Número de personas debe ser mayor a 0")

    @field_validator("fecha_reserva", mode="before")
    @classmethod
    def validate_fecha(cls, value):
        return parse_date(value)

    @field_validator("hora_reserva", mode="before")
    @classmethod
    def validate_hora(cls, value):
        return parse_time(value)

    @field_validator("notas")
    @classmethod
    def strip_notas(cls, value):
        return value.strip() if value else value


class ReservationUpdate(BaseModel):
    """Partial update; only supplied fields are validated"""
    id_mesa: Optional[int] = None
    fecha_reserva: Optional[date] = None
    hora_reserva: Optional[time] = None
    numero_personas: Optional[int] = None
    notas: Optional[str] = None
    estado: Optional[ReservationStatus] = None
    tipo_reserva: Optional[ReservationChannel] = None

    @field_validator("id_mesa", mode="before")
    @classmethod
    def validate_id_mesa(cls, value):
        return None if value is None else _positive_int(value, "ID de mesa inválido")

    @field_validator("numero_personas", mode="before")
    @classmethod
    def validate_numero_personas(cls, value):
        if value is None:
            return None
        return _positive_int(value, "Número de personas debe ser mayor a 0")

    @field_validator("fecha_reserva", mode="before")
    @classmethod
    def validate_fecha(cls, value):
        return None if value is None else parse_date(value)

    @field_validator("hora_reserva", mode="before")
    @classmethod
    def validate_hora(cls, value):
        return None if value is None else parse_time(value)


class StatusChangeRequest(BaseModel):
    """Explicit status transition"""
    estado: ReservationStatus


class ReservationResponse(BaseModel):
    """Reservation response"""
    id_reserva: int
    codigo_reserva: str
    id_mesa: int
    numero_mesa: Optional[int] = None
    id_cliente: Optional[int]
    id_usuario: Optional[int]
    fecha_reserva: date
    hora_reserva: time
    numero_personas: int
    estado: ReservationStatus
    tipo_reserva: ReservationChannel
    notas: Optional[str]
    fecha_creacion: datetime
    fecha_actualizacion: datetime

    class Config:
        from_attributes = True


class AvailabilityResponse(BaseModel):
    """Availability check response"""
    disponible: bool
    id_mesa: int
    fecha: date
    hora: time
    dentro_de_horario: bool


class ReservationStats(BaseModel):
    """Aggregate counts for a date range"""
    total_reservas: int = 0
    pendientes: int = 0
    confirmadas: int = 0
    canceladas: int = 0
    no_shows: int = 0
    online: int = 0
    telefono: int = 0
    presencial: int = 0
    promedio_personas: Optional[float] = None
