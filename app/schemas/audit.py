"""Audit log schemas"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel

from app.models.audit import AuditAction


class AuditEntryResponse(BaseModel):
    """Audit entry response"""
    id_historial: int
    id_reserva: int
    codigo_reserva: Optional[str]
    id_usuario: Optional[int]
    nombre_usuario: Optional[str] = None
    rol_usuario: Optional[str] = None
    accion: AuditAction
    detalle: Optional[str]
    fecha_accion: datetime

    class Config:
        from_attributes = True


class ActionCount(BaseModel):
    accion: AuditAction
    total: int


class DailyActionCount(BaseModel):
    accion: AuditAction
    fecha: date
    total: int


class UserActivity(BaseModel):
    id_usuario: Optional[int]
    nombre_usuario: Optional[str]
    rol: Optional[str]
    total_acciones: int
    creaciones: int
    modificaciones: int
    cancelaciones: int


class MostModified(BaseModel):
    id_reserva: int
    codigo_reserva: Optional[str]
    total_modificaciones: int
