"""Reservation audit log API endpoints (staff only)"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import staff_only
from app.api.reservations import date_range
from app.database import get_db
from app.models.audit import AuditAction
from app.models.user import User
from app.schemas.audit import (
    ActionCount,
    AuditEntryResponse,
    DailyActionCount,
    MostModified,
    UserActivity,
)
from app.schemas.common import ApiResponse
from app.services.audit import AuditLog

router = APIRouter()


@router.get("", response_model=ApiResponse[List[AuditEntryResponse]])
async def list_audit_entries(
    accion: Optional[AuditAction] = None,
    fecha_desde: Optional[str] = None,
    fecha_hasta: Optional[str] = None,
    id_usuario: Optional[int] = None,
    id_reserva: Optional[int] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    """Audit entries, newest first"""
    desde, hasta = date_range(fecha_desde, fecha_hasta)
    entries = await AuditLog(db).list(
        accion=accion,
        fecha_desde=desde,
        fecha_hasta=hasta,
        id_usuario=id_usuario,
        id_reserva=id_reserva,
        limit=limit,
        offset=offset,
    )
    return ApiResponse[List[AuditEntryResponse]](
        message="Historial obtenido",
        data=[AuditEntryResponse.model_validate(e) for e in entries],
    )


@router.get("/resumen", response_model=ApiResponse[List[ActionCount]])
async def audit_summary(
    fecha_desde: Optional[str] = None,
    fecha_hasta: Optional[str] = None,
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    """Entry count per action"""
    rows = await AuditLog(db).summary(*date_range(fecha_desde, fecha_hasta))
    return ApiResponse[List[ActionCount]](message="Resumen obtenido", data=rows)


@router.get("/actividad", response_model=ApiResponse[List[UserActivity]])
async def user_activity(
    fecha_desde: Optional[str] = None,
    fecha_hasta: Optional[str] = None,
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    """Action counts per staff user"""
    rows = await AuditLog(db).user_activity(*date_range(fecha_desde, fecha_hasta))
    return ApiResponse[List[UserActivity]](message="Actividad obtenida", data=rows)


@router.get("/mas-modificadas", response_model=ApiResponse[List[MostModified]])
async def most_modified(
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    rows = await AuditLog(db).most_modified(limit)
    return ApiResponse[List[MostModified]](message="Reservas más modificadas obtenidas", data=rows)


@router.get("/metricas", response_model=ApiResponse[List[DailyActionCount]])
async def audit_metrics(
    fecha_desde: Optional[str] = None,
    fecha_hasta: Optional[str] = None,
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    """Entry count per action per day"""
    rows = await AuditLog(db).metrics(*date_range(fecha_desde, fecha_hasta))
    return ApiResponse[List[DailyActionCount]](message="Métricas obtenidas", data=rows)
