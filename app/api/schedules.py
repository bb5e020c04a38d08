"""Operating hours API endpoints"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import admin_only, staff_only
from app.config import settings
from app.database import get_db
from app.models.schedule import Weekday
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.schedule import (
    AvailableHoursResponse,
    ScheduleCreate,
    ScheduleResponse,
    ScheduleUpdate,
)
from app.services.schedule import ScheduleCalendar
from app.utils.exceptions import NotFoundException

router = APIRouter()


def _one(entry, message: str) -> ApiResponse[ScheduleResponse]:
    return ApiResponse[ScheduleResponse](message=message, data=ScheduleResponse.model_validate(entry))


@router.get("", response_model=ApiResponse[List[ScheduleResponse]])
async def list_schedules(
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    """Weekly operating hours, Monday first"""
    entries = await ScheduleCalendar(db).list()
    return ApiResponse[List[ScheduleResponse]](
        message="Horarios obtenidos",
        data=[ScheduleResponse.model_validate(e) for e in entries],
    )


@router.get("/dia/{dia}", response_model=ApiResponse[ScheduleResponse])
async def get_schedule_by_day(
    dia: Weekday,
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    entry = await ScheduleCalendar(db).get_by_day(dia)
    if entry is None:
        raise NotFoundException("No hay horario configurado para este día")
    return _one(entry, "Horario obtenido")


@router.get("/dia/{dia}/horas-disponibles", response_model=ApiResponse[AvailableHoursResponse])
async def available_hours(
    dia: Weekday,
    intervalo: int = Query(settings.schedule_slot_minutes, ge=5, le=240),
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    """Bookable start times for a weekday"""
    horas = await ScheduleCalendar(db).available_hours(dia, intervalo)
    return ApiResponse[AvailableHoursResponse](
        message="Horas disponibles obtenidas",
        data=AvailableHoursResponse(dia=dia, horas=horas),
    )


@router.get("/{id_horario}", response_model=ApiResponse[ScheduleResponse])
async def get_schedule(
    id_horario: int,
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    return _one(await ScheduleCalendar(db).get(id_horario), "Horario obtenido")


@router.post("", response_model=ApiResponse[ScheduleResponse], status_code=201)
async def create_schedule(
    data: ScheduleCreate,
    current_user: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    """Create the operating window for a weekday (Admin only)"""
    entry = await ScheduleCalendar(db).create(data)
    return _one(entry, "Horario creado exitosamente")


@router.put("/{id_horario}", response_model=ApiResponse[ScheduleResponse])
async def update_schedule(
    id_horario: int,
    data: ScheduleUpdate,
    current_user: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    entry = await ScheduleCalendar(db).update(id_horario, data)
    return _one(entry, "Horario actualizado exitosamente")


@router.delete("/{id_horario}", response_model=ApiResponse[dict])
async def delete_schedule(
    id_horario: int,
    current_user: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    await ScheduleCalendar(db).delete(id_horario)
    return ApiResponse[dict](message="Horario eliminado exitosamente")
