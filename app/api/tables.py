"""Dining table API endpoints"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import admin_only, manager_or_admin, staff_only
from app.api.reservations import query_date, query_time
from app.database import get_db
from app.models.table import TableStatus, TableType
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.table import TableCreate, TableResponse, TableStatusChange, TableUpdate
from app.services.reservations import ReservationStore
from app.services.tables import TableRegistry

router = APIRouter()


def _one(table, message: str) -> ApiResponse[TableResponse]:
    return ApiResponse[TableResponse](message=message, data=TableResponse.model_validate(table))


def _many(tables, message: str) -> ApiResponse[List[TableResponse]]:
    return ApiResponse[List[TableResponse]](
        message=message,
        data=[TableResponse.model_validate(t) for t in tables],
    )


@router.get("", response_model=ApiResponse[List[TableResponse]])
async def list_tables(
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    return _many(await TableRegistry(db).list(), "Mesas obtenidas")


@router.get("/disponibles", response_model=ApiResponse[List[TableResponse]])
async def available_tables(
    capacidad: int = Query(..., ge=1),
    fecha: str = Query(...),
    hora: str = Query(...),
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    """Tables in service, large enough and free at a slot, smallest first"""
    tables = await ReservationStore(db).available_tables(
        capacidad, query_date(fecha, "fecha"), query_time(hora, "hora")
    )
    return _many(tables, "Mesas disponibles obtenidas")


@router.get("/tipo/{tipo}", response_model=ApiResponse[List[TableResponse]])
async def tables_by_type(
    tipo: TableType,
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    return _many(await TableRegistry(db).by_type(tipo), "Mesas obtenidas")


@router.get("/estado/{estado}", response_model=ApiResponse[List[TableResponse]])
async def tables_by_status(
    estado: TableStatus,
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    return _many(await TableRegistry(db).by_status(estado), "Mesas obtenidas")


@router.get("/{id_mesa}", response_model=ApiResponse[TableResponse])
async def get_table(
    id_mesa: int,
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    return _one(await TableRegistry(db).require(id_mesa), "Mesa obtenida")


@router.post("", response_model=ApiResponse[TableResponse], status_code=201)
async def create_table(
    data: TableCreate,
    current_user: User = Depends(manager_or_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a table (Admin or Gerente)"""
    return _one(await TableRegistry(db).create(data), "Mesa creada exitosamente")


@router.put("/{id_mesa}", response_model=ApiResponse[TableResponse])
async def update_table(
    id_mesa: int,
    data: TableUpdate,
    current_user: User = Depends(manager_or_admin),
    db: AsyncSession = Depends(get_db),
):
    """Partial update (Admin or Gerente)"""
    return _one(await TableRegistry(db).update(id_mesa, data), "Mesa actualizada exitosamente")


@router.put("/{id_mesa}/estado", response_model=ApiResponse[TableResponse])
async def change_table_status(
    id_mesa: int,
    body: TableStatusChange,
    current_user: User = Depends(manager_or_admin),
    db: AsyncSession = Depends(get_db),
):
    """Take a table out of service or back in (Admin or Gerente)"""
    table = await TableRegistry(db).change_status(id_mesa, body.estado)
    return _one(table, "Estado de mesa actualizado exitosamente")


@router.delete("/{id_mesa}", response_model=ApiResponse[dict])
async def delete_table(
    id_mesa: int,
    current_user: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    """Delete a table with no reservations (Admin only)"""
    await TableRegistry(db).delete(id_mesa)
    return ApiResponse[dict](message="Mesa eliminada exitosamente")
