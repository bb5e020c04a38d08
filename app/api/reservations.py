"""
Reservation API endpoints.

The customer, staff and general routers are built from one factory. They
differ only in the dependency that resolves the calling Actor; every write
goes through ReservationWorkflow.
"""

from datetime import date, time
from typing import Callable, List, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.models.reservation import ReservationStatus
from app.schemas.audit import AuditEntryResponse
from app.schemas.common import ApiResponse, parse_date, parse_time
from app.schemas.reservation import (
    AvailabilityResponse,
    ReservationCreate,
    ReservationResponse,
    ReservationStats,
    ReservationUpdate,
    StatusChangeRequest,
)
from app.services.principal import Actor
from app.services.reservations import ReservationStore
from app.services.schedule import ScheduleCalendar
from app.services.tables import TableRegistry
from app.services.workflow import ReservationWorkflow
from app.utils.exceptions import BadRequestException, ValidationException
from app.api.auth import get_any_actor, get_any_staff_actor, get_customer_actor, get_staff_actor


def query_date(value: Optional[str], field: str) -> Optional[date]:
    """Strict YYYY-MM-DD for query and path parameters"""
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as exc:
        raise ValidationException({field: str(exc)})


def query_time(value: str, field: str) -> time:
    try:
        return parse_time(value)
    except ValueError as exc:
        raise ValidationException({field: str(exc)})


def date_range(fecha_desde: Optional[str], fecha_hasta: Optional[str]) -> Tuple[Optional[date], Optional[date]]:
    desde = query_date(fecha_desde, "fecha_desde")
    hasta = query_date(fecha_hasta, "fecha_hasta")
    if desde and hasta and desde > hasta:
        raise BadRequestException("fecha_desde debe ser anterior o igual a fecha_hasta")
    return desde, hasta


def _one(reservation, message: str) -> ApiResponse[ReservationResponse]:
    return ApiResponse[ReservationResponse](
        message=message,
        data=ReservationResponse.model_validate(reservation),
    )


def _many(reservations, message: str = "Reservas obtenidas") -> ApiResponse[List[ReservationResponse]]:
    return ApiResponse[List[ReservationResponse]](
        message=message,
        data=[ReservationResponse.model_validate(r) for r in reservations],
    )


def add_staff_routes(router: APIRouter, get_staff: Callable) -> None:
    """Staff-only reporting and administration routes"""

    @router.get("/estadisticas", response_model=ApiResponse[ReservationStats])
    async def reservation_stats(
        fecha_desde: Optional[str] = None,
        fecha_hasta: Optional[str] = None,
        actor: Actor = Depends(get_staff),
        db: AsyncSession = Depends(get_db),
    ):
        """Counts per status and channel for a date range"""
        stats = await ReservationStore(db).stats(*date_range(fecha_desde, fecha_hasta))
        return ApiResponse[ReservationStats](
            message="Estadísticas obtenidas", data=ReservationStats(**stats)
        )

    @router.get("/proximas", response_model=ApiResponse[List[ReservationResponse]])
    async def upcoming_reservations(
        horas: int = Query(settings.upcoming_window_hours, ge=1, le=168),
        actor: Actor = Depends(get_staff),
        db: AsyncSession = Depends(get_db),
    ):
        """Active reservations starting within the next hours"""
        return _many(await ReservationStore(db).upcoming(horas), "Próximas reservas obtenidas")

    @router.get("/pendientes-confirmacion", response_model=ApiResponse[List[ReservationResponse]])
    async def pending_confirmation(
        horas: int = Query(settings.pending_confirmation_hours, ge=1, le=168),
        actor: Actor = Depends(get_staff),
        db: AsyncSession = Depends(get_db),
    ):
        """Pending reservations that start soon or already started"""
        return _many(
            await ReservationStore(db).pending_confirmation(horas),
            "Reservas pendientes de confirmación obtenidas",
        )

    @router.get("/fecha/{fecha}", response_model=ApiResponse[List[ReservationResponse]])
    async def reservations_by_date(
        fecha: str,
        actor: Actor = Depends(get_staff),
        db: AsyncSession = Depends(get_db),
    ):
        return _many(await ReservationStore(db).by_date(query_date(fecha, "fecha")))

    @router.get("/estado/{estado}", response_model=ApiResponse[List[ReservationResponse]])
    async def reservations_by_status(
        estado: ReservationStatus,
        actor: Actor = Depends(get_staff),
        db: AsyncSession = Depends(get_db),
    ):
        return _many(await ReservationStore(db).by_status(estado))

    @router.get("/cliente/{id_cliente}", response_model=ApiResponse[List[ReservationResponse]])
    async def reservations_by_customer(
        id_cliente: int,
        actor: Actor = Depends(get_staff),
        db: AsyncSession = Depends(get_db),
    ):
        return _many(await ReservationStore(db).by_customer(id_cliente))

    @router.put("/{id_reserva}/estado", response_model=ApiResponse[ReservationResponse])
    async def change_reservation_status(
        id_reserva: int,
        body: StatusChangeRequest,
        actor: Actor = Depends(get_staff),
        db: AsyncSession = Depends(get_db),
    ):
        """Explicit status transition"""
        reservation = await ReservationWorkflow(db, actor).change_status(id_reserva, body.estado)
        return _one(reservation, "Estado actualizado exitosamente")

    @router.get("/{id_reserva}/historial", response_model=ApiResponse[List[AuditEntryResponse]])
    async def reservation_history(
        id_reserva: int,
        actor: Actor = Depends(get_staff),
        db: AsyncSession = Depends(get_db),
    ):
        """Audit entries for one reservation, newest first"""
        entries = await ReservationWorkflow(db, actor).history(id_reserva)
        return ApiResponse[List[AuditEntryResponse]](
            message="Historial obtenido",
            data=[AuditEntryResponse.model_validate(e) for e in entries],
        )

    @router.delete("/{id_reserva}", response_model=ApiResponse[dict])
    async def delete_reservation(
        id_reserva: int,
        actor: Actor = Depends(get_staff),
        db: AsyncSession = Depends(get_db),
    ):
        """Hard delete (Admin only)"""
        await ReservationWorkflow(db, actor).delete(id_reserva)
        return ApiResponse[dict](message="Reserva eliminada exitosamente")


def build_reservation_router(get_actor: Callable, get_staff: Optional[Callable] = None) -> APIRouter:
    """Reservation routes bound to one way of resolving the caller"""
    router = APIRouter()

    # Literal paths go before /{id_reserva}
    if get_staff is not None:
        add_staff_routes(router, get_staff)

    @router.get("/disponibilidad", response_model=ApiResponse[AvailabilityResponse])
    async def check_availability(
        id_mesa: int = Query(..., ge=1),
        fecha: str = Query(...),
        hora: str = Query(...),
        actor: Actor = Depends(get_actor),
        db: AsyncSession = Depends(get_db),
    ):
        """Whether a table is free at a slot and the restaurant is open"""
        fecha_reserva = query_date(fecha, "fecha")
        hora_reserva = query_time(hora, "hora")
        await TableRegistry(db).require(id_mesa)

        disponible = await ReservationStore(db).check_availability(id_mesa, fecha_reserva, hora_reserva)
        dentro_de_horario = await ScheduleCalendar(db).is_open_at(fecha_reserva, hora_reserva)
        return ApiResponse[AvailabilityResponse](
            message="Disponibilidad consultada",
            data=AvailabilityResponse(
                disponible=disponible,
                id_mesa=id_mesa,
                fecha=fecha_reserva,
                hora=hora_reserva,
                dentro_de_horario=dentro_de_horario,
            ),
        )

    @router.get("", response_model=ApiResponse[List[ReservationResponse]])
    async def list_reservations(
        estado: Optional[ReservationStatus] = None,
        fecha_desde: Optional[str] = None,
        fecha_hasta: Optional[str] = None,
        id_mesa: Optional[int] = None,
        incluir_canceladas: bool = True,
        actor: Actor = Depends(get_actor),
        db: AsyncSession = Depends(get_db),
    ):
        """Staff see every reservation; customers only their own"""
        if not actor.can_bypass_ownership:
            return _many(await ReservationWorkflow(db, actor).list_own())

        desde, hasta = date_range(fecha_desde, fecha_hasta)
        reservations = await ReservationStore(db).list(
            estado=estado,
            fecha_desde=desde,
            fecha_hasta=hasta,
            id_mesa=id_mesa,
            incluir_canceladas=incluir_canceladas,
        )
        return _many(reservations)

    @router.post("", response_model=ApiResponse[ReservationResponse], status_code=201)
    async def create_reservation(
        data: ReservationCreate,
        actor: Actor = Depends(get_actor),
        db: AsyncSession = Depends(get_db),
    ):
        """Create a new reservation"""
        reservation = await ReservationWorkflow(db, actor).create(data)
        return _one(reservation, "Reserva creada exitosamente")

    @router.get("/{id_reserva}", response_model=ApiResponse[ReservationResponse])
    async def get_reservation(
        id_reserva: int,
        actor: Actor = Depends(get_actor),
        db: AsyncSession = Depends(get_db),
    ):
        reservation = await ReservationWorkflow(db, actor).get(id_reserva)
        return _one(reservation, "Reserva obtenida")

    @router.put("/{id_reserva}", response_model=ApiResponse[ReservationResponse])
    async def update_reservation(
        id_reserva: int,
        data: ReservationUpdate,
        actor: Actor = Depends(get_actor),
        db: AsyncSession = Depends(get_db),
    ):
        """Partial update; only supplied fields are validated"""
        reservation = await ReservationWorkflow(db, actor).update(id_reserva, data)
        return _one(reservation, "Reserva actualizada exitosamente")

    @router.put("/{id_reserva}/cancelar", response_model=ApiResponse[ReservationResponse])
    async def cancel_reservation(
        id_reserva: int,
        actor: Actor = Depends(get_actor),
        db: AsyncSession = Depends(get_db),
    ):
        reservation = await ReservationWorkflow(db, actor).cancel(id_reserva)
        return _one(reservation, "Reserva cancelada exitosamente")

    return router


customer_router = build_reservation_router(get_customer_actor)
staff_router = build_reservation_router(get_staff_actor, get_staff=get_staff_actor)
router = build_reservation_router(get_any_actor, get_staff=get_any_staff_actor)
