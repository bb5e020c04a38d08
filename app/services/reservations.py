"""
Reservation store: the only writer of reservation rows.

Owns the slot conflict check, unique code generation and the persistence
primitives the workflow sequences. None of these methods commit; the workflow
commits once per request so the check, the write and the audit entry land in
one transaction.
"""

import secrets
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload
import structlog

from app.config import settings
from app.models.reservation import Reservation, ReservationStatus, ReservationChannel
from app.models.table import Table, TableStatus
from app.services.audit import AuditLog
from app.services.principal import Owner, owner_refs
from app.utils.exceptions import NotFoundException

logger = structlog.get_logger()

ACTIVE_STATUSES = [ReservationStatus.PENDIENTE.value, ReservationStatus.CONFIRMADA.value]


class ReservationStore:
    """Reservation persistence and the availability check"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    async def check_availability(
        self,
        id_mesa: int,
        fecha: date,
        hora: time,
        exclude_reservation_id: Optional[int] = None,
    ) -> bool:
        """True iff no non-cancelled reservation holds this exact slot"""
        query = select(func.count(Reservation.id_reserva)).where(
            Reservation.id_mesa == id_mesa,
            Reservation.fecha_reserva == fecha,
            Reservation.hora_reserva == hora,
            Reservation.estado != ReservationStatus.CANCELADA.value,
        )
        if exclude_reservation_id is not None:
            query = query.where(Reservation.id_reserva != exclude_reservation_id)

        result = await self.db.execute(query)
        return result.scalar() == 0

    async def available_tables(self, capacidad: int, fecha: date, hora: time) -> List[Table]:
        """Tables big enough and free at the slot, smallest first"""
        occupied = select(Reservation.id_mesa).where(
            Reservation.fecha_reserva == fecha,
            Reservation.hora_reserva == hora,
            Reservation.estado != ReservationStatus.CANCELADA.value,
        )
        result = await self.db.execute(
            select(Table)
            .where(
                Table.capacidad >= capacidad,
                Table.estado == TableStatus.DISPONIBLE.value,
                Table.id_mesa.not_in(occupied),
            )
            .order_by(Table.capacidad.asc(), Table.tipo.desc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Codes
    # ------------------------------------------------------------------

    async def code_exists(self, codigo: str) -> bool:
        result = await self.db.execute(
            select(func.count(Reservation.id_reserva)).where(Reservation.codigo_reserva == codigo)
        )
        if result.scalar() > 0:
            return True
        # Codes of hard-deleted reservations survive in the audit log
        return await AuditLog(self.db).code_was_used(codigo)

    async def generate_code(self) -> str:
        """Loop until a never-used code is found"""
        while True:
            codigo = secrets.token_hex(settings.reservation_code_bytes).upper()
            if not await self.code_exists(codigo):
                return codigo
            logger.warning("Reservation code collision, retrying", codigo=codigo)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(
        self,
        id_mesa: int,
        fecha: date,
        hora: time,
        numero_personas: int,
        owner: Owner,
        estado: ReservationStatus = ReservationStatus.PENDIENTE,
        tipo_reserva: ReservationChannel = ReservationChannel.TELEFONO,
        notas: Optional[str] = None,
    ) -> Reservation:
        reservation = Reservation(
            codigo_reserva=await self.generate_code(),
            id_mesa=id_mesa,
            fecha_reserva=fecha,
            hora_reserva=hora,
            numero_personas=numero_personas,
            estado=ReservationStatus(estado).value,
            tipo_reserva=ReservationChannel(tipo_reserva).value,
            notas=notas,
            **owner_refs(owner),
        )
        self.db.add(reservation)
        await self.db.flush()
        return reservation

    async def update(self, reservation: Reservation, patch: Dict[str, Any]) -> Reservation:
        for field, value in patch.items():
            if isinstance(value, (ReservationStatus, ReservationChannel)):
                value = value.value
            setattr(reservation, field, value)
        await self.db.flush()
        return reservation

    async def change_status(self, reservation: Reservation, estado: ReservationStatus) -> Reservation:
        reservation.estado = ReservationStatus(estado).value
        await self.db.flush()
        return reservation

    async def delete(self, reservation: Reservation) -> None:
        await self.db.delete(reservation)
        await self.db.flush()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find(self, id_reserva: int) -> Optional[Reservation]:
        result = await self.db.execute(
            select(Reservation)
            .options(joinedload(Reservation.table))
            .where(Reservation.id_reserva == id_reserva)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, id_reserva: int) -> Reservation:
        reservation = await self.find(id_reserva)
        if reservation is None:
            raise NotFoundException("Reserva no encontrada")
        return reservation

    async def list(
        self,
        estado: Optional[ReservationStatus] = None,
        fecha_desde: Optional[date] = None,
        fecha_hasta: Optional[date] = None,
        id_mesa: Optional[int] = None,
        id_cliente: Optional[int] = None,
        incluir_canceladas: bool = True,
    ) -> List[Reservation]:
        query = select(Reservation).options(joinedload(Reservation.table))

        if estado:
            query = query.where(Reservation.estado == ReservationStatus(estado).value)
        if fecha_desde:
            query = query.where(Reservation.fecha_reserva >= fecha_desde)
        if fecha_hasta:
            query = query.where(Reservation.fecha_reserva <= fecha_hasta)
        if id_mesa:
            query = query.where(Reservation.id_mesa == id_mesa)
        if id_cliente:
            query = query.where(Reservation.id_cliente == id_cliente)
        if not incluir_canceladas:
            query = query.where(Reservation.estado != ReservationStatus.CANCELADA.value)

        query = query.order_by(Reservation.fecha_reserva.desc(), Reservation.hora_reserva.desc())
        query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def by_customer(self, id_cliente: int) -> List[Reservation]:
        return await self.list(id_cliente=id_cliente)

    async def by_status(self, estado: ReservationStatus) -> List[Reservation]:
        return await self.list(estado=estado)

    async def by_date(self, fecha: date) -> List[Reservation]:
        """Non-cancelled reservations of one day in service order"""
        result = await self.db.execute(
            select(Reservation)
            .options(joinedload(Reservation.table))
            .where(
                Reservation.fecha_reserva == fecha,
                Reservation.estado != ReservationStatus.CANCELADA.value,
            )
            .order_by(Reservation.hora_reserva.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def upcoming(self, hours: int, now: Optional[datetime] = None) -> List[Reservation]:
        """Active reservations starting within the next `hours`"""
        return await self._active_between(now, hours, ACTIVE_STATUSES, include_past=False)

    async def pending_confirmation(self, hours: int, now: Optional[datetime] = None) -> List[Reservation]:
        """Pending reservations starting no later than `hours` from now"""
        return await self._active_between(
            now, hours, [ReservationStatus.PENDIENTE.value], include_past=True
        )

    async def stats(
        self,
        fecha_desde: Optional[date] = None,
        fecha_hasta: Optional[date] = None,
    ) -> Dict[str, Any]:
        def count_where(column, value):
            return func.count(case((column == value, 1)))

        query = select(
            func.count(Reservation.id_reserva).label("total_reservas"),
            count_where(Reservation.estado, ReservationStatus.PENDIENTE.value).label("pendientes"),
            count_where(Reservation.estado, ReservationStatus.CONFIRMADA.value).label("confirmadas"),
            count_where(Reservation.estado, ReservationStatus.CANCELADA.value).label("canceladas"),
            count_where(Reservation.estado, ReservationStatus.NO_SHOW.value).label("no_shows"),
            count_where(Reservation.tipo_reserva, ReservationChannel.ONLINE.value).label("online"),
            count_where(Reservation.tipo_reserva, ReservationChannel.TELEFONO.value).label("telefono"),
            count_where(Reservation.tipo_reserva, ReservationChannel.PRESENCIAL.value).label("presencial"),
            func.avg(Reservation.numero_personas).label("promedio_personas"),
        )
        if fecha_desde:
            query = query.where(Reservation.fecha_reserva >= fecha_desde)
        if fecha_hasta:
            query = query.where(Reservation.fecha_reserva <= fecha_hasta)

        row = (await self.db.execute(query)).one()
        stats = dict(row._mapping)
        if stats["promedio_personas"] is not None:
            stats["promedio_personas"] = round(float(stats["promedio_personas"]), 2)
        return stats

    async def _active_between(
        self,
        now: Optional[datetime],
        hours: int,
        statuses: List[str],
        include_past: bool,
    ) -> List[Reservation]:
        now = now or datetime.now()
        until = now + timedelta(hours=hours)

        query = (
            select(Reservation)
            .options(joinedload(Reservation.table))
            .where(
                Reservation.estado.in_(statuses),
                Reservation.fecha_reserva <= until.date(),
            )
            .order_by(Reservation.fecha_reserva.asc(), Reservation.hora_reserva.asc())
            .execution_options(populate_existing=True)
        )
        if not include_past:
            query = query.where(Reservation.fecha_reserva >= now.date())

        result = await self.db.execute(query)
        reservations = []
        for reservation in result.scalars().all():
            starts_at = datetime.combine(reservation.fecha_reserva, reservation.hora_reserva)
            if starts_at > until:
                continue
            if not include_past and starts_at < now:
                continue
            reservations.append(reservation)
        return reservations
