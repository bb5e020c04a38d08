"""
Reservation workflow shared by the customer, staff and administrative entry
points.

Each write runs validate -> availability -> operating hours -> persist ->
audit -> commit inside one transaction. The entry points differ only in the
Actor they pass in.
"""

from typing import List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.config import settings
from app.models.audit import AuditAction, AuditEntry
from app.models.reservation import (
    INITIAL_STATUSES,
    Reservation,
    ReservationChannel,
    ReservationStatus,
)
from app.schemas.reservation import ReservationCreate, ReservationUpdate
from app.services.audit import AuditLog, describe_changes, snapshot
from app.services.principal import Actor
from app.services.reservations import ReservationStore
from app.services.schedule import ScheduleCalendar
from app.services.tables import TableRegistry
from app.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    PersistenceException,
    UnauthorizedException,
    ValidationException,
)

logger = structlog.get_logger()

UNAVAILABLE = {"disponibilidad": "La mesa no está disponible en la fecha y hora especificada"}
OUT_OF_HOURS = {"hora_reserva": "La hora está fuera del horario de atención"}
UNKNOWN_TABLE = {"id_mesa": "La mesa especificada no existe"}


class ReservationWorkflow:
    """One parameterized workflow for every reservation entry point"""

    def __init__(self, db: AsyncSession, actor: Actor):
        if actor is None:
            raise UnauthorizedException("Usuario no autenticado")
        self.db = db
        self.actor = actor
        self.store = ReservationStore(db)
        self.calendar = ScheduleCalendar(db)
        self.tables = TableRegistry(db)
        self.audit = AuditLog(db)
        self.log = logger.bind(actor=actor.kind, actor_id=getattr(actor.owner, "id", None))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, id_reserva: int) -> Reservation:
        reservation = await self.store.get(id_reserva)
        self._ensure_can_access(reservation, "ver")
        return reservation

    async def list_own(self) -> List[Reservation]:
        if self.actor.can_bypass_ownership:
            return await self.store.list()
        return await self.store.by_customer(self.actor.customer_id)

    async def history(self, id_reserva: int) -> List[AuditEntry]:
        self._ensure_staff()
        await self.store.get(id_reserva)
        return await self.audit.list_by_reservation(id_reserva)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, data: ReservationCreate) -> Reservation:
        estado = data.estado or ReservationStatus.PENDIENTE
        if estado not in INITIAL_STATUSES:
            raise ValidationException(
                {"estado": "Una reserva nueva solo puede estar pendiente o confirmada"}
            )

        if self.actor.is_customer:
            # Self-service is always online; channel from the body is ignored
            tipo_reserva = ReservationChannel.ONLINE
        else:
            tipo_reserva = data.tipo_reserva or ReservationChannel(self.actor.default_channel)

        await self._ensure_slot_bookable(data.id_mesa, data.fecha_reserva, data.hora_reserva)

        try:
            reservation = await self.store.create(
                id_mesa=data.id_mesa,
                fecha=data.fecha_reserva,
                hora=data.hora_reserva,
                numero_personas=data.numero_personas,
                owner=self.actor.owner,
                estado=estado,
                tipo_reserva=tipo_reserva,
                notas=data.notas,
            )
            if self.actor.writes_audit:
                await self.audit.record(
                    reservation,
                    self.actor.user_id,
                    AuditAction.CREACION,
                    f"Reserva creada - Mesa: {data.id_mesa}, Fecha: {data.fecha_reserva.isoformat()}, "
                    f"Hora: {data.hora_reserva.isoformat()}, Personas: {data.numero_personas}",
                )
            await self.db.commit()
        except IntegrityError:
            await self._raise_integrity_conflict(data.id_mesa, data.fecha_reserva, data.hora_reserva)
        except SQLAlchemyError as exc:
            await self._raise_persistence("crear reserva", exc)

        self.log.info(
            "Reservation created",
            id_reserva=reservation.id_reserva,
            codigo=reservation.codigo_reserva,
            id_mesa=data.id_mesa,
            fecha=data.fecha_reserva.isoformat(),
            hora=data.hora_reserva.isoformat(),
        )
        return await self.store.get(reservation.id_reserva)

    async def update(self, id_reserva: int, data: ReservationUpdate) -> Reservation:
        reservation = await self.store.get(id_reserva)
        self._ensure_can_access(reservation, "modificar")

        patch = data.model_dump(exclude_unset=True, exclude_none=True)
        if not patch:
            raise ValidationException({"body": "No se enviaron campos para actualizar"})

        if not self.actor.is_staff:
            forbidden = {
                field: "Solo el personal puede modificar este campo"
                for field in ("estado", "tipo_reserva")
                if field in patch
            }
            if forbidden:
                raise ValidationException(forbidden)

        if reservation.status.is_terminal:
            raise ConflictException(
                f"No se puede modificar una reserva en estado '{reservation.estado}'"
            )

        if patch.get("estado") == reservation.status:
            patch.pop("estado")
        if "estado" in patch:
            self._ensure_transition(reservation, patch["estado"])

        id_mesa = patch.get("id_mesa", reservation.id_mesa)
        fecha = patch.get("fecha_reserva", reservation.fecha_reserva)
        hora = patch.get("hora_reserva", reservation.hora_reserva)

        if "id_mesa" in patch and await self.tables.get(id_mesa) is None:
            raise ValidationException(UNKNOWN_TABLE)

        cancelling = patch.get("estado") == ReservationStatus.CANCELADA

        if {"id_mesa", "fecha_reserva", "hora_reserva"} & patch.keys():
            # Cancelled reservations hold no slot
            if not cancelling:
                await self.tables.get(id_mesa, for_update=True)
                if not await self.store.check_availability(id_mesa, fecha, hora, exclude_reservation_id=id_reserva):
                    self.log.info("Reservation update rejected: slot taken", id_reserva=id_reserva)
                    raise ValidationException(UNAVAILABLE)

            if {"fecha_reserva", "hora_reserva"} & patch.keys():
                if not await self.calendar.is_open_at(fecha, hora):
                    raise ValidationException(OUT_OF_HOURS)

        before = snapshot(reservation)
        changes = describe_changes(before, patch)
        if cancelling:
            action, summary = AuditAction.CANCELACION, "Reserva cancelada - Cambios: "
        else:
            action, summary = AuditAction.MODIFICACION, "Reserva modificada - Cambios: "

        try:
            await self.store.update(reservation, patch)
            if self.actor.writes_audit and changes:
                await self.audit.record(
                    reservation,
                    self.actor.user_id,
                    action,
                    summary + ", ".join(changes),
                )
            await self.db.commit()
        except IntegrityError:
            await self._raise_integrity_conflict(id_mesa, fecha, hora, exclude=id_reserva)
        except SQLAlchemyError as exc:
            await self._raise_persistence("actualizar reserva", exc)

        self.log.info("Reservation updated", id_reserva=id_reserva, changes=changes)
        return await self.store.get(id_reserva)

    async def cancel(self, id_reserva: int) -> Reservation:
        reservation = await self.store.get(id_reserva)
        self._ensure_can_access(reservation, "cancelar")
        self._ensure_transition(reservation, ReservationStatus.CANCELADA)

        try:
            await self.store.change_status(reservation, ReservationStatus.CANCELADA)
            if self.actor.writes_audit:
                await self.audit.record(
                    reservation,
                    self.actor.user_id,
                    AuditAction.CANCELACION,
                    f"Reserva cancelada por {self.actor.kind} - Código: {reservation.codigo_reserva}",
                )
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self._raise_persistence("cancelar reserva", exc)

        self.log.info("Reservation cancelled", id_reserva=id_reserva, codigo=reservation.codigo_reserva)
        return await self.store.get(id_reserva)

    async def change_status(self, id_reserva: int, estado: ReservationStatus) -> Reservation:
        self._ensure_staff()
        reservation = await self.store.get(id_reserva)
        previous = reservation.estado
        self._ensure_transition(reservation, estado)

        if ReservationStatus(estado).occupies_slot and not reservation.status.occupies_slot:
            if not await self.store.check_availability(
                reservation.id_mesa,
                reservation.fecha_reserva,
                reservation.hora_reserva,
                exclude_reservation_id=id_reserva,
            ):
                raise ValidationException(UNAVAILABLE)

        action = (
            AuditAction.CANCELACION
            if estado == ReservationStatus.CANCELADA
            else AuditAction.MODIFICACION
        )
        try:
            await self.store.change_status(reservation, estado)
            await self.audit.record(
                reservation,
                self.actor.user_id,
                action,
                f"Estado cambiado de '{previous}' a '{ReservationStatus(estado).value}'",
            )
            await self.db.commit()
        except IntegrityError:
            await self._raise_integrity_conflict(
                reservation.id_mesa,
                reservation.fecha_reserva,
                reservation.hora_reserva,
                exclude=id_reserva,
            )
        except SQLAlchemyError as exc:
            await self._raise_persistence("cambiar estado", exc)

        self.log.info("Reservation status changed", id_reserva=id_reserva, previous=previous, estado=estado)
        return await self.store.get(id_reserva)

    async def delete(self, id_reserva: int) -> None:
        if not self.actor.can_hard_delete:
            raise ForbiddenException("Solo administradores pueden eliminar reservas")

        reservation = await self.store.get(id_reserva)
        try:
            # The audit entry is the only trace left after the row is gone
            await self.audit.record(
                reservation,
                self.actor.user_id,
                AuditAction.CANCELACION,
                f"Reserva eliminada permanentemente - Código: {reservation.codigo_reserva} - "
                "Motivo: Eliminación administrativa",
            )
            await self.store.delete(reservation)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self._raise_persistence("eliminar reserva", exc)

        self.log.info("Reservation deleted", id_reserva=id_reserva, codigo=reservation.codigo_reserva)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def _ensure_slot_bookable(self, id_mesa, fecha, hora) -> None:
        table = await self.tables.get(id_mesa, for_update=True)
        if table is None:
            raise ValidationException(UNKNOWN_TABLE)

        if not await self.store.check_availability(id_mesa, fecha, hora):
            self.log.info("Reservation rejected: slot taken", id_mesa=id_mesa, fecha=str(fecha), hora=str(hora))
            raise ValidationException(UNAVAILABLE)

        if not await self.calendar.is_open_at(fecha, hora):
            self.log.info("Reservation rejected: out of hours", fecha=str(fecha), hora=str(hora))
            raise ValidationException(OUT_OF_HOURS)

    def _ensure_can_access(self, reservation: Reservation, verb: str) -> None:
        if self.actor.can_bypass_ownership or self.actor.owns(reservation.id_cliente):
            return
        self.log.info("Reservation access denied", id_reserva=reservation.id_reserva, verb=verb)
        raise ForbiddenException(f"No tiene permisos para {verb} esta reserva")

    def _ensure_staff(self) -> None:
        if not self.actor.is_staff:
            raise ForbiddenException()

    def _ensure_transition(self, reservation: Reservation, target: ReservationStatus) -> None:
        if not settings.enforce_status_transitions:
            return
        target = ReservationStatus(target)
        if not reservation.status.can_transition_to(target):
            self.log.info(
                "Status transition rejected",
                id_reserva=reservation.id_reserva,
                current=reservation.estado,
                target=target.value,
            )
            raise ConflictException(
                f"Transición de estado no permitida: '{reservation.estado}' → '{target.value}'"
            )

    async def _raise_integrity_conflict(self, id_mesa, fecha, hora, exclude=None) -> None:
        await self.db.rollback()
        if not await self.store.check_availability(id_mesa, fecha, hora, exclude_reservation_id=exclude):
            self.log.warning("Concurrent booking lost the slot", id_mesa=id_mesa, fecha=str(fecha), hora=str(hora))
            raise ValidationException(UNAVAILABLE)
        raise ConflictException("Conflicto al guardar la reserva (código duplicado)")

    async def _raise_persistence(self, action: str, exc: Exception) -> None:
        await self.db.rollback()
        self.log.exception("Reservation write failed", action=action)
        raise PersistenceException(f"Error al {action}: {exc}")
