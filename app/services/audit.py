"""Append-only audit trail for reservations"""

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.models.audit import AuditAction, AuditEntry
from app.models.reservation import Reservation
from app.models.user import User

logger = structlog.get_logger()

# Fields tracked in change summaries, in display order
TRACKED_FIELDS = (
    "id_mesa",
    "fecha_reserva",
    "hora_reserva",
    "numero_personas",
    "estado",
    "tipo_reserva",
    "notas",
)


def _display(value: Any) -> str:
    if value is None:
        return "-"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def describe_changes(original: Mapping[str, Any], patch: Mapping[str, Any]) -> List[str]:
    """Plain field-by-field diff as "campo: old → new" fragments"""
    changes = []
    for field in TRACKED_FIELDS:
        if field not in patch:
            continue
        old, new = _display(original.get(field)), _display(patch[field])
        if old != new:
            changes.append(f"{field}: {old} → {new}")
    return changes


def snapshot(reservation: Reservation) -> Dict[str, Any]:
    return {field: getattr(reservation, field) for field in TRACKED_FIELDS}


class AuditLog:
    """Writer and reader for historial_reservas"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        reservation: Reservation,
        acting_user_id: Optional[int],
        action: AuditAction,
        detail: str,
    ) -> AuditEntry:
        """Stage one entry in the current transaction; the caller commits"""
        if reservation is None or reservation.id_reserva is None:
            raise ValueError("Audit entries require a persisted reservation")

        entry = AuditEntry(
            id_reserva=reservation.id_reserva,
            codigo_reserva=reservation.codigo_reserva,
            id_usuario=acting_user_id,
            accion=AuditAction(action).value,
            detalle=detail,
        )
        self.db.add(entry)
        await self.db.flush()

        logger.info(
            "Audit entry recorded",
            id_reserva=reservation.id_reserva,
            accion=entry.accion,
            id_usuario=acting_user_id,
        )
        return entry

    async def list_by_reservation(self, id_reserva: int) -> List[AuditEntry]:
        """Newest first"""
        result = await self.db.execute(
            select(AuditEntry)
            .where(AuditEntry.id_reserva == id_reserva)
            .order_by(AuditEntry.fecha_accion.desc(), AuditEntry.id_historial.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def code_was_used(self, codigo: str) -> bool:
        result = await self.db.execute(
            select(func.count(AuditEntry.id_historial)).where(AuditEntry.codigo_reserva == codigo)
        )
        return result.scalar() > 0

    async def list(
        self,
        accion: Optional[AuditAction] = None,
        fecha_desde: Optional[date] = None,
        fecha_hasta: Optional[date] = None,
        id_usuario: Optional[int] = None,
        id_reserva: Optional[int] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[AuditEntry]:
        query = select(AuditEntry)

        if accion:
            query = query.where(AuditEntry.accion == AuditAction(accion).value)
        if fecha_desde:
            query = query.where(func.date(AuditEntry.fecha_accion) >= fecha_desde)
        if fecha_hasta:
            query = query.where(func.date(AuditEntry.fecha_accion) <= fecha_hasta)
        if id_usuario:
            query = query.where(AuditEntry.id_usuario == id_usuario)
        if id_reserva:
            query = query.where(AuditEntry.id_reserva == id_reserva)

        query = query.order_by(AuditEntry.fecha_accion.desc(), AuditEntry.id_historial.desc())
        query = query.execution_options(populate_existing=True)
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def summary(
        self,
        fecha_desde: Optional[date] = None,
        fecha_hasta: Optional[date] = None,
    ) -> List[dict]:
        """Entry count per action"""
        total = func.count(AuditEntry.id_historial).label("total")
        query = self._date_filtered(
            select(AuditEntry.accion, total).group_by(AuditEntry.accion),
            fecha_desde,
            fecha_hasta,
        ).order_by(total.desc())
        result = await self.db.execute(query)
        return [{"accion": row.accion, "total": row.total} for row in result]

    async def metrics(
        self,
        fecha_desde: Optional[date] = None,
        fecha_hasta: Optional[date] = None,
    ) -> List[dict]:
        """Entry count per action per day"""
        day = func.date(AuditEntry.fecha_accion).label("fecha")
        query = self._date_filtered(
            select(AuditEntry.accion, day, func.count(AuditEntry.id_historial).label("total"))
            .group_by(AuditEntry.accion, day),
            fecha_desde,
            fecha_hasta,
        ).order_by(day.desc(), AuditEntry.accion)
        result = await self.db.execute(query)
        return [
            {"accion": row.accion, "fecha": _as_date(row.fecha), "total": row.total}
            for row in result
        ]

    async def user_activity(
        self,
        fecha_desde: Optional[date] = None,
        fecha_hasta: Optional[date] = None,
    ) -> List[dict]:
        """Per staff user action counts"""
        def count_of(action: AuditAction):
            return func.count(case((AuditEntry.accion == action.value, 1)))

        total = func.count(AuditEntry.id_historial).label("total_acciones")
        query = self._date_filtered(
            select(
                AuditEntry.id_usuario,
                User.nombre,
                User.apellido,
                User.rol,
                total,
                count_of(AuditAction.CREACION).label("creaciones"),
                count_of(AuditAction.MODIFICACION).label("modificaciones"),
                count_of(AuditAction.CANCELACION).label("cancelaciones"),
            )
            .select_from(AuditEntry)
            .outerjoin(User, User.id_usuario == AuditEntry.id_usuario)
            .group_by(AuditEntry.id_usuario, User.nombre, User.apellido, User.rol),
            fecha_desde,
            fecha_hasta,
        ).order_by(total.desc())

        result = await self.db.execute(query)
        return [
            {
                "id_usuario": row.id_usuario,
                "nombre_usuario": f"{row.nombre} {row.apellido}".strip() if row.nombre else None,
                "rol": row.rol.value if row.rol is not None else None,
                "total_acciones": row.total_acciones,
                "creaciones": row.creaciones,
                "modificaciones": row.modificaciones,
                "cancelaciones": row.cancelaciones,
            }
            for row in result
        ]

    async def most_modified(self, limit: int = 10) -> List[dict]:
        """Reservations with the most modification/cancellation entries"""
        total = func.count(AuditEntry.id_historial).label("total_modificaciones")
        query = (
            select(AuditEntry.id_reserva, func.max(AuditEntry.codigo_reserva).label("codigo_reserva"), total)
            .where(
                AuditEntry.accion.in_(
                    [AuditAction.MODIFICACION.value, AuditAction.CANCELACION.value]
                )
            )
            .group_by(AuditEntry.id_reserva)
            .order_by(total.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return [
            {
                "id_reserva": row.id_reserva,
                "codigo_reserva": row.codigo_reserva,
                "total_modificaciones": row.total_modificaciones,
            }
            for row in result
        ]

    @staticmethod
    def _date_filtered(query, fecha_desde: Optional[date], fecha_hasta: Optional[date]):
        if fecha_desde:
            query = query.where(func.date(AuditEntry.fecha_accion) >= fecha_desde)
        if fecha_hasta:
            query = query.where(func.date(AuditEntry.fecha_accion) <= fecha_hasta)
        return query


def _as_date(value) -> date:
    # SQLite returns DATE() as text
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value
