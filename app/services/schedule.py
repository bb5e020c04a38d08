"""Weekly operating hours: one window per weekday"""

from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.models.schedule import ScheduleEntry, Weekday
from app.schemas.schedule import ScheduleCreate, ScheduleUpdate
from app.utils.exceptions import NotFoundException, PersistenceException, ValidationException

logger = structlog.get_logger()


class ScheduleCalendar:
    """Answers whether the restaurant is open at a given weekday and time"""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def weekday_for(value: date) -> Weekday:
        return Weekday.from_date(value)

    async def get_by_day(self, dia: Weekday) -> Optional[ScheduleEntry]:
        result = await self.db.execute(
            select(ScheduleEntry).where(func.lower(ScheduleEntry.dia) == Weekday(dia).value)
        )
        return result.scalar_one_or_none()

    async def is_within_operating_hours(self, dia: Weekday, hora: time) -> bool:
        """Closed by default; closing time is inclusive"""
        entry = await self.get_by_day(dia)
        if entry is None:
            return False
        return entry.hora_apertura <= hora <= entry.hora_cierre

    async def is_open_at(self, fecha: date, hora: time) -> bool:
        return await self.is_within_operating_hours(self.weekday_for(fecha), hora)

    async def list(self) -> List[ScheduleEntry]:
        result = await self.db.execute(select(ScheduleEntry))
        return sorted(result.scalars().all(), key=lambda e: Weekday(e.dia).position)

    async def get(self, id_horario: int) -> ScheduleEntry:
        entry = await self.db.get(ScheduleEntry, id_horario)
        if entry is None:
            raise NotFoundException("Horario no encontrado")
        return entry

    async def exists_for_day(self, dia: Weekday, exclude_id: Optional[int] = None) -> bool:
        query = select(func.count(ScheduleEntry.id_horario)).where(
            func.lower(ScheduleEntry.dia) == Weekday(dia).value
        )
        if exclude_id is not None:
            query = query.where(ScheduleEntry.id_horario != exclude_id)
        result = await self.db.execute(query)
        return result.scalar() > 0

    async def available_hours(self, dia: Weekday, interval_minutes: int) -> List[time]:
        """Start times from opening, every interval, strictly before closing"""
        entry = await self.get_by_day(dia)
        if entry is None:
            return []

        anchor = date.min
        current = datetime.combine(anchor, entry.hora_apertura)
        end = datetime.combine(anchor, entry.hora_cierre)
        step = timedelta(minutes=interval_minutes)

        hours = []
        while current < end:
            hours.append(current.time())
            current += step
        return hours

    async def create(self, data: ScheduleCreate) -> ScheduleEntry:
        if data.hora_apertura >= data.hora_cierre:
            raise ValidationException(
                {"horario": "La hora de apertura debe ser anterior a la hora de cierre"}
            )
        if await self.exists_for_day(data.dia):
            raise ValidationException({"dia": "Ya existe un horario configurado para este día"})

        entry = ScheduleEntry(
            dia=data.dia.value,
            hora_apertura=data.hora_apertura,
            hora_cierre=data.hora_cierre,
        )
        self.db.add(entry)
        await self._commit("crear horario")
        logger.info("Schedule entry created", dia=entry.dia, id_horario=entry.id_horario)
        return entry

    async def update(self, id_horario: int, data: ScheduleUpdate) -> ScheduleEntry:
        entry = await self.get(id_horario)
        patch = data.model_dump(exclude_unset=True, exclude_none=True)

        apertura = patch.get("hora_apertura", entry.hora_apertura)
        cierre = patch.get("hora_cierre", entry.hora_cierre)
        if apertura >= cierre:
            raise ValidationException(
                {"horario": "La hora de apertura debe ser anterior a la hora de cierre"}
            )

        if "dia" in patch and await self.exists_for_day(patch["dia"], exclude_id=id_horario):
            raise ValidationException({"dia": "Ya existe un horario configurado para este día"})

        for field, value in patch.items():
            setattr(entry, field, value.value if isinstance(value, Weekday) else value)

        await self._commit("actualizar horario")
        logger.info("Schedule entry updated", id_horario=id_horario, fields=sorted(patch))
        return entry

    async def delete(self, id_horario: int) -> None:
        entry = await self.get(id_horario)
        await self.db.delete(entry)
        await self._commit("eliminar horario")
        logger.info("Schedule entry deleted", id_horario=id_horario, dia=entry.dia)

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception("Schedule write failed", action=action)
            raise PersistenceException(f"Error al {action}: {exc}")
