"""Table registry: existence lookups and simple table management"""

from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.models.reservation import Reservation
from app.models.table import Table, TableStatus, TableType
from app.schemas.table import TableCreate, TableUpdate
from app.utils.exceptions import (
    ConflictException,
    NotFoundException,
    PersistenceException,
    ValidationException,
)

logger = structlog.get_logger()

DUPLICATE_NUMBER = {"numero_mesa": "Ya existe una mesa con ese número"}


class TableRegistry:
    """Read access to tables for the reservation core, plus table management"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, id_mesa: int, for_update: bool = False) -> Optional[Table]:
        query = select(Table).where(Table.id_mesa == id_mesa)
        if for_update:
            # Serializes concurrent bookings of the same table (no-op on SQLite)
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def exists(self, id_mesa: int) -> bool:
        return await self.get(id_mesa) is not None

    async def require(self, id_mesa: int) -> Table:
        table = await self.get(id_mesa)
        if table is None:
            raise NotFoundException("Mesa no encontrada")
        return table

    async def list(self) -> List[Table]:
        result = await self.db.execute(select(Table).order_by(Table.numero_mesa))
        return list(result.scalars().all())

    async def by_type(self, tipo: TableType) -> List[Table]:
        result = await self.db.execute(
            select(Table).where(Table.tipo == TableType(tipo).value).order_by(Table.numero_mesa)
        )
        return list(result.scalars().all())

    async def by_status(self, estado: TableStatus) -> List[Table]:
        result = await self.db.execute(
            select(Table).where(Table.estado == TableStatus(estado).value).order_by(Table.numero_mesa)
        )
        return list(result.scalars().all())

    async def number_taken(self, numero_mesa: int, exclude_id: Optional[int] = None) -> bool:
        query = select(func.count(Table.id_mesa)).where(Table.numero_mesa == numero_mesa)
        if exclude_id is not None:
            query = query.where(Table.id_mesa != exclude_id)
        return (await self.db.execute(query)).scalar_one() > 0

    async def create(self, data: TableCreate) -> Table:
        if await self.number_taken(data.numero_mesa):
            raise ValidationException(DUPLICATE_NUMBER)

        table = Table(
            **data.model_dump(exclude={"estado", "tipo"}),
            estado=data.estado.value,
            tipo=data.tipo.value,
        )
        self.db.add(table)
        await self._commit("crear mesa")

        logger.info("Table created", id_mesa=table.id_mesa, numero_mesa=table.numero_mesa)
        return table

    async def update(self, id_mesa: int, data: TableUpdate) -> Table:
        table = await self.require(id_mesa)
        patch = data.model_dump(exclude_unset=True, exclude_none=True)
        if not patch:
            raise ValidationException({"body": "No se enviaron campos para actualizar"})

        if "numero_mesa" in patch and await self.number_taken(patch["numero_mesa"], exclude_id=id_mesa):
            raise ValidationException(DUPLICATE_NUMBER)

        self._apply(table, patch)
        await self._commit("actualizar mesa")

        logger.info("Table updated", id_mesa=id_mesa, fields=sorted(patch))
        return table

    async def change_status(self, id_mesa: int, estado: TableStatus) -> Table:
        table = await self.require(id_mesa)
        previous = table.estado
        table.estado = TableStatus(estado).value
        await self._commit("cambiar estado de mesa")

        logger.info("Table status changed", id_mesa=id_mesa, previous=previous, estado=table.estado)
        return table

    async def delete(self, id_mesa: int) -> None:
        table = await self.require(id_mesa)

        # Reservations reference their table; history must stay resolvable
        count = await self.db.execute(
            select(func.count(Reservation.id_reserva)).where(Reservation.id_mesa == id_mesa)
        )
        if count.scalar_one() > 0:
            raise ConflictException("La mesa tiene reservas asociadas; márquela fuera de servicio")

        await self.db.delete(table)
        await self._commit("eliminar mesa")
        logger.info("Table deleted", id_mesa=id_mesa, numero_mesa=table.numero_mesa)

    @staticmethod
    def _apply(table: Table, patch: Dict[str, Any]) -> None:
        for field, value in patch.items():
            if isinstance(value, (TableStatus, TableType)):
                value = value.value
            setattr(table, field, value)

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValidationException(DUPLICATE_NUMBER)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception("Table write failed", action=action)
            raise PersistenceException(f"Error al {action}: {exc}")
