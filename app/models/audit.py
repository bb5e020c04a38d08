"""Reservation audit log model"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
import enum

from app.database import Base


class AuditAction(str, enum.Enum):
    CREACION = "creacion"
    MODIFICACION = "modificacion"
    CANCELACION = "cancelacion"


class AuditEntry(Base):
    """Append-only trail of actions taken on a reservation"""
    __tablename__ = "historial_reservas"

    id_historial = Column(Integer, primary_key=True, autoincrement=True)

    # No FK: entries outlive a hard-deleted reservation
    id_reserva = Column(Integer, nullable=False, index=True)
    codigo_reserva = Column(String(16), index=True)

    # Actor: staff user, null for customer/system actions
    id_usuario = Column(Integer, ForeignKey("usuarios.id_usuario"))

    accion = Column(String(20), nullable=False)
    detalle = Column(Text)

    fecha_accion = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", lazy="joined")

    @property
    def nombre_usuario(self):
        return self.user.nombre_completo if self.user is not None else None

    @property
    def rol_usuario(self):
        return self.user.rol.value if self.user is not None else None
