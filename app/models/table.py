"""Restaurant table model"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, CheckConstraint
from sqlalchemy.orm import relationship
import enum

from app.database import Base


class TableStatus(str, enum.Enum):
    DISPONIBLE = "disponible"
    RESERVADA = "reservada"
    FUERA_SERVICIO = "fuera_servicio"


class TableType(str, enum.Enum):
    STANDARD = "Standard"
    PREMIUM = "Premium"
    VIP = "Vip"


class Table(Base):
    """Dining tables"""
    __tablename__ = "mesas"

    id_mesa = Column(Integer, primary_key=True, autoincrement=True)
    numero_mesa = Column(Integer, unique=True, nullable=False)
    nombre_mesa = Column(String(100))
    caracteristicas = Column(Text)
    capacidad = Column(Integer, nullable=False)
    ubicacion = Column(String(100))
    estado = Column(String(20), nullable=False, default=TableStatus.DISPONIBLE.value)
    tipo = Column(String(20), nullable=False, default=TableType.STANDARD.value)

    fecha_creacion = Column(DateTime, default=datetime.utcnow)

    # Relationships
    reservations = relationship("Reservation", back_populates="table")

    __table_args__ = (
        CheckConstraint("capacidad > 0", name="ck_mesas_capacidad_positiva"),
    )
