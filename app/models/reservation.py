"""Reservation model"""

from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    Time,
    DateTime,
    ForeignKey,
    Text,
    Index,
    CheckConstraint,
    text,
)
from sqlalchemy.orm import relationship
import enum

from app.database import Base
from app.services.principal import Owner, owner_from_refs


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states"""
    PENDIENTE = "pendiente"
    CONFIRMADA = "confirmada"
    CANCELADA = "cancelada"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        return not TRANSITIONS[self]

    @property
    def occupies_slot(self) -> bool:
        return self is not ReservationStatus.CANCELADA

    def can_transition_to(self, target: "ReservationStatus") -> bool:
        """pendiente -> confirmada -> {cancelada, no_show}; pendiente -> cancelada"""
        return target in TRANSITIONS[self]


TRANSITIONS = {
    ReservationStatus.PENDIENTE: {ReservationStatus.CONFIRMADA, ReservationStatus.CANCELADA},
    ReservationStatus.CONFIRMADA: {ReservationStatus.CANCELADA, ReservationStatus.NO_SHOW},
    ReservationStatus.CANCELADA: set(),
    ReservationStatus.NO_SHOW: set(),
}

# Statuses a reservation may be created with
INITIAL_STATUSES = (ReservationStatus.PENDIENTE, ReservationStatus.CONFIRMADA)


class ReservationChannel(str, enum.Enum):
    """How the reservation was made"""
    ONLINE = "online"
    TELEFONO = "telefono"
    PRESENCIAL = "presencial"


class Reservation(Base):
    """Table reservations"""
    __tablename__ = "reservas"

    id_reserva = Column(Integer, primary_key=True, autoincrement=True)
    codigo_reserva = Column(String(16), unique=True, nullable=False)

    id_mesa = Column(Integer, ForeignKey("mesas.id_mesa"), nullable=False)

    # Owner: at most one of these is set
    id_cliente = Column(Integer, ForeignKey("clientes.id_cliente"), index=True)
    id_usuario = Column(Integer, ForeignKey("usuarios.id_usuario"))

    # Slot
    fecha_reserva = Column(Date, nullable=False, index=True)
    hora_reserva = Column(Time, nullable=False)
    numero_personas = Column(Integer, nullable=False)

    estado = Column(String(20), nullable=False, default=ReservationStatus.PENDIENTE.value)
    tipo_reserva = Column(String(20), nullable=False, default=ReservationChannel.TELEFONO.value)

    notas = Column(Text)

    fecha_creacion = Column(DateTime, default=datetime.utcnow)
    fecha_actualizacion = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    table = relationship("Table", back_populates="reservations", lazy="joined")
    customer = relationship("Customer", back_populates="reservations")

    __table_args__ = (
        # One occupying reservation per slot; cancelled rows free it
        Index(
            "uq_reservas_slot_activa",
            "id_mesa",
            "fecha_reserva",
            "hora_reserva",
            unique=True,
            postgresql_where=text("estado <> 'cancelada'"),
            sqlite_where=text("estado <> 'cancelada'"),
        ),
        CheckConstraint("numero_personas >= 1", name="ck_reservas_numero_personas"),
        CheckConstraint(
            "id_cliente IS NULL OR id_usuario IS NULL",
            name="ck_reservas_un_solo_titular",
        ),
    )

    @property
    def owner(self) -> Owner:
        return owner_from_refs(self.id_cliente, self.id_usuario)

    @property
    def status(self) -> ReservationStatus:
        return ReservationStatus(self.estado)

    @property
    def numero_mesa(self):
        return self.table.numero_mesa if self.table is not None else None
