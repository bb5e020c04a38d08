"""Staff user model for dashboard authentication"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
import enum

from app.database import Base


class StaffRole(str, enum.Enum):
    """Staff roles for RBAC"""
    ADMIN = "Admin"
    GERENTE = "Gerente"
    MESERO = "Mesero"
    RECEPCIONISTA = "Recepcionista"


STAFF_ROLES = (StaffRole.ADMIN, StaffRole.GERENTE, StaffRole.MESERO, StaffRole.RECEPCIONISTA)


class User(Base):
    """Restaurant staff"""
    __tablename__ = "usuarios"

    id_usuario = Column(Integer, primary_key=True, autoincrement=True)

    # Authentication
    email = Column(String(255), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # Profile
    nombre = Column(String(100), nullable=False)
    apellido = Column(String(100), nullable=False, default="")
    telefono = Column(String(20))

    # Role
    rol = Column(
        Enum(StaffRole, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=StaffRole.MESERO,
    )

    # Status
    is_active = Column(Boolean, default=True)

    # Timestamps
    last_login = Column(DateTime)
    fecha_creacion = Column(DateTime, default=datetime.utcnow)
    fecha_actualizacion = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def nombre_completo(self) -> str:
        return f"{self.nombre} {self.apellido}".strip()

    def has_role(self, *roles: StaffRole) -> bool:
        """Check if user holds one of the given roles"""
        return self.rol in roles
