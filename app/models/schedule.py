"""Operating hours model"""

from datetime import date
from sqlalchemy import Column, Integer, String, Time
import enum

from app.database import Base


class Weekday(str, enum.Enum):
    """Canonical weekday tokens, Monday first"""
    LUNES = "lunes"
    MARTES = "martes"
    MIERCOLES = "miercoles"
    JUEVES = "jueves"
    VIERNES = "viernes"
    SABADO = "sabado"
    DOMINGO = "domingo"

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        """Map a calendar date to its weekday token"""
        return WEEK[value.weekday()]

    @property
    def position(self) -> int:
        return WEEK.index(self)


WEEK = list(Weekday)


class ScheduleEntry(Base):
    """One operating window per weekday"""
    __tablename__ = "horarios"

    id_horario = Column(Integer, primary_key=True, autoincrement=True)
    dia = Column(String(15), unique=True, nullable=False)
    hora_apertura = Column(Time, nullable=False)
    hora_cierre = Column(Time, nullable=False)
