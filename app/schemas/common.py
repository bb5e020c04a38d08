"""Shared response envelope and field parsers"""

from datetime import date, datetime, time
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"


class ApiResponse(BaseModel, Generic[T]):
    """Envelope returned by every endpoint"""
    success: bool = True
    message: str = "Operación exitosa"
    data: Optional[T] = None


def parse_date(value) -> date:
    """Strict YYYY-MM-DD"""
    if isinstance(value, datetime):
        raise ValueError("Formato de fecha inválido (YYYY-MM-DD)")
    if isinstance(value, date):
        return value
    try:
        parsed = datetime.strptime(str(value), DATE_FORMAT).date()
    except ValueError:
        raise ValueError("Formato de fecha inválido (YYYY-MM-DD)")
    if parsed.strftime(DATE_FORMAT) != value:
        raise ValueError("Formato de fecha inválido (YYYY-MM-DD)")
    return parsed


def parse_time(value) -> time:
    """Strict HH:MM:SS"""
    if isinstance(value, time):
        return value
    try:
        parsed = datetime.strptime(str(value), TIME_FORMAT).time()
    except ValueError:
        raise ValueError("Formato de hora inválido (HH:MM:SS)")
    if parsed.strftime(TIME_FORMAT) != value:
        raise ValueError("Formato de hora inválido (HH:MM:SS)")
    return parsed
