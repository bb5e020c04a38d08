"""Table schemas"""

from typing import Optional
from pydantic import BaseModel, Field

from app.models.table import TableStatus, TableType


class TableCreate(BaseModel):
    """Create table request"""
    numero_mesa: int = Field(gt=0)
    nombre_mesa: Optional[str] = Field(default=None, max_length=100)
    caracteristicas: Optional[str] = Field(default=None, max_length=255)
    capacidad: int = Field(gt=0)
    ubicacion: Optional[str] = Field(default=None, max_length=100)
    estado: TableStatus = TableStatus.DISPONIBLE
    tipo: TableType = TableType.STANDARD


class TableUpdate(BaseModel):
    """Partial table update; only supplied fields change"""
    numero_mesa: Optional[int] = Field(default=None, gt=0)
    nombre_mesa: Optional[str] = Field(default=None, max_length=100)
    caracteristicas: Optional[str] = Field(default=None, max_length=255)
    capacidad: Optional[int] = Field(default=None, gt=0)
    ubicacion: Optional[str] = Field(default=None, max_length=100)
    estado: Optional[TableStatus] = None
    tipo: Optional[TableType] = None


class TableStatusChange(BaseModel):
    estado: TableStatus


class TableResponse(BaseModel):
    """Table response"""
    id_mesa: int
    numero_mesa: int
    nombre_mesa: Optional[str]
    caracteristicas: Optional[str]
    capacidad: int
    ubicacion: Optional[str]
    estado: TableStatus
    tipo: TableType

    class Config:
        from_attributes = True
