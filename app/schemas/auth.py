"""Authentication schemas"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.models.user import StaffRole


class Token(BaseModel):
    """JWT token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenPayload(BaseModel):
    """JWT token payload"""
    sub: str
    principal: str  # usuario | cliente
    role: Optional[str] = None
    exp: datetime


class LoginRequest(BaseModel):
    """Customer login request"""
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Staff user response"""
    id_usuario: int
    email: str
    nombre: str
    apellido: str
    telefono: Optional[str]
    rol: StaffRole
    is_active: bool
    last_login: Optional[datetime]

    class Config:
        from_attributes = True


class CustomerRegister(BaseModel):
    """Customer self-registration"""
    nombre: str = Field(min_length=1, max_length=100)
    apellido: str = Field(default="", max_length=100)
    email: EmailStr
    telefono: Optional[str] = None
    password: str = Field(min_length=8)


class CustomerResponse(BaseModel):
    """Customer response"""
    id_cliente: int
    nombre: str
    apellido: str
    email: str
    telefono: Optional[str]
    is_active: bool
    fecha_creacion: datetime

    class Config:
        from_attributes = True
