"""Customer self-service authentication endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.api.auth import (
    create_access_token,
    get_current_customer,
    get_password_hash,
    verify_password,
)
from app.config import settings
from app.database import get_db
from app.models.customer import Customer
from app.schemas.auth import CustomerRegister, CustomerResponse, LoginRequest, Token
from app.schemas.common import ApiResponse
from app.utils.exceptions import UnauthorizedException, ValidationException

logger = structlog.get_logger()

router = APIRouter()


@router.post("/register", response_model=ApiResponse[CustomerResponse], status_code=201)
async def register(
    data: CustomerRegister,
    db: AsyncSession = Depends(get_db),
):
    """Register a new customer account"""
    email = data.email.lower()
    result = await db.execute(select(Customer).where(Customer.email == email))
    if result.scalar_one_or_none():
        raise ValidationException({"email": "El email ya está registrado"})

    customer = Customer(
        nombre=data.nombre.strip(),
        apellido=data.apellido.strip(),
        email=email,
        telefono=data.telefono,
        hashed_password=get_password_hash(data.password),
    )
    db.add(customer)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationException({"email": "El email ya está registrado"})
    await db.refresh(customer)

    logger.info("Customer registered", id_cliente=customer.id_cliente)
    return ApiResponse[CustomerResponse](
        message="Cliente registrado exitosamente", data=CustomerResponse.model_validate(customer)
    )


@router.post("/login", response_model=Token)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate customer and return an access token"""
    result = await db.execute(
        select(Customer).where(Customer.email == credentials.email.lower())
    )
    customer = result.scalar_one_or_none()

    if (
        not customer
        or not customer.hashed_password
        or not verify_password(credentials.password, customer.hashed_password)
    ):
        raise UnauthorizedException("Email o contraseña incorrectos")

    if not customer.is_active:
        raise UnauthorizedException("La cuenta de cliente está deshabilitada")

    return Token(
        access_token=create_access_token(customer),
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get("/me", response_model=ApiResponse[CustomerResponse])
async def me(customer: Optional[Customer] = Depends(get_current_customer)):
    """Get current customer information"""
    if customer is None:
        raise UnauthorizedException("Cliente no autenticado")
    return ApiResponse[CustomerResponse](
        message="Cliente autenticado", data=CustomerResponse.model_validate(customer)
    )
