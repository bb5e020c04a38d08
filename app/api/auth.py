"""Staff authentication endpoints and caller identity dependencies"""

from datetime import datetime, timedelta
from typing import Optional, Union

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.models.customer import Customer
from app.models.user import User, StaffRole, STAFF_ROLES
from app.schemas.auth import Token, TokenPayload, UserResponse
from app.schemas.common import ApiResponse
from app.services.principal import Actor, CustomerOwner, StaffOwner
from app.utils.exceptions import ForbiddenException, UnauthorizedException

router = APIRouter()

PRINCIPAL_STAFF = "usuario"
PRINCIPAL_CUSTOMER = "cliente"

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Both principals send a bearer token; missing tokens are resolved per endpoint
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash password"""
    return pwd_context.hash(password)


def create_access_token(principal: Union[User, Customer]) -> str:
    """Create JWT access token for a staff user or a customer"""
    expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
    if isinstance(principal, User):
        payload = {
            "sub": str(principal.id_usuario),
            "principal": PRINCIPAL_STAFF,
            "role": principal.rol.value,
        }
    else:
        payload = {
            "sub": str(principal.id_cliente),
            "principal": PRINCIPAL_CUSTOMER,
        }
    payload.update({"exp": expire, "type": "access"})
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenPayload:
    """Decode and validate an access token"""
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        raise UnauthorizedException("Token inválido o expirado")

    if payload.get("sub") is None or payload.get("type") != "access":
        raise UnauthorizedException("Token inválido o expirado")

    return TokenPayload(**payload)


async def get_current_staff_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Staff user behind the token, or None when the caller is not staff"""
    if not token:
        return None

    payload = decode_access_token(token)
    if payload.principal != PRINCIPAL_STAFF:
        return None

    result = await db.execute(select(User).where(User.id_usuario == int(payload.sub)))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise UnauthorizedException("Usuario no encontrado o inactivo")

    return user


async def get_current_customer(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[Customer]:
    """Customer behind the token, or None when the caller is not a customer"""
    if not token:
        return None

    payload = decode_access_token(token)
    if payload.principal != PRINCIPAL_CUSTOMER:
        return None

    result = await db.execute(select(Customer).where(Customer.id_cliente == int(payload.sub)))
    customer = result.scalar_one_or_none()

    if customer is None or not customer.is_active:
        raise UnauthorizedException("Cliente no encontrado o inactivo")

    return customer


async def get_current_active_user(
    current_user: Optional[User] = Depends(get_current_staff_user),
) -> User:
    """Require an authenticated staff user"""
    if current_user is None:
        raise UnauthorizedException()
    return current_user


def require_roles(*roles: StaffRole):
    """Dependency factory for role-based access control"""
    async def role_checker(current_user: User = Depends(get_current_active_user)) -> User:
        if not current_user.has_role(*roles):
            raise ForbiddenException()
        return current_user
    return role_checker


staff_only = require_roles(*STAFF_ROLES)
admin_only = require_roles(StaffRole.ADMIN)
manager_or_admin = require_roles(StaffRole.ADMIN, StaffRole.GERENTE)


def staff_actor(user: User) -> Actor:
    return Actor(owner=StaffOwner(user.id_usuario), role=user.rol.value)


def customer_actor(customer: Customer) -> Actor:
    return Actor(owner=CustomerOwner(customer.id_cliente))


async def get_staff_actor(current_user: User = Depends(staff_only)) -> Actor:
    """Staff entry point: a missing staff identity is terminal"""
    return staff_actor(current_user)


async def get_customer_actor(
    customer: Optional[Customer] = Depends(get_current_customer),
) -> Actor:
    """Self-service entry point: a missing customer identity is terminal"""
    if customer is None:
        raise UnauthorizedException("Cliente no autenticado")
    return customer_actor(customer)


async def get_any_actor(
    current_user: Optional[User] = Depends(get_current_staff_user),
    customer: Optional[Customer] = Depends(get_current_customer),
) -> Actor:
    """General entry point: whichever principal the token carries"""
    if current_user is not None:
        return staff_actor(current_user)
    if customer is not None:
        return customer_actor(customer)
    raise UnauthorizedException("Usuario no autenticado")


async def get_any_staff_actor(actor: Actor = Depends(get_any_actor)) -> Actor:
    """Staff routes on the general entry point: a known customer is forbidden"""
    if not actor.is_staff:
        raise ForbiddenException("Acceso restringido al personal")
    return actor


@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """Authenticate staff user and return an access token"""
    result = await db.execute(select(User).where(User.email == form_data.username))
    user = result.scalar_one_or_none()

    if not user or not verify_password(form_data.password, user.hashed_password):
        raise UnauthorizedException("Email o contraseña incorrectos")

    if not user.is_active:
        raise UnauthorizedException("La cuenta de usuario está deshabilitada")

    user.last_login = datetime.utcnow()
    await db.commit()

    return Token(
        access_token=create_access_token(user),
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user),
):
    """Get current staff user information"""
    return ApiResponse[UserResponse](
        message="Usuario autenticado", data=UserResponse.model_validate(current_user)
    )
