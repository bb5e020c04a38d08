"""Test configuration and fixtures"""

from datetime import date, time

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base, get_db
from app.models.customer import Customer
from app.models.schedule import ScheduleEntry
from app.models.table import Table
from app.models.user import User, StaffRole
from app.api.auth import create_access_token, get_password_hash


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

MONDAY = date(2030, 1, 7)
SUNDAY = date(2030, 1, 6)


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


async def _create_user(db, email: str, rol: StaffRole) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash("testpass123"),
        nombre=rol.value,
        apellido="Test",
        rol=rol,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def admin_user(test_db):
    return await _create_user(test_db, "admin@example.com", StaffRole.ADMIN)


@pytest.fixture
async def receptionist_user(test_db):
    return await _create_user(test_db, "recepcion@example.com", StaffRole.RECEPCIONISTA)


@pytest.fixture
async def manager_user(test_db):
    return await _create_user(test_db, "gerente@example.com", StaffRole.GERENTE)


async def _create_customer(db, email: str) -> Customer:
    customer = Customer(
        nombre="Cliente",
        apellido=email.split("@")[0],
        email=email,
        hashed_password=get_password_hash("clientpass123"),
        is_active=True,
    )
    db.add(customer)
    await db.commit()
    return customer


@pytest.fixture
async def test_customer(test_db):
    return await _create_customer(test_db, "cliente@example.com")


@pytest.fixture
async def other_customer(test_db):
    return await _create_customer(test_db, "otro@example.com")


@pytest.fixture
async def test_tables(test_db):
    """Tables #1 (2 seats), #4 (4 seats) and #5 (4 seats)"""
    tables = [
        Table(numero_mesa=1, nombre_mesa="Mesa 1", capacidad=2),
        Table(numero_mesa=4, nombre_mesa="Mesa 4", capacidad=4),
        Table(numero_mesa=5, nombre_mesa="Mesa 5", capacidad=4),
    ]
    for table in tables:
        test_db.add(table)
    await test_db.commit()
    return {table.numero_mesa: table for table in tables}


@pytest.fixture
async def table_5(test_tables):
    return test_tables[5]


@pytest.fixture
async def test_schedule(test_db):
    """Monday to Saturday 09:00-22:00; Sunday unconfigured"""
    entries = [
        ScheduleEntry(dia=dia, hora_apertura=time(9, 0), hora_cierre=time(22, 0))
        for dia in ("lunes", "martes", "miercoles", "jueves", "viernes", "sabado")
    ]
    for entry in entries:
        test_db.add(entry)
    await test_db.commit()
    return entries


@pytest.fixture
async def client(test_db):
    """Create test client with overridden database"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def _bearer(principal) -> dict:
    return {"Authorization": f"Bearer {create_access_token(principal)}"}


@pytest.fixture
async def admin_headers(admin_user):
    return _bearer(admin_user)


@pytest.fixture
async def staff_headers(receptionist_user):
    return _bearer(receptionist_user)


@pytest.fixture
async def manager_headers(manager_user):
    return _bearer(manager_user)


@pytest.fixture
async def customer_headers(test_customer):
    return _bearer(test_customer)


@pytest.fixture
async def other_customer_headers(other_customer):
    return _bearer(other_customer)


@pytest.fixture
def monday():
    return MONDAY


@pytest.fixture
def sunday():
    return SUNDAY


@pytest.fixture
def reservation_payload():
    """Builder for reservation request bodies, Monday 13:00 by default"""
    def build(id_mesa: int, hora: str = "13:00:00", fecha: date = MONDAY, **extra) -> dict:
        payload = {
            "id_mesa": id_mesa,
            "fecha_reserva": fecha.isoformat(),
            "hora_reserva": hora,
            "numero_personas": 2,
        }
        payload.update(extra)
        return payload
    return build
