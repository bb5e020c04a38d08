#!/usr/bin/env python3
"""
Seed script to create demo tables, weekly operating hours and staff users
"""

import asyncio
from datetime import time

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

WEEKLY_HOURS = {
    "lunes": (time(9, 0), time(22, 0)),
    "martes": (time(9, 0), time(22, 0)),
    "miercoles": (time(9, 0), time(22, 0)),
    "jueves": (time(9, 0), time(22, 0)),
    "viernes": (time(9, 0), time(23, 0)),
    "sabado": (time(10, 0), time(23, 0)),
}

TABLES = [
    # numero, capacidad, ubicacion, tipo
    (1, 2, "Terraza", "Standard"),
    (2, 2, "Terraza", "Standard"),
    (3, 4, "Salón principal", "Standard"),
    (4, 4, "Salón principal", "Standard"),
    (5, 6, "Salón principal", "Premium"),
    (6, 8, "Privado", "Vip"),
]

STAFF = [
    ("admin@restaurante.com", "admin123", "Ana", "Administradora", "Admin"),
    ("gerente@restaurante.com", "gerente123", "Gabriel", "Gerente", "Gerente"),
    ("recepcion@restaurante.com", "recepcion123", "Rocío", "Recepción", "Recepcionista"),
]


async def seed_demo_data():
    """Seed demo data for development"""
    from sqlalchemy import select

    from app.database import SessionLocal, engine, Base
    from app.models.schedule import ScheduleEntry
    from app.models.table import Table
    from app.models.user import StaffRole, User

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo data already exists
        result = await db.execute(select(User).where(User.email == STAFF[0][0]))
        if result.scalar_one_or_none():
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo staff users...")
        for email, password, nombre, apellido, rol in STAFF:
            db.add(User(
                email=email,
                hashed_password=pwd_context.hash(password),
                nombre=nombre,
                apellido=apellido,
                rol=StaffRole(rol),
                is_active=True,
            ))

        print("Creating tables...")
        for numero, capacidad, ubicacion, tipo in TABLES:
            db.add(Table(
                numero_mesa=numero,
                nombre_mesa=f"Mesa {numero}",
                capacidad=capacidad,
                ubicacion=ubicacion,
                tipo=tipo,
            ))

        # Sunday stays unconfigured, so the restaurant is closed that day
        print("Creating weekly operating hours...")
        for dia, (apertura, cierre) in WEEKLY_HOURS.items():
            db.add(ScheduleEntry(dia=dia, hora_apertura=apertura, hora_cierre=cierre))

        await db.commit()

        print("\nDemo data created successfully!\n\nStaff users:")
        for email, password, _, _, rol in STAFF:
            print(f"  {rol}: {email} / {password}")
        print(f"\nTables: {len(TABLES)} created")
        print(f"Operating hours: {len(WEEKLY_HOURS)} days configured (domingo closed)")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
