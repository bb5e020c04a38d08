"""Tests for operating hours and the schedule endpoints"""

from datetime import time

import pytest
from httpx import AsyncClient

from app.models.schedule import Weekday
from app.services.schedule import ScheduleCalendar


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "hora,allowed",
    [
        (time(8, 59, 59), False),
        (time(9, 0, 0), True),
        (time(22, 0, 0), True),
        (time(22, 0, 1), False),
    ],
)
async def test_operating_hours_boundaries(test_db, test_schedule, hora, allowed):
    calendar = ScheduleCalendar(test_db)
    assert await calendar.is_within_operating_hours(Weekday.LUNES, hora) is allowed


@pytest.mark.asyncio
async def test_unconfigured_day_is_closed(test_db, test_schedule):
    calendar = ScheduleCalendar(test_db)
    for hora in (time(0, 0), time(12, 0), time(23, 59, 59)):
        assert await calendar.is_within_operating_hours(Weekday.DOMINGO, hora) is False


@pytest.mark.asyncio
async def test_weekday_for_date(monday, sunday):
    assert ScheduleCalendar.weekday_for(monday) == Weekday.LUNES
    assert ScheduleCalendar.weekday_for(sunday) == Weekday.DOMINGO


@pytest.mark.asyncio
async def test_reservation_outside_hours_rejected(
    client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload, sunday
):
    response = await client.post(
        "/staff/reservas",
        json=reservation_payload(table_5.id_mesa, "08:59:59"),
        headers=staff_headers,
    )
    assert response.status_code == 422
    assert response.json()["details"] == {"hora_reserva": "La hora está fuera del horario de atención"}

    response = await client.post(
        "/staff/reservas",
        json=reservation_payload(table_5.id_mesa, "22:00:00"),
        headers=staff_headers,
    )
    assert response.status_code == 201

    response = await client.post(
        "/staff/reservas",
        json=reservation_payload(table_5.id_mesa, "13:00:00", fecha=sunday),
        headers=staff_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_moving_reservation_out_of_hours_rejected(
    client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload
):
    response = await client.post(
        "/staff/reservas", json=reservation_payload(table_5.id_mesa), headers=staff_headers
    )
    id_reserva = response.json()["data"]["id_reserva"]

    response = await client.put(
        f"/staff/reservas/{id_reserva}",
        json={"hora_reserva": "23:00:00"},
        headers=staff_headers,
    )
    assert response.status_code == 422
    assert "hora_reserva" in response.json()["details"]


@pytest.mark.asyncio
async def test_list_schedule_monday_first(client: AsyncClient, staff_headers, test_schedule):
    response = await client.get("/horarios", headers=staff_headers)

    assert response.status_code == 200
    days = [entry["dia"] for entry in response.json()["data"]]
    assert days == ["lunes", "martes", "miercoles", "jueves", "viernes", "sabado"]


@pytest.mark.asyncio
async def test_create_schedule_for_sunday(client: AsyncClient, admin_headers, test_schedule):
    response = await client.post(
        "/horarios",
        json={"dia": "Domingo", "hora_apertura": "12:00:00", "hora_cierre": "18:00:00"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json()["data"]["dia"] == "domingo"


@pytest.mark.asyncio
async def test_duplicate_day_rejected(client: AsyncClient, admin_headers, test_schedule):
    response = await client.post(
        "/horarios",
        json={"dia": "lunes", "hora_apertura": "10:00:00", "hora_cierre": "20:00:00"},
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert "dia" in response.json()["details"]


@pytest.mark.asyncio
async def test_opening_must_precede_closing(client: AsyncClient, admin_headers, test_schedule):
    response = await client.post(
        "/horarios",
        json={"dia": "domingo", "hora_apertura": "18:00:00", "hora_cierre": "12:00:00"},
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert "horario" in response.json()["details"]

    # A partial update is checked against the stored closing time
    id_horario = test_schedule[0].id_horario
    response = await client.put(
        f"/horarios/{id_horario}",
        json={"hora_apertura": "22:30:00"},
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert "horario" in response.json()["details"]


@pytest.mark.asyncio
async def test_update_and_delete_schedule(client: AsyncClient, admin_headers, test_schedule):
    id_horario = test_schedule[0].id_horario

    response = await client.put(
        f"/horarios/{id_horario}",
        json={"hora_cierre": "23:00:00"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["hora_cierre"] == "23:00:00"

    response = await client.delete(f"/horarios/{id_horario}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"/horarios/{id_horario}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_schedule_writes_require_admin(client: AsyncClient, staff_headers, test_schedule):
    response = await client.post(
        "/horarios",
        json={"dia": "domingo", "hora_apertura": "12:00:00", "hora_cierre": "18:00:00"},
        headers=staff_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_available_hours(client: AsyncClient, staff_headers, test_schedule):
    response = await client.get(
        "/horarios/dia/lunes/horas-disponibles",
        params={"intervalo": 60},
        headers=staff_headers,
    )

    assert response.status_code == 200
    horas = response.json()["data"]["horas"]
    assert horas[0] == "09:00:00"
    assert horas[-1] == "21:00:00"
    assert len(horas) == 13


@pytest.mark.asyncio
async def test_available_hours_closed_day(client: AsyncClient, staff_headers, test_schedule):
    response = await client.get("/horarios/dia/domingo/horas-disponibles", headers=staff_headers)
    assert response.json()["data"]["horas"] == []
