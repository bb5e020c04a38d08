"""Tests for the reservation workflow through the staff and general routers"""

from datetime import time

import pytest
from httpx import AsyncClient

from app.services.reservations import ReservationStore


async def _create(client: AsyncClient, headers: dict, body: dict, prefix: str = "/staff/reservas"):
    return await client.post(prefix, json=body, headers=headers)


@pytest.mark.asyncio
async def test_table_5_monday_scenario(
    client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload
):
    """Book, conflict, move, cancel and rebook table #5 on a Monday"""
    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa, "13:00:00"))
    assert response.status_code == 201
    first = response.json()["data"]
    assert first["estado"] == "pendiente"
    assert first["numero_mesa"] == 5
    assert first["codigo_reserva"]

    # Same table, date and time
    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa, "13:00:00"))
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert "disponibilidad" in body["details"]

    # Moving the first reservation to 13:30 does not conflict with itself
    response = await client.put(
        f"/staff/reservas/{first['id_reserva']}",
        json={"hora_reserva": "13:30:00"},
        headers=staff_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["hora_reserva"] == "13:30:00"

    # 13:30 is now held by the moved reservation; 13:00 was released
    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa, "13:30:00"))
    assert response.status_code == 422
    assert "disponibilidad" in response.json()["details"]

    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa, "13:00:00"))
    assert response.status_code == 201

    response = await client.put(
        f"/staff/reservas/{first['id_reserva']}/cancelar", headers=staff_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["estado"] == "cancelada"

    # The cancelled reservation no longer holds 13:30
    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa, "13:30:00"))
    assert response.status_code == 201
    assert response.json()["data"]["codigo_reserva"] != first["codigo_reserva"]


@pytest.mark.asyncio
async def test_confirmed_reservation_blocks_slot_until_cancelled(
    client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload
):
    body = reservation_payload(table_5.id_mesa, "20:00:00", estado="confirmada")
    response = await _create(client, staff_headers, body)
    assert response.status_code == 201
    reservation = response.json()["data"]
    assert reservation["estado"] == "confirmada"

    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa, "20:00:00"))
    assert response.status_code == 422

    await client.put(f"/staff/reservas/{reservation['id_reserva']}/cancelar", headers=staff_headers)

    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa, "20:00:00"))
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_new_reservation_cannot_start_terminal(
    client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload
):
    response = await _create(
        client, staff_headers, reservation_payload(table_5.id_mesa, estado="cancelada")
    )
    assert response.status_code == 422
    assert "estado" in response.json()["details"]


@pytest.mark.asyncio
async def test_unknown_table_rejected(client: AsyncClient, staff_headers, test_schedule, reservation_payload):
    response = await _create(client, staff_headers, reservation_payload(999))
    assert response.status_code == 422
    assert "id_mesa" in response.json()["details"]


@pytest.mark.asyncio
async def test_validation_errors_are_field_map(client: AsyncClient, staff_headers, table_5, test_schedule):
    response = await client.post(
        "/staff/reservas",
        json={
            "id_mesa": table_5.id_mesa,
            "fecha_reserva": "07/01/2030",
            "hora_reserva": "25:00:00",
            "numero_personas": 0,
        },
        headers=staff_headers,
    )

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Errores de validación"
    assert body["details"]["fecha_reserva"] == "Formato de fecha inválido (YYYY-MM-DD)"
    assert body["details"]["hora_reserva"] == "Formato de hora inválido (HH:MM:SS)"
    assert body["details"]["numero_personas"] == "Número de personas debe ser mayor a 0"


@pytest.mark.asyncio
async def test_staff_reservation_defaults(
    client: AsyncClient, staff_headers, receptionist_user, table_5, test_schedule, reservation_payload
):
    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa))
    data = response.json()["data"]

    assert data["tipo_reserva"] == "telefono"
    assert data["id_usuario"] == receptionist_user.id_usuario
    assert data["id_cliente"] is None


@pytest.mark.asyncio
async def test_staff_history_has_two_entries_newest_first(
    client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload
):
    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa))
    id_reserva = response.json()["data"]["id_reserva"]

    await client.put(f"/staff/reservas/{id_reserva}/cancelar", headers=staff_headers)

    response = await client.get(f"/staff/reservas/{id_reserva}/historial", headers=staff_headers)
    assert response.status_code == 200
    entries = response.json()["data"]

    assert [e["accion"] for e in entries] == ["cancelacion", "creacion"]
    assert entries[0]["nombre_usuario"] == "Recepcionista Test"


@pytest.mark.asyncio
async def test_update_records_field_changes(
    client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload
):
    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa))
    id_reserva = response.json()["data"]["id_reserva"]

    await client.put(
        f"/staff/reservas/{id_reserva}",
        json={"numero_personas": 4, "notas": "Cumpleaños"},
        headers=staff_headers,
    )

    response = await client.get(f"/staff/reservas/{id_reserva}/historial", headers=staff_headers)
    latest = response.json()["data"][0]
    assert latest["accion"] == "modificacion"
    assert "numero_personas: 2 → 4" in latest["detalle"]
    assert "notas: - → Cumpleaños" in latest["detalle"]


@pytest.mark.asyncio
async def test_empty_update_rejected(
    client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload
):
    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa))
    id_reserva = response.json()["data"]["id_reserva"]

    response = await client.put(f"/staff/reservas/{id_reserva}", json={}, headers=staff_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_into_taken_slot_rejected(
    client: AsyncClient, staff_headers, test_tables, test_schedule, reservation_payload
):
    table_4, table_5 = test_tables[4], test_tables[5]
    await _create(client, staff_headers, reservation_payload(table_4.id_mesa))
    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa))
    id_reserva = response.json()["data"]["id_reserva"]

    response = await client.put(
        f"/staff/reservas/{id_reserva}",
        json={"id_mesa": table_4.id_mesa},
        headers=staff_headers,
    )
    assert response.status_code == 422
    assert "disponibilidad" in response.json()["details"]


@pytest.mark.asyncio
async def test_check_availability_excludes_own_reservation(
    test_db, client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload, monday
):
    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa))
    reservation = response.json()["data"]

    store = ReservationStore(test_db)
    hora = time(13, 0)
    assert not await store.check_availability(table_5.id_mesa, monday, hora)
    assert await store.check_availability(
        table_5.id_mesa, monday, hora, exclude_reservation_id=reservation["id_reserva"]
    )


@pytest.mark.asyncio
async def test_availability_endpoint(
    client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload
):
    await _create(client, staff_headers, reservation_payload(table_5.id_mesa))

    response = await client.get(
        "/staff/reservas/disponibilidad",
        params={"id_mesa": table_5.id_mesa, "fecha": "2030-01-07", "hora": "13:00:00"},
        headers=staff_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["disponible"] is False
    assert data["dentro_de_horario"] is True

    response = await client.get(
        "/staff/reservas/disponibilidad",
        params={"id_mesa": table_5.id_mesa, "fecha": "2030-01-06", "hora": "13:00:00"},
        headers=staff_headers,
    )
    data = response.json()["data"]
    assert data["disponible"] is True
    assert data["dentro_de_horario"] is False


@pytest.mark.asyncio
async def test_codes_never_recycled_after_hard_delete(
    test_db, client: AsyncClient, admin_headers, table_5, test_schedule, reservation_payload
):
    response = await _create(client, admin_headers, reservation_payload(table_5.id_mesa), "/reservas")
    reservation = response.json()["data"]

    response = await client.delete(f"/reservas/{reservation['id_reserva']}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"/reservas/{reservation['id_reserva']}", headers=admin_headers)
    assert response.status_code == 404

    # The deletion is logged and the code stays reserved
    assert await ReservationStore(test_db).code_exists(reservation["codigo_reserva"])

    response = await client.get(
        "/historial", params={"id_reserva": reservation["id_reserva"]}, headers=admin_headers
    )
    entries = response.json()["data"]
    assert entries[0]["accion"] == "cancelacion"
    assert "eliminada permanentemente" in entries[0]["detalle"]


@pytest.mark.asyncio
async def test_codes_are_unique(
    client: AsyncClient, staff_headers, test_tables, test_schedule, reservation_payload
):
    codes = set()
    for hora in ("12:00:00", "12:30:00", "13:00:00", "13:30:00", "14:00:00"):
        response = await _create(client, staff_headers, reservation_payload(test_tables[4].id_mesa, hora))
        codes.add(response.json()["data"]["codigo_reserva"])

    assert len(codes) == 5


@pytest.mark.asyncio
async def test_list_filters_by_status(
    client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload
):
    await _create(client, staff_headers, reservation_payload(table_5.id_mesa, "12:00:00"))
    response = await _create(client, staff_headers, reservation_payload(table_5.id_mesa, "14:00:00"))
    await client.put(
        f"/staff/reservas/{response.json()['data']['id_reserva']}/cancelar", headers=staff_headers
    )

    response = await client.get("/staff/reservas", params={"estado": "cancelada"}, headers=staff_headers)
    assert [r["hora_reserva"] for r in response.json()["data"]] == ["14:00:00"]

    response = await client.get("/staff/reservas/fecha/2030-01-07", headers=staff_headers)
    assert [r["hora_reserva"] for r in response.json()["data"]] == ["12:00:00"]

    response = await client.get("/staff/reservas/estado/pendiente", headers=staff_headers)
    assert len(response.json()["data"]) == 1


@pytest.mark.asyncio
async def test_stats(client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload):
    await _create(client, staff_headers, reservation_payload(table_5.id_mesa, "12:00:00", numero_personas=2))
    await _create(
        client,
        staff_headers,
        reservation_payload(table_5.id_mesa, "14:00:00", numero_personas=3, estado="confirmada"),
    )

    response = await client.get("/staff/reservas/estadisticas", headers=staff_headers)
    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["total_reservas"] == 2
    assert stats["pendientes"] == 1
    assert stats["confirmadas"] == 1
    assert stats["telefono"] == 2
    assert stats["promedio_personas"] == 2.5


@pytest.mark.asyncio
async def test_cancelling_through_update_is_logged_as_cancellation(
    client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload
):
    id_mesa = table_5.id_mesa
    response = await _create(client, staff_headers, reservation_payload(id_mesa))
    id_reserva = response.json()["data"]["id_reserva"]

    response = await client.put(
        f"/staff/reservas/{id_reserva}", json={"estado": "cancelada"}, headers=staff_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["estado"] == "cancelada"

    response = await client.get(f"/staff/reservas/{id_reserva}/historial", headers=staff_headers)
    entries = response.json()["data"]
    assert [e["accion"] for e in entries] == ["cancelacion", "creacion"]
    assert entries[0]["detalle"].startswith("Reserva cancelada")

    # The slot is free again
    response = await _create(client, staff_headers, reservation_payload(id_mesa))
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_no_show_keeps_the_slot(
    client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload
):
    id_mesa = table_5.id_mesa
    response = await _create(client, staff_headers, reservation_payload(id_mesa, estado="confirmada"))
    id_reserva = response.json()["data"]["id_reserva"]

    response = await client.put(
        f"/staff/reservas/{id_reserva}/estado", json={"estado": "no_show"}, headers=staff_headers
    )
    assert response.status_code == 200

    response = await _create(client, staff_headers, reservation_payload(id_mesa))
    assert response.status_code == 422
    assert "disponibilidad" in response.json()["details"]


@pytest.mark.asyncio
async def test_slot_index_catches_lost_race(
    monkeypatch, client: AsyncClient, staff_headers, table_5, test_schedule, reservation_payload
):
    """A booking that passed a stale availability check is stopped by the unique index"""
    body = reservation_payload(table_5.id_mesa)
    response = await _create(client, staff_headers, body)
    assert response.status_code == 201

    original = ReservationStore.check_availability
    calls = []

    async def stale_first_check(self, *args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return True
        return await original(self, *args, **kwargs)

    monkeypatch.setattr(ReservationStore, "check_availability", stale_first_check)

    response = await _create(client, staff_headers, body)
    assert response.status_code == 422
    assert response.json()["details"] == {
        "disponibilidad": "La mesa no está disponible en la fecha y hora especificada"
    }
    # The integrity error was reclassified with a fresh check
    assert len(calls) == 2

    monkeypatch.undo()
    response = await client.get("/staff/reservas", headers=staff_headers)
    assert len(response.json()["data"]) == 1
