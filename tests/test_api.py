"""
Integration tests for the REST API endpoints.

Requests go through httpx's ASGITransport into the real app, wired to
the SQLite booking store from ``conftest``.
"""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.app import create_app
from src.api.middleware import limiter
from src.config import settings
from src.domain.calendar import utcnow
from src.domain.enums import BookingStatus
from src.infrastructure.database import Database

AUTH = {"x-api-key": settings.api_key}


@pytest.fixture(autouse=True)
def _fresh_rate_limits():
    limiter.reset()
    yield


# ── Public routes ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "running"


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_health_store_down(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'x.db'}")
    await database.start()
    app = create_app(database=database)
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            resp = await ac.get("/api/v1/admin/health")
    finally:
        await database.stop()

    assert resp.status_code == 503
    assert resp.headers["retry-after"] == "1"
    assert resp.json()["error"] == "unavailable"


@pytest.mark.asyncio
async def test_locations_need_no_key(client: AsyncClient, world):
    resp = await client.get("/api/v1/locations")
    assert resp.status_code == 200
    assert {loc["name"] for loc in resp.json()} == {
        "Phoenix Mall Valet",
        "Airport T2 Valet",
    }


@pytest.mark.asyncio
async def test_login_by_phone(client: AsyncClient, world):
    resp = await client.post("/api/v1/login", json={"phone": "+911000000001"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == str(world.manager_id)
    assert data["role"] == "manager"


@pytest.mark.asyncio
async def test_login_unknown_phone(client: AsyncClient, world):
    resp = await client.post("/api/v1/login", json={"phone": "+919999999999"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_login_without_phone(client: AsyncClient):
    resp = await client.post("/api/v1/login", json={})
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_argument"


# ── Authentication ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_missing_api_key(client: AsyncClient, world):
    resp = await client.get(f"/api/v1/manager/active-cars/{world.location_id}")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "API key missing"


@pytest.mark.asyncio
async def test_wrong_api_key(client: AsyncClient, world, make_booking):
    booking_id = await make_booking()
    resp = await client.post(
        "/api/v1/manager/assign-driver",
        json={"booking_id": str(booking_id), "driver_id": str(world.driver_id)},
        headers={"x-api-key": "not-the-key"},
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid API key"


# ── Manager console ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_assign_driver_then_reassign_conflicts(
    client: AsyncClient, world, make_booking
):
    booking_id = await make_booking()
    body = {"booking_id": str(booking_id), "driver_id": str(world.driver_id)}

    resp = await client.post("/api/v1/manager/assign-driver", json=body, headers=AUTH)
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "active"
    assert data["driver_id"] == str(world.driver_id)

    body["driver_id"] = str(world.other_driver_id)
    resp = await client.post("/api/v1/manager/assign-driver", json=body, headers=AUTH)
    assert resp.status_code == 409
    assert resp.json()["error"] == "invalid_transition"

    resp = await client.get(f"/api/v1/bookings/{booking_id}", headers=AUTH)
    assert resp.json()["driver_id"] == str(world.driver_id)


@pytest.mark.asyncio
async def test_assign_driver_malformed_ids(client: AsyncClient, make_booking):
    booking_id = await make_booking()
    resp = await client.post(
        "/api/v1/manager/assign-driver",
        json={"booking_id": str(booking_id), "driver_id": "driver-42"},
        headers=AUTH,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_assign_driver_unknown_booking(client: AsyncClient, world):
    resp = await client.post(
        "/api/v1/manager/assign-driver",
        json={"booking_id": str(uuid.uuid4()), "driver_id": str(world.driver_id)},
        headers=AUTH,
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_location_counters(client: AsyncClient, world, make_booking):
    now = utcnow()
    await make_booking(BookingStatus.PARKED, start_time=now)
    await make_booking(BookingStatus.PARKED, start_time=now)
    await make_booking(BookingStatus.RETRIEVING, start_time=now)
    await make_booking()

    resp = await client.get(
        f"/api/v1/manager/active-cars/{world.location_id}", headers=AUTH
    )
    assert resp.status_code == 200
    assert resp.json() == {"location_id": str(world.location_id), "count": 2}

    resp = await client.get(
        f"/api/v1/manager/retrieving/{world.location_id}", headers=AUTH
    )
    assert resp.json()["count"] == 1

    resp = await client.get(
        f"/api/v1/manager/today-bookings/{world.location_id}", headers=AUTH
    )
    assert resp.json()["count"] == 4


@pytest.mark.asyncio
async def test_revenue(client: AsyncClient, world, make_booking):
    now = utcnow()
    await make_booking(BookingStatus.COMPLETED, start_time=now, payment="250.00")
    await make_booking(BookingStatus.COMPLETED, start_time=now, payment="49.50")
    yesterday = now - timedelta(days=1, hours=1)
    await make_booking(
        BookingStatus.COMPLETED,
        start_time=yesterday,
        created_at=yesterday,
        payment="500.00",
    )

    resp = await client.get(
        f"/api/v1/manager/revenue/{world.location_id}", headers=AUTH
    )
    assert resp.status_code == 200
    assert Decimal(str(resp.json()["revenue"])) == Decimal("299.50")


@pytest.mark.asyncio
async def test_counter_unknown_location(client: AsyncClient, world):
    resp = await client.get(
        f"/api/v1/manager/active-cars/{uuid.uuid4()}", headers=AUTH
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_counter_malformed_location(client: AsyncClient):
    resp = await client.get("/api/v1/manager/active-cars/7", headers=AUTH)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_manager_stats_and_locations(client: AsyncClient, world, make_booking):
    await make_booking(BookingStatus.COMPLETED, payment="120.00")
    await make_booking(BookingStatus.PARKED)

    resp = await client.get(f"/api/v1/manager/stats/{world.manager_id}", headers=AUTH)
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_bookings"] == 2
    assert Decimal(str(data["total_revenue"])) == Decimal("120.00")

    resp = await client.get(
        f"/api/v1/manager/locations/{world.manager_id}", headers=AUTH
    )
    assert [loc["id"] for loc in resp.json()] == [str(world.location_id)]


# ── Driver app ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_driver_walks_booking_to_completion(
    client: AsyncClient, world, make_booking
):
    booking_id = await make_booking(BookingStatus.ACTIVE, slot="B-03")

    resp = await client.post(
        f"/api/v1/driver/start-parking/{booking_id}",
        json={"expected_status": "active"},
        headers=AUTH,
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "parked"
    assert resp.json()["start_time"] is not None

    resp = await client.get(f"/api/v1/driver/current/{world.driver_id}", headers=AUTH)
    current = resp.json()["booking"]
    assert current["booking_id"] == str(booking_id)
    assert current["slot"] == "B-03"
    assert current["vehicle_number"] == "MH01AB1234"
    assert current["customer_name"] == "Aarav Sharma"

    resp = await client.post(
        f"/api/v1/driver/begin-retrieval/{booking_id}", headers=AUTH
    )
    assert resp.json()["status"] == "retrieving"

    resp = await client.post(f"/api/v1/driver/retrieve/{booking_id}", headers=AUTH)
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    assert resp.json()["end_time"] is not None

    resp = await client.get(f"/api/v1/driver/current/{world.driver_id}", headers=AUTH)
    assert resp.json() == {"booking": None}


@pytest.mark.asyncio
async def test_stale_expected_status_conflicts(client: AsyncClient, make_booking):
    booking_id = await make_booking(BookingStatus.PARKED)
    resp = await client.post(
        f"/api/v1/driver/retrieve/{booking_id}",
        json={"expected_status": "retrieving"},
        headers=AUTH,
    )
    assert resp.status_code == 409

    resp = await client.get(f"/api/v1/bookings/{booking_id}", headers=AUTH)
    assert resp.json()["status"] == "parked"


@pytest.mark.asyncio
async def test_start_parking_twice_conflicts(client: AsyncClient, make_booking):
    booking_id = await make_booking(BookingStatus.ACTIVE)
    first = await client.post(
        f"/api/v1/driver/start-parking/{booking_id}", headers=AUTH
    )
    second = await client.post(
        f"/api/v1/driver/start-parking/{booking_id}", headers=AUTH
    )
    assert first.status_code == 200
    assert second.status_code == 409

    resp = await client.get(f"/api/v1/bookings/{booking_id}", headers=AUTH)
    assert resp.json()["start_time"] == first.json()["start_time"]


@pytest.mark.asyncio
async def test_free_driver_current_is_null(client: AsyncClient, world):
    resp = await client.get(
        f"/api/v1/driver/current/{world.other_driver_id}", headers=AUTH
    )
    assert resp.status_code == 200
    assert resp.json() == {"booking": None}


@pytest.mark.asyncio
async def test_driver_bookings(client: AsyncClient, world, make_booking):
    active = await make_booking(BookingStatus.ACTIVE)
    await make_booking(BookingStatus.COMPLETED)

    resp = await client.get(f"/api/v1/driver/bookings/{world.driver_id}", headers=AUTH)
    assert resp.status_code == 200
    assert [b["id"] for b in resp.json()] == [str(active)]


@pytest.mark.asyncio
async def test_rider_is_not_a_driver(client: AsyncClient, world):
    resp = await client.get(f"/api/v1/driver/current/{world.rider_id}", headers=AUTH)
    assert resp.status_code == 404


# ── Rider app ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_recent_bookings_capped_at_three(
    client: AsyncClient, world, make_booking
):
    for _ in range(5):
        await make_booking()

    resp = await client.get(f"/api/v1/bookings/recent/{world.rider_id}", headers=AUTH)
    assert resp.status_code == 200
    assert len(resp.json()) == 3


@pytest.mark.asyncio
async def test_history_and_payments(client: AsyncClient, world, make_booking):
    paid = await make_booking(BookingStatus.COMPLETED, payment="180.00")
    await make_booking()

    resp = await client.get(
        f"/api/v1/bookings/history/{world.rider_id}", headers=AUTH
    )
    assert len(resp.json()) == 2

    resp = await client.get(f"/api/v1/payments/{world.rider_id}", headers=AUTH)
    payments = resp.json()
    assert [p["booking_id"] for p in payments] == [str(paid)]
    assert payments[0]["method"] == "UPI"


@pytest.mark.asyncio
async def test_bookings_with_vehicle(client: AsyncClient, world, make_booking):
    await make_booking(BookingStatus.PARKED)
    resp = await client.get(
        f"/api/v1/bookings/with-vehicle/{world.rider_id}", headers=AUTH
    )
    assert resp.status_code == 200
    (row,) = resp.json()
    assert row["vehicle_number"] == "MH01AB1234"
    assert row["location_name"] == "Phoenix Mall Valet"


@pytest.mark.asyncio
async def test_history_unknown_user(client: AsyncClient, world):
    resp = await client.get(
        f"/api/v1/bookings/history/{uuid.uuid4()}", headers=AUTH
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_get_booking_malformed_id(client: AsyncClient):
    resp = await client.get("/api/v1/bookings/abc", headers=AUTH)
    assert resp.status_code == 400
