"""
Integration tests for the location ingest and read endpoints.
"""

import pytest

from truckspot.app.domain.location.repository import PersistenceError, SqlLocationRepository
from truckspot.app.services.broadcast import EventType

SALT_LAKE = {"latitude": 40.7608, "longitude": -111.8910, "address": "200 S Main St", "city": "Salt Lake City", "state": "UT"}


@pytest.mark.asyncio
async def test_owner_check_in_accepted_and_broadcast(client, truck, owner, headers, customer_feed, drain_events):
    """Owner check-in replaces current, opens the truck and broadcasts once."""
    response = await client.put(f"/v1/trucks/{truck.id}/location", json=SALT_LAKE, headers=headers(owner))

    assert response.status_code == 200
    data = response.json()
    assert data["outcome"] == "accepted"
    assert data["location"]["source"] == "owner"
    assert data["location"]["confidence"] == "high"
    assert data["location"]["coordinates"] == [-111.8910, 40.7608]

    events = drain_events(customer_feed)
    assert [e.type for e in events] == [EventType.LOCATION_UPDATED, EventType.STATUS_UPDATED]
    assert events[0].payload["truckId"] == truck.id
    assert events[0].payload["truckName"] == "Taco Loco LLC"
    assert events[1].payload["isActive"] is True

    current = await client.get(f"/v1/trucks/{truck.id}/location")
    assert current.status_code == 200
    assert current.json()["location"]["address"] == "200 S Main St"


@pytest.mark.asyncio
async def test_second_check_in_does_not_rebroadcast_status(client, truck, owner, headers, customer_feed, drain_events):
    await client.put(f"/v1/trucks/{truck.id}/location", json=SALT_LAKE, headers=headers(owner))
    drain_events(customer_feed)

    response = await client.put(
        f"/v1/trucks/{truck.id}/location",
        json={"latitude": 40.77, "longitude": -111.88},
        headers=headers(owner),
    )

    assert response.status_code == 200
    assert [e.type for e in drain_events(customer_feed)] == [EventType.LOCATION_UPDATED]


@pytest.mark.asyncio
async def test_only_the_truck_owner_can_check_in(client, truck, other_owner, customer, headers):
    response = await client.put(f"/v1/trucks/{truck.id}/location", json=SALT_LAKE, headers=headers(other_owner))
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_FORBIDDEN"

    response = await client.put(f"/v1/trucks/{truck.id}/location", json=SALT_LAKE, headers=headers(customer))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unauthenticated_ingest_rejected(client, truck):
    response = await client.put(f"/v1/trucks/{truck.id}/location", json=SALT_LAKE)
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_revoked_token_rejected(client, truck, owner, owner_token, redis_client_session):
    await redis_client_session.set(f"blacklist:token:{owner_token}", "1")

    response = await client.put(
        f"/v1/trucks/{truck.id}/location",
        json=SALT_LAKE,
        headers={"Authorization": f"Bearer {owner_token}"},
    )

    assert response.status_code == 401
    assert "revoked" in response.json()["message"].lower()


@pytest.mark.asyncio
async def test_inactive_user_rejected(client, truck, make_user, headers):
    ghost = await make_user("ghost", is_active=False)

    response = await client.post(
        f"/v1/trucks/{truck.id}/report-location", json=SALT_LAKE, headers=headers(ghost)
    )

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"latitude": 0, "longitude": 0}, {"latitude": 40.76}, {}])
async def test_invalid_coordinates_rejected(client, truck, owner, headers, customer_feed, drain_events, body):
    response = await client.put(f"/v1/trucks/{truck.id}/location", json=body, headers=headers(owner))

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_LOCATION_INVALID"
    assert drain_events(customer_feed) == []

    current = await client.get(f"/v1/trucks/{truck.id}/location")
    assert current.json()["location"] is None


@pytest.mark.asyncio
async def test_out_of_range_coordinates_fail_schema_validation(client, truck, owner, headers):
    response = await client.put(
        f"/v1/trucks/{truck.id}/location",
        json={"latitude": 123, "longitude": -111.89},
        headers=headers(owner),
    )

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_live_gps_confidence_from_accuracy(client, truck, owner, headers):
    response = await client.put(
        f"/v1/trucks/{truck.id}/live-location",
        json={"latitude": 40.76, "longitude": -111.89, "accuracy": 5, "heading": 90, "speed": 3.5},
        headers=headers(owner),
    )

    assert response.status_code == 200
    location = response.json()["location"]
    assert location["source"] == "live_gps"
    assert location["confidence"] == "high"
    assert location["notes"] == "GPS accuracy: 5m"
    assert location["heading"] == 90

    response = await client.put(
        f"/v1/trucks/{truck.id}/live-location",
        json={"latitude": 40.77, "longitude": -111.89, "accuracy": 120},
        headers=headers(owner),
    )
    assert response.json()["location"]["confidence"] == "low"


@pytest.mark.asyncio
async def test_customer_report_accepted_by_default(client, truck, customer, headers, customer_feed, drain_events):
    response = await client.post(
        f"/v1/trucks/{truck.id}/report-location",
        json={"latitude": 40.76, "longitude": -111.89, "notes": "Parked by the library"},
        headers=headers(customer),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["outcome"] == "accepted"
    assert data["location"]["source"] == "customer"
    assert data["location"]["confidence"] == "medium"
    assert data["location"]["reportedBy"] == customer.id
    assert [e.type for e in drain_events(customer_feed)] == [EventType.LOCATION_UPDATED]


@pytest.mark.asyncio
async def test_customer_report_keeps_city_and_state(client, truck, customer, headers):
    response = await client.post(f"/v1/trucks/{truck.id}/report-location", json=SALT_LAKE, headers=headers(customer))

    assert response.status_code == 200
    assert response.json()["location"]["city"] == "Salt Lake City"

    current = (await client.get(f"/v1/trucks/{truck.id}/location")).json()["location"]
    assert current["city"] == "Salt Lake City"
    assert current["state"] == "UT"


@pytest.mark.asyncio
async def test_customer_report_forbidden_when_disabled(client, make_truck, customer, headers, customer_feed, drain_events):
    """Disabled trucks refuse customer reports even before their first location."""
    truck = await make_truck(allow_customer_reports=False)

    response = await client.post(
        f"/v1/trucks/{truck.id}/report-location", json=SALT_LAKE, headers=headers(customer)
    )

    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_REPORTS_DISABLED"
    assert drain_events(customer_feed) == []

    history = await client.get(f"/v1/trucks/{truck.id}/location-history")
    assert history.json() == {"currentLocation": None, "history": []}


@pytest.mark.asyncio
async def test_customer_report_pending_verification(
    client, make_truck, owner, customer, headers, customer_feed, drain_events
):
    truck = await make_truck(require_location_verification=True)
    await client.put(f"/v1/trucks/{truck.id}/location", json=SALT_LAKE, headers=headers(owner))
    drain_events(customer_feed)

    response = await client.post(
        f"/v1/trucks/{truck.id}/report-location",
        json={"latitude": 40.70, "longitude": -111.80},
        headers=headers(customer),
    )

    assert response.status_code == 202
    assert response.json()["outcome"] == "pending_verification"
    assert drain_events(customer_feed) == []

    history = (await client.get(f"/v1/trucks/{truck.id}/location-history")).json()
    assert history["currentLocation"]["source"] == "owner"
    assert [entry["source"] for entry in history["history"]] == ["customer", "owner"]


@pytest.mark.asyncio
async def test_location_history_newest_first_with_limit(client, truck, owner, headers):
    for i in range(5):
        await client.put(
            f"/v1/trucks/{truck.id}/location",
            json={"latitude": 40.70 + i / 100, "longitude": -111.89, "notes": f"stop {i}"},
            headers=headers(owner),
        )

    response = await client.get(f"/v1/trucks/{truck.id}/location-history", params={"limit": 3})

    assert response.status_code == 200
    data = response.json()
    assert data["currentLocation"]["notes"] == "stop 4"
    assert len(data["history"]) == 3
    assert data["history"][0]["notes"] == "stop 4"
    timestamps = [entry["timestamp"] for entry in data["history"]]
    assert timestamps == sorted(timestamps, reverse=True)


@pytest.mark.asyncio
async def test_unknown_truck_is_404(client, owner, headers):
    response = await client.get("/v1/trucks/9999/location")
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"

    response = await client.put("/v1/trucks/9999/location", json=SALT_LAKE, headers=headers(owner))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_storage_failure_returns_503(client, truck, owner, headers, customer_feed, drain_events, mocker):
    mocker.patch.object(SqlLocationRepository, "mutate", side_effect=PersistenceError("connection reset"))

    response = await client.put(f"/v1/trucks/{truck.id}/location", json=SALT_LAKE, headers=headers(owner))

    assert response.status_code == 503
    assert response.json()["error_code"] == "ERR_UNAVAILABLE"
    assert drain_events(customer_feed) == []


@pytest.mark.asyncio
async def test_broadcast_failure_does_not_fail_submission(client, truck, owner, headers, customer_feed, mocker):
    mocker.patch.object(customer_feed, "offer", side_effect=RuntimeError("socket gone"))

    response = await client.put(f"/v1/trucks/{truck.id}/location", json=SALT_LAKE, headers=headers(owner))

    assert response.status_code == 200
    current = await client.get(f"/v1/trucks/{truck.id}/location")
    assert current.json()["location"] is not None


@pytest.mark.asyncio
async def test_memory_backend(client, truck, owner, headers, monkeypatch):
    """LOCATION_STORE_BACKEND=memory keeps locations out of the database."""
    from truckspot.app.core.config import settings

    monkeypatch.setattr(settings, "location_store_backend", "memory")

    response = await client.put(f"/v1/trucks/{truck.id}/location", json=SALT_LAKE, headers=headers(owner))
    assert response.status_code == 200

    current = await client.get(f"/v1/trucks/{truck.id}/location")
    assert current.json()["location"]["source"] == "owner"

    monkeypatch.setattr(settings, "location_store_backend", "sql")
    current = await client.get(f"/v1/trucks/{truck.id}/location")
    assert current.json()["location"] is None
