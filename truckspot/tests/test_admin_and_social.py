"""
Integration tests for admin overrides, social media updates, truck status
and tracking preferences.
"""

import pytest
from sqlalchemy import select

from truckspot.app.models.audit_log import AuditLog
from truckspot.app.services.audit import AuditAction
from truckspot.app.services.broadcast import EventType

SALT_LAKE = {"latitude": 40.7608, "longitude": -111.8910}
CORRECTED = {"latitude": 40.7500, "longitude": -111.8800, "address": "Pioneer Park", "notes": "Corrected by support"}


@pytest.mark.asyncio
async def test_admin_override_always_wins(
    client, make_truck, owner, customer, admin, headers, customer_feed, drain_events
):
    """Admin replaces current even after a pending customer report; previous current goes to history."""
    truck = await make_truck(require_location_verification=True)
    await client.put(f"/v1/trucks/{truck.id}/location", json=SALT_LAKE, headers=headers(owner))
    await client.post(
        f"/v1/trucks/{truck.id}/report-location",
        json={"latitude": 40.70, "longitude": -111.80},
        headers=headers(customer),
    )
    drain_events(customer_feed)

    response = await client.put(f"/v1/admin/trucks/{truck.id}/location", json=CORRECTED, headers=headers(admin))

    assert response.status_code == 200
    assert response.json()["outcome"] == "accepted"
    assert response.json()["location"]["source"] == "admin"
    assert [e.type for e in drain_events(customer_feed)] == [EventType.LOCATION_UPDATED]

    history = (await client.get(f"/v1/trucks/{truck.id}/location-history")).json()
    assert history["currentLocation"]["address"] == "Pioneer Park"
    assert [entry["source"] for entry in history["history"][:3]] == ["admin", "owner", "customer"]


@pytest.mark.asyncio
async def test_admin_override_requires_admin(client, truck, owner, customer, headers):
    for user in (owner, customer):
        response = await client.put(
            f"/v1/admin/trucks/{truck.id}/location", json=CORRECTED, headers=headers(user)
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Admin access required"


@pytest.mark.asyncio
async def test_admin_override_with_supplied_source_and_confidence(client, truck, admin, headers):
    response = await client.put(
        f"/v1/admin/trucks/{truck.id}/location",
        json={**CORRECTED, "source": "manual", "confidence": "low"},
        headers=headers(admin),
    )

    assert response.status_code == 200
    assert response.json()["location"]["source"] == "manual"
    assert response.json()["location"]["confidence"] == "low"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "preferences",
    [{"allow_customer_reports": False}, {"require_location_verification": True}],
)
async def test_admin_override_labelled_customer_still_wins(
    client, make_truck, owner, admin, headers, customer_feed, drain_events, preferences
):
    truck = await make_truck(**preferences)
    await client.put(f"/v1/trucks/{truck.id}/location", json=SALT_LAKE, headers=headers(owner))
    drain_events(customer_feed)

    response = await client.put(
        f"/v1/admin/trucks/{truck.id}/location",
        json={**CORRECTED, "source": "customer"},
        headers=headers(admin),
    )

    assert response.status_code == 200
    assert response.json()["outcome"] == "accepted"
    assert [e.type for e in drain_events(customer_feed)] == [EventType.LOCATION_UPDATED]

    current = (await client.get(f"/v1/trucks/{truck.id}/location")).json()["location"]
    assert current["address"] == "Pioneer Park"
    assert current["source"] == "customer"


@pytest.mark.asyncio
async def test_admin_override_is_audited(client, truck, admin, headers):
    await client.put(f"/v1/admin/trucks/{truck.id}/location", json=CORRECTED, headers=headers(admin))

    response = await client.get(f"/v1/admin/trucks/{truck.id}/audit-trail", headers=headers(admin))

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    log = data["logs"][0]
    assert log["action"] == AuditAction.LOCATION_OVERRIDDEN
    assert log["actor_id"] == admin.id
    assert log["actor_username"] == "marketplace_admin"
    assert log["meta_data"]["coordinates"] == [-111.88, 40.75]


@pytest.mark.asyncio
async def test_audit_entry_carries_request_correlation_id(client, truck, admin, headers):
    await client.put(
        f"/v1/admin/trucks/{truck.id}/location",
        json=CORRECTED,
        headers={**headers(admin), "X-Correlation-ID": "support-ticket-42"},
    )

    logs = (await client.get(f"/v1/admin/trucks/{truck.id}/audit-trail", headers=headers(admin))).json()["logs"]

    assert logs[0]["correlation_id"] == "support-ticket-42"


@pytest.mark.asyncio
async def test_admin_override_rejects_sentinel(client, truck, admin, headers, db_session):
    response = await client.put(
        f"/v1/admin/trucks/{truck.id}/location",
        json={"latitude": 0, "longitude": 0},
        headers=headers(admin),
    )

    assert response.status_code == 422
    result = await db_session.execute(select(AuditLog).where(AuditLog.truck_id == truck.id))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_social_media_update(client, make_truck, customer_feed, drain_events):
    """Social posts are accepted even when customer reports are disabled."""
    truck = await make_truck(allow_customer_reports=False)

    response = await client.post(
        f"/v1/internal/trucks/{truck.id}/social-location",
        json={**SALT_LAKE, "platform": "instagram", "post_text": "Find us at Liberty Park today!"},
    )

    assert response.status_code == 200
    location = response.json()["location"]
    assert location["source"] == "instagram"
    assert location["confidence"] == "medium"
    assert location["notes"] == "Find us at Liberty Park today!"
    assert location["reportedBy"] is None
    events = drain_events(customer_feed)
    assert [e.type for e in events] == [EventType.LOCATION_UPDATED]
    assert events[0].payload["source"] == "instagram"


@pytest.mark.asyncio
async def test_social_media_update_unknown_platform(client, truck):
    response = await client.post(
        f"/v1/internal/trucks/{truck.id}/social-location",
        json={**SALT_LAKE, "platform": "myspace"},
    )

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_status_toggle_broadcasts(client, truck, owner, headers, customer_feed, drain_events):
    response = await client.put(f"/v1/trucks/{truck.id}/status", json={"is_active": True}, headers=headers(owner))

    assert response.status_code == 200
    assert response.json() == {"truck_id": truck.id, "is_active": True}
    events = drain_events(customer_feed)
    assert [e.type for e in events] == [EventType.STATUS_UPDATED]
    assert events[0].payload == {"truckId": truck.id, "truckName": "Taco Loco LLC", "isActive": True}


@pytest.mark.asyncio
async def test_status_toggle_requires_ownership(client, truck, other_owner, headers):
    response = await client.put(
        f"/v1/trucks/{truck.id}/status", json={"is_active": True}, headers=headers(other_owner)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_disabling_customer_reports_takes_effect(client, truck, owner, customer, headers):
    response = await client.put(
        f"/v1/trucks/{truck.id}/tracking-preferences",
        json={"allow_customer_reports": False},
        headers=headers(owner),
    )

    assert response.status_code == 200
    assert response.json() == {
        "truck_id": truck.id,
        "allow_customer_reports": False,
        "require_location_verification": False,
        "auto_post_to_social": False,
    }

    response = await client.post(
        f"/v1/trucks/{truck.id}/report-location", json=SALT_LAKE, headers=headers(customer)
    )
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_REPORTS_DISABLED"
