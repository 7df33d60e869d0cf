"""Notification Routes — list, mark-read, and delete are scoped to the actor."""

from uuid import uuid4

import pytest

from app.core.domain_types import NotificationType
from app.services.sql_stores import SqlNotificationSink


@pytest.fixture
async def alice_bob_notification(test_db, make_account):
    alice, bob = await make_account("alice"), await make_account("bob")
    nid = await SqlNotificationSink(test_db).append(
        alice.id, NotificationType.LIKE, bob.id, uuid4(),
    )
    await test_db.commit()
    return alice, bob, nid


async def test_list_returns_own_notifications(
    client, alice_bob_notification, actor_headers,
):
    alice, bob, nid = alice_bob_notification
    res = await client.get("/api/v1/notifications", headers=actor_headers(alice))
    assert res.status_code == 200
    assert [n["id"] for n in res.json()] == [str(nid)]
    assert res.json()[0]["type"] == "like"
    assert res.json()[0]["related_post_id"] is not None


async def test_mark_read(client, alice_bob_notification, actor_headers):
    alice, _, nid = alice_bob_notification
    res = await client.put(
        f"/api/v1/notifications/{nid}/read", headers=actor_headers(alice),
    )
    assert res.status_code == 200
    assert res.json()["read"] is True

    listed = await client.get("/api/v1/notifications", headers=actor_headers(alice))
    assert listed.json()[0]["read"] is True


async def test_mark_read_someone_elses_is_404(
    client, alice_bob_notification, actor_headers,
):
    _, bob, nid = alice_bob_notification
    res = await client.put(
        f"/api/v1/notifications/{nid}/read", headers=actor_headers(bob),
    )
    assert res.status_code == 404


async def test_delete(client, alice_bob_notification, actor_headers):
    alice, bob, nid = alice_bob_notification

    denied = await client.delete(
        f"/api/v1/notifications/{nid}", headers=actor_headers(bob),
    )
    assert denied.status_code == 404

    res = await client.delete(
        f"/api/v1/notifications/{nid}", headers=actor_headers(alice),
    )
    assert res.status_code == 200
    assert res.json() == {"message": "Notification deleted successfully"}
    listed = await client.get("/api/v1/notifications", headers=actor_headers(alice))
    assert listed.json() == []


async def test_health_endpoints(client):
    live = await client.get("/api/v1/health/")
    assert live.status_code == 200
    assert live.json()["status"] == "healthy"

    ready = await client.get("/api/v1/health/ready")
    assert ready.status_code == 200
    assert ready.json() == {"status": "ready", "checks": {"database": "healthy"}}
