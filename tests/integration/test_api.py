"""Integration smoke tests for REST API (using mocked UoW via dependency override)."""
from __future__ import annotations

import uuid

import jwt
import pytest
from fastapi.testclient import TestClient

from coach_messaging.api.deps import get_clock, get_uow
from coach_messaging.app import create_app
from coach_messaging.config import settings
from tests.conftest import FakeClock, FakeUoW


def _make_token(sub: uuid.UUID, kind: str = "coach", roles: list | None = None) -> str:
    return jwt.encode(
        {"sub": str(sub), "kind": kind, "roles": roles or []},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def _auth(sub: uuid.UUID, kind: str = "coach") -> dict[str, str]:
    return {"Authorization": f"Bearer {_make_token(sub, kind)}"}


@pytest.fixture
def app_with_uow():
    app = create_app()
    uow = FakeUoW()
    clock = FakeClock()

    async def _override():
        yield uow

    app.dependency_overrides[get_uow] = _override
    app.dependency_overrides[get_clock] = lambda: clock
    return app, uow, clock


@pytest.fixture
def client(app_with_uow):
    app, _, _ = app_with_uow
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def uow(app_with_uow):
    _, uow, _ = app_with_uow
    return uow


@pytest.fixture
def clock(app_with_uow):
    _, _, clock = app_with_uow
    return clock


@pytest.fixture
def pair(uow):
    coach_id = uuid.uuid4()
    client_id = uow.roster.add_client(coach_id)
    return coach_id, client_id


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_requires_token(client, pair):
    coach_id, client_id = pair
    resp = client.get(f"/api/v1/threads/{coach_id}/{client_id}/messages")
    assert resp.status_code in (401, 403)


def test_rejects_bad_token(client, pair):
    coach_id, client_id = pair
    resp = client.get(
        f"/api/v1/threads/{coach_id}/{client_id}/messages",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert resp.status_code == 401


def test_thread_round_trip(client, pair):
    coach_id, client_id = pair
    url = f"/api/v1/threads/{coach_id}/{client_id}"

    resp = client.post(f"{url}/messages", json={"body": "How did the run go?"}, headers=_auth(coach_id))
    assert resp.status_code == 201
    sent = resp.json()
    assert sent["seq"] == 1
    assert sent["sender_id"] == str(coach_id)
    assert sent["cursor"]

    resp = client.post(f"{url}/messages", json={"body": "Great"}, headers=_auth(client_id, "client"))
    assert resp.status_code == 201

    resp = client.get(f"{url}/messages", headers=_auth(client_id, "client"))
    assert [m["body"] for m in resp.json()] == ["How did the run go?", "Great"]

    resp = client.get(f"{url}/unread", headers=_auth(coach_id))
    assert resp.json() == {"unread": 1}

    resp = client.post(f"{url}/read", headers=_auth(coach_id))
    assert resp.json() == {"updated": 1}

    resp = client.get(f"{url}/unread", headers=_auth(coach_id))
    assert resp.json() == {"unread": 0}


def test_thread_errors(client, pair):
    coach_id, client_id = pair
    url = f"/api/v1/threads/{coach_id}/{client_id}/messages"

    resp = client.post(url, json={"body": ""}, headers=_auth(coach_id))
    assert resp.status_code == 422

    resp = client.post(url, json={"body": "hi"}, headers=_auth(uuid.uuid4()))
    assert resp.status_code == 403

    resp = client.get(f"/api/v1/threads/{coach_id}/{uuid.uuid4()}/messages", headers=_auth(coach_id))
    assert resp.status_code == 404

    resp = client.get(url, params={"before": "garbage!"}, headers=_auth(coach_id))
    assert resp.status_code == 422


def test_broadcast_lifecycle(client, uow, pair):
    coach_id, client_id = pair
    other_client = uow.roster.add_client(coach_id)

    resp = client.post(
        "/api/v1/broadcasts",
        json={
            "title": "Schedule",
            "body": "Leg day moved to 6pm",
            "audience": {"type": "all"},
            "require_confirmation": True,
            "scheduled_at": "2026-03-05T18:00:00+00:00",
        },
        headers=_auth(coach_id),
    )
    assert resp.status_code == 201
    gm = resp.json()
    assert gm["status"] == "scheduled"
    assert gm["audience"] == {"type": "all"}

    resp = client.post(f"/api/v1/broadcasts/{gm['id']}/send-now", headers=_auth(coach_id))
    assert resp.status_code == 200
    sent = resp.json()
    assert sent["status"] == "sent"
    assert (sent["delivered"], sent["skipped"], sent["failed"]) == (2, 0, [])

    resp = client.post(f"/api/v1/broadcasts/{gm['id']}/send-now", headers=_auth(coach_id))
    assert resp.status_code == 409

    resp = client.post(f"/api/v1/broadcasts/{gm['id']}/confirm", headers=_auth(client_id, "client"))
    assert resp.status_code == 200

    resp = client.get(f"/api/v1/broadcasts/{gm['id']}", headers=_auth(coach_id))
    assert resp.json()["sent_count"] == 2
    assert resp.json()["confirmed_count"] == 1

    resp = client.get(f"/api/v1/broadcasts/{gm['id']}/recipients", headers=_auth(coach_id))
    recipients = {r["client_id"]: r for r in resp.json()}
    assert recipients.keys() == {str(client_id), str(other_client)}
    assert recipients[str(other_client)]["confirmed_at"] is None

    resp = client.post(
        f"/api/v1/broadcasts/recipients/{recipients[str(other_client)]['id']}/confirm",
        headers=_auth(other_client, "client"),
    )
    assert resp.status_code == 200

    resp = client.get(f"/api/v1/threads/{coach_id}/{client_id}/messages", headers=_auth(client_id, "client"))
    [message] = resp.json()
    assert message["group_message_id"] == gm["id"]
    assert message["title"] == "Schedule"
    assert message["confirmed_at"] is not None


def test_broadcast_permissions_and_validation(client, uow, pair):
    coach_id, client_id = pair

    resp = client.post(
        "/api/v1/broadcasts",
        json={"body": "hi", "audience": {"type": "all"}},
        headers=_auth(client_id, "client"),
    )
    assert resp.status_code == 403

    resp = client.post(
        "/api/v1/broadcasts",
        json={"body": "hi", "audience": {"type": "clients", "ids": []}},
        headers=_auth(coach_id),
    )
    assert resp.status_code == 422

    resp = client.post(
        "/api/v1/broadcasts",
        json={"body": "hi", "audience": {"type": "clients", "ids": [str(uuid.uuid4())]}},
        headers=_auth(coach_id),
    )
    assert resp.status_code == 422

    resp = client.post(
        "/api/v1/broadcasts",
        json={"body": "hi", "audience": {"type": "clients", "ids": [str(client_id)]}},
        headers=_auth(coach_id),
    )
    assert resp.status_code == 201
    gm_id = resp.json()["id"]

    resp = client.get(f"/api/v1/broadcasts/{gm_id}", headers=_auth(uuid.uuid4()))
    assert resp.status_code == 404

    resp = client.post(f"/api/v1/broadcasts/{gm_id}/cancel", headers=_auth(coach_id))
    assert resp.status_code == 200
    assert resp.json()["status"] == "canceled"

    resp = client.get("/api/v1/broadcasts", params={"status": "canceled"}, headers=_auth(coach_id))
    assert [b["id"] for b in resp.json()] == [gm_id]
