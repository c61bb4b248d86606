from __future__ import annotations

import json
from typing import Any

import pytest
from fastapi.testclient import TestClient

from messenger.config import AppConfig
from messenger.connection import Connection
from messenger.hub import RealtimeHub
from messenger.main import create_app
from messenger.ratelimit import limiter


class RecordingConnection(Connection):
    """Connection that keeps every delivered event instead of writing to a socket."""

    def __init__(self) -> None:
        super().__init__()
        self.sent: list[dict[str, Any]] = []

    def _deliver(self, text: str) -> bool:
        self.sent.append(json.loads(text))
        return True

    def types(self) -> list[str]:
        return [event["type"] for event in self.sent]

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [event for event in self.sent if event["type"] == event_type]


class FailingConnection(Connection):
    """Connection whose transport is already broken."""

    def __init__(self) -> None:
        super().__init__()
        self.attempts = 0

    def _deliver(self, text: str) -> bool:
        self.attempts += 1
        raise ConnectionResetError("peer went away")


@pytest.fixture(autouse=True)
def _reset_rate_limits() -> None:
    limiter.reset()


@pytest.fixture
def hub() -> RealtimeHub:
    return RealtimeHub()


@pytest.fixture
def app():
    return create_app(AppConfig())


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def connect(hub: RealtimeHub, user_id: str) -> RecordingConnection:
    """Admit a recording connection for ``user_id`` through the lifecycle handler."""
    connection = RecordingConnection()
    hub.lifecycle.admit(connection, user_id)
    return connection


def make_user(client: TestClient, name: str) -> dict[str, Any]:
    resp = client.post(
        "/users/create",
        json={"email": f"{name.lower().replace(' ', '.')}@example.com", "name": name},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def befriend(client: TestClient, a: dict[str, Any], b: dict[str, Any]) -> None:
    resp = client.post("/friends/send", json={"senderId": a["id"], "receiverId": b["id"]})
    assert resp.status_code == 201, resp.text
    requests = client.get(f"/friends/listRequests/{b['id']}").json()
    pending = [r for r in requests if r["senderId"] == a["id"] and r["status"] == "pending"]
    resp = client.post("/friends/accept", json={"requestId": pending[0]["id"]})
    assert resp.status_code == 200, resp.text
