from __future__ import annotations

import asyncio

import pytest
from conftest import RecordingConnection, connect

from messenger.connection import ConnectionState, WebSocketConnection
from messenger.events import Event
from messenger.lifecycle import extract_user_id


def _status_events(connection, user_id):
    return [
        e["data"]["status"]
        for e in connection.of_type("USER_STATUS_CHANGE")
        if e["data"]["userId"] == user_id
    ]


def test_first_connection_announces_online_to_everyone_including_self(hub):
    alice = connect(hub, "1")
    bob = connect(hub, "2")

    assert _status_events(alice, "2") == ["online"]
    assert _status_events(bob, "2") == ["online"]
    assert alice.state is ConnectionState.ADMITTED


def test_second_connection_of_same_user_is_not_a_new_online_transition(hub):
    watcher = connect(hub, "1")
    connect(hub, "2")
    connect(hub, "2")

    assert _status_events(watcher, "2") == ["online"]


def test_each_admitted_connection_gets_one_initial_status_including_itself(hub):
    connect(hub, "1")
    first = connect(hub, "2")
    second = connect(hub, "2")

    for conn in (first, second):
        initial = conn.of_type("INITIAL_STATUS")
        assert len(initial) == 1
        assert initial[0]["data"]["onlineUsers"] == ["1", "2"]


def test_snapshot_is_taken_after_registration(hub):
    conn = connect(hub, "solo")
    assert conn.types() == ["USER_STATUS_CHANGE", "INITIAL_STATUS"]
    assert conn.sent[1]["data"] == {"onlineUsers": ["solo"]}


def test_offline_emitted_once_when_last_connection_closes(hub):
    watcher = connect(hub, "1")
    a = connect(hub, "2")
    b = connect(hub, "2")

    hub.lifecycle.teardown(a)
    assert hub.registry.is_online("2")
    assert _status_events(watcher, "2") == ["online"]

    hub.lifecycle.teardown(b)
    assert not hub.registry.is_online("2")
    assert _status_events(watcher, "2") == ["online", "offline"]


def test_offline_event_not_sent_to_departed_user(hub):
    connect(hub, "1")
    leaving = connect(hub, "2")
    before = len(leaving.sent)

    hub.lifecycle.teardown(leaving)

    assert len(leaving.sent) == before


def test_teardown_is_idempotent(hub):
    watcher = connect(hub, "1")
    conn = connect(hub, "2")

    hub.lifecycle.teardown(conn)
    hub.lifecycle.teardown(conn)
    hub.lifecycle.teardown(conn)

    assert _status_events(watcher, "2") == ["online", "offline"]
    assert conn.state is ConnectionState.CLOSED


def test_connection_without_user_id_stays_invisible(hub):
    watcher = connect(hub, "1")
    anonymous = RecordingConnection()

    assert hub.lifecycle.admit(anonymous, None) is False
    assert anonymous.state is ConnectionState.UNREGISTERED
    assert anonymous.sent == []
    assert hub.registry.online_user_ids() == {"1"}

    hub.broadcast_to_users(["1"], {"type": "NEW_MESSAGE", "data": {}})
    assert anonymous.sent == []

    hub.lifecycle.teardown(anonymous)
    assert anonymous.state is ConnectionState.CLOSED
    assert watcher.types().count("USER_STATUS_CHANGE") == 1


def test_teardown_before_admission_is_safe(hub):
    conn = RecordingConnection()
    hub.lifecycle.teardown(conn)

    assert hub.lifecycle.admit(conn, "1") is False
    assert not hub.registry.is_online("1")
    assert conn.sent == []


def test_isonline_matches_connections_after_mixed_sequence(hub):
    conns = {uid: [connect(hub, uid) for _ in range(3)] for uid in ("1", "2", "3")}
    hub.lifecycle.teardown(conns["1"][0])
    hub.lifecycle.teardown(conns["2"][0])
    hub.lifecycle.teardown(conns["2"][1])
    hub.lifecycle.teardown(conns["2"][2])
    hub.lifecycle.teardown(conns["3"][1])

    for uid in ("1", "2", "3", "4"):
        assert hub.registry.is_online(uid) == bool(hub.registry.connections_for(uid))
    assert hub.online_user_ids() == ["1", "3"]


@pytest.mark.parametrize(
    "params, expected",
    [
        ({"userId": "42"}, "42"),
        ({"userId": "  42 "}, "42"),
        ({"userId": "user_a-1"}, "user_a-1"),
        ({}, None),
        ({"userId": ""}, None),
        ({"userId": "   "}, None),
        ({"userId": "bad id"}, None),
        ({"userId": "<script>"}, None),
        ({"userId": "x" * 65}, None),
    ],
)
def test_extract_user_id(params, expected):
    assert extract_user_id(params) == expected


class _NullWebSocket:
    async def send_text(self, text: str) -> None:
        pass


def _admit_on_finished_loop(hub, user_id):
    async def scenario():
        connection = WebSocketConnection(_NullWebSocket())
        hub.lifecycle.admit(connection, user_id)
        return connection

    return asyncio.run(scenario())


def test_teardown_after_event_loop_closed_still_deregisters(hub):
    watcher = connect(hub, "2")
    connection = _admit_on_finished_loop(hub, "1")
    assert hub.registry.is_online("1")

    hub.lifecycle.teardown(connection)

    assert connection.closed
    assert not hub.registry.is_online("1")
    assert hub.registry.connection_count() == 1
    assert _status_events(watcher, "1") == ["online", "offline"]


def test_failed_delivery_on_closed_loop_releases_the_user(hub):
    watcher = connect(hub, "2")
    connection = _admit_on_finished_loop(hub, "1")

    assert hub.broadcast_to_users(["1"], Event.create("PING_ALL")) == 0

    assert connection.closed
    assert not hub.registry.is_online("1")
    assert _status_events(watcher, "1") == ["online", "offline"]
    # Later close signals stay no-ops.
    hub.lifecycle.teardown(connection)
    assert _status_events(watcher, "1") == ["online", "offline"]
