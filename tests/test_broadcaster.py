from __future__ import annotations

from conftest import FailingConnection, RecordingConnection, connect

from messenger.broadcaster import Broadcaster
from messenger.events import Event, EventType
from messenger.registry import ConnectionRegistry


def test_broadcast_reaches_every_connection_and_skips_offline_users():
    registry = ConnectionRegistry()
    broadcaster = Broadcaster(registry)
    a1, a2 = RecordingConnection(), RecordingConnection()
    registry.register("A", a1)
    registry.register("A", a2)

    event = Event.create(EventType.NEW_MESSAGE, message={"id": 1, "content": "hi"})
    delivered = broadcaster.broadcast(["A", "B"], event)

    assert delivered == 2
    assert a1.sent == [{"type": "NEW_MESSAGE", "data": {"message": {"id": 1, "content": "hi"}}}]
    assert a2.sent == a1.sent


def test_duplicate_targets_are_processed_independently():
    registry = ConnectionRegistry()
    broadcaster = Broadcaster(registry)
    conn = RecordingConnection()
    registry.register("A", conn)

    broadcaster.broadcast(["A", "A"], Event.create("PING_TWICE"))

    assert conn.types() == ["PING_TWICE", "PING_TWICE"]


def test_broadcast_to_users_accepts_ints_and_plain_mappings():
    registry = ConnectionRegistry()
    broadcaster = Broadcaster(registry)
    conn = RecordingConnection()
    registry.register("12", conn)

    broadcaster.broadcast_to_users([12], {"type": "CUSTOM_EVENT", "data": {"x": 1}})

    assert conn.sent == [{"type": "CUSTOM_EVENT", "data": {"x": 1}}]


def test_failed_connection_is_torn_down_and_others_still_receive():
    registry = ConnectionRegistry()
    torn_down = []
    broadcaster = Broadcaster(registry, on_delivery_failure=torn_down.append)
    broken = FailingConnection()
    healthy = RecordingConnection()
    other_user = RecordingConnection()
    registry.register("A", broken)
    registry.register("A", healthy)
    registry.register("B", other_user)

    delivered = broadcaster.broadcast(["A", "B"], Event.create(EventType.NEW_MESSAGE))

    assert delivered == 2
    assert torn_down == [broken]
    assert healthy.types() == ["NEW_MESSAGE"]
    assert other_user.types() == ["NEW_MESSAGE"]


def test_failure_handler_errors_do_not_escape():
    registry = ConnectionRegistry()

    def explode(connection):
        raise RuntimeError("teardown bug")

    broadcaster = Broadcaster(registry, on_delivery_failure=explode)
    registry.register("A", FailingConnection())

    assert broadcaster.broadcast(["A"], Event.create("X")) == 0


def test_hub_tears_down_failing_connection_and_reports_offline(hub):
    watcher = connect(hub, "1")
    broken = FailingConnection()
    hub.registry.register("2", broken)
    broken.mark_admitted("2")

    hub.broadcast_to_users(["2"], Event.create(EventType.NEW_FRIEND_REQUEST))

    assert not hub.registry.is_online("2")
    assert broken.closed
    offline = watcher.of_type("USER_STATUS_CHANGE")[-1]
    assert offline["data"] == {"userId": "2", "status": "offline"}
