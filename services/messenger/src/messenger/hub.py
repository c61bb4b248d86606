"""RealtimeHub: owns the registry and the components built on it.

One instance per app, stored on ``app.state.hub``.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from messenger.broadcaster import Broadcaster
from messenger.config import RealtimeConfig
from messenger.events import Event
from messenger.lifecycle import ConnectionLifecycleHandler
from messenger.presence import PresenceTracker
from messenger.registry import ConnectionRegistry


class RealtimeHub:
    def __init__(self, config: RealtimeConfig | None = None) -> None:
        self.config = config or RealtimeConfig()
        self.registry = ConnectionRegistry()
        self.broadcaster = Broadcaster(self.registry)
        self.presence = PresenceTracker(self.registry, self.broadcaster)
        self.lifecycle = ConnectionLifecycleHandler(self.registry, self.presence)
        self.broadcaster.set_failure_handler(self.lifecycle.teardown)

    def broadcast_to_users(
        self,
        user_ids: Iterable[object],
        event: Event | Mapping[str, Any],
    ) -> int:
        return self.broadcaster.broadcast_to_users(user_ids, event)

    def online_user_ids(self) -> list[str]:
        return sorted(self.registry.online_user_ids())
