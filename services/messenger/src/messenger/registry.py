"""Connection registry: maps user_id → set of live connections.

Single-process source of truth for who is reachable. The return values of
register/deregister are the only signal for presence transitions; they are
computed under the same lock as the mutation.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Hashable

if TYPE_CHECKING:
    from messenger.connection import Connection

logger = logging.getLogger(__name__)

UserId = str


def normalize_user_id(user_id: object) -> UserId:
    """Registry keys are compared as strings; 7 and "7" are the same user."""
    return user_id if isinstance(user_id, str) else str(user_id)


class ConnectionRegistry:
    def __init__(self) -> None:
        self._connections: dict[UserId, set[Connection]] = {}
        self._lock = threading.Lock()

    def register(self, user_id: object, connection: Hashable) -> bool:
        """Add a connection. Returns True if the user just came online."""
        key = normalize_user_id(user_id)
        with self._lock:
            connections = self._connections.get(key)
            came_online = connections is None
            if came_online:
                connections = self._connections[key] = set()
            elif connection in connections:
                return False
            connections.add(connection)
            total = len(connections)
        logger.info("Registered connection for user %s (total: %d)", key, total)
        return came_online

    def deregister(self, user_id: object, connection: Hashable) -> bool:
        """Remove a connection. Returns True if that was the user's last one.

        Unknown users and connections are ignored.
        """
        key = normalize_user_id(user_id)
        with self._lock:
            connections = self._connections.get(key)
            if not connections or connection not in connections:
                return False
            connections.discard(connection)
            went_offline = not connections
            if went_offline:
                del self._connections[key]
            remaining = len(connections)
        logger.info("Unregistered connection for user %s (remaining: %d)", key, remaining)
        return went_offline

    def is_online(self, user_id: object) -> bool:
        with self._lock:
            return bool(self._connections.get(normalize_user_id(user_id)))

    def online_user_ids(self) -> set[UserId]:
        with self._lock:
            return set(self._connections)

    def connections_for(self, user_id: object) -> set[Connection]:
        with self._lock:
            return set(self._connections.get(normalize_user_id(user_id), ()))

    def connection_count(self) -> int:
        with self._lock:
            return sum(len(c) for c in self._connections.values())
