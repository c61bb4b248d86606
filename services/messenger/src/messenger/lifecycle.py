"""Admission and teardown of client connections."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Mapping, Optional

from messenger.connection import ConnectionState

if TYPE_CHECKING:
    from messenger.connection import Connection
    from messenger.presence import PresenceTracker
    from messenger.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

USER_ID_PARAM = "userId"
_USER_ID_RE = re.compile(r"^[A-Za-z0-9_.:-]+$")


def extract_user_id(params: Mapping[str, str], max_length: int = 64) -> Optional[str]:
    """Read the user id from handshake parameters; None if absent or malformed."""
    raw = params.get(USER_ID_PARAM)
    if not isinstance(raw, str):
        return None
    user_id = raw.strip()
    if not user_id or len(user_id) > max_length or not _USER_ID_RE.match(user_id):
        return None
    return user_id


class ConnectionLifecycleHandler:
    def __init__(self, registry: ConnectionRegistry, presence: PresenceTracker) -> None:
        self._registry = registry
        self._presence = presence

    def admit(self, connection: Connection, user_id: Optional[str]) -> bool:
        """Register a new connection. Returns False for unregistered mode.

        A connection without a usable user id stays open but receives nothing
        and does not show up in presence.
        """
        if user_id is None:
            connection.mark_unregistered()
            logger.info("Connection %s admitted without a user id", connection.id)
            return False

        if not connection.mark_admitted(user_id):
            # Closed (or admitted) before we got here; nothing to register.
            return False

        came_online = self._registry.register(user_id, connection)
        if connection.closed:
            # Teardown ran between mark_admitted and register; its deregister
            # was a no-op, so undo ours. Nobody saw this user come online.
            went_offline = self._registry.deregister(user_id, connection)
            if went_offline and not came_online:
                self._presence.user_went_offline(user_id)
            return False
        if came_online:
            self._presence.user_came_online(user_id)
        self._presence.send_initial_status(connection)
        return True

    def teardown(self, connection: Connection) -> None:
        """Idempotent: only the first close signal deregisters."""
        previous = connection.mark_closed()
        if previous is None:
            return
        if previous is ConnectionState.ADMITTED and connection.user_id is not None:
            self._release(connection.user_id, connection)
        logger.info("Connection %s closed (was %s)", connection.id, previous.value)

    def _release(self, user_id: str, connection: Connection) -> None:
        if self._registry.deregister(user_id, connection):
            self._presence.user_went_offline(user_id)
