"""Presence events derived from registry transitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from messenger.events import initial_status_event, user_status_event

if TYPE_CHECKING:
    from messenger.broadcaster import Broadcaster
    from messenger.connection import Connection
    from messenger.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class PresenceTracker:
    def __init__(self, registry: ConnectionRegistry, broadcaster: Broadcaster) -> None:
        self._registry = registry
        self._broadcaster = broadcaster

    def user_came_online(self, user_id: str) -> None:
        # The new user is part of the online set and receives its own event.
        recipients = self._registry.online_user_ids()
        self._broadcaster.broadcast(recipients, user_status_event(user_id, online=True))
        logger.info("User %s is online (%d online)", user_id, len(recipients))

    def user_went_offline(self, user_id: str) -> None:
        recipients = self._registry.online_user_ids()
        self._broadcaster.broadcast(recipients, user_status_event(user_id, online=False))
        logger.info("User %s is offline (%d online)", user_id, len(recipients))

    def send_initial_status(self, connection: Connection) -> None:
        snapshot = self._registry.online_user_ids()
        self._broadcaster.send_to(connection, initial_status_event(snapshot))
