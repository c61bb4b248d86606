"""Fan-out of events to the live connections of a set of users."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Optional

from messenger.events import Event
from messenger.registry import ConnectionRegistry, normalize_user_id

if TYPE_CHECKING:
    from messenger.connection import Connection

logger = logging.getLogger(__name__)


class Broadcaster:
    def __init__(
        self,
        registry: ConnectionRegistry,
        on_delivery_failure: Optional[Callable[[Connection], None]] = None,
    ) -> None:
        self._registry = registry
        self._on_delivery_failure = on_delivery_failure

    def set_failure_handler(self, handler: Callable[[Connection], None]) -> None:
        self._on_delivery_failure = handler

    def broadcast(self, user_ids: Iterable[object], event: Event) -> int:
        """Send an event to every live connection of each user.

        Offline users are skipped. Duplicate ids are processed independently.
        Returns the number of connections the event was handed to.
        """
        delivered = 0
        for user_id in user_ids:
            for connection in self._registry.connections_for(user_id):
                if self.send_to(connection, event):
                    delivered += 1
        return delivered

    def broadcast_to_users(
        self,
        user_ids: Iterable[object],
        event: Event | Mapping[str, Any],
    ) -> int:
        """Entry point for domain routes: ids may be ints or strings."""
        event = Event.from_payload(event)
        targets = [normalize_user_id(u) for u in user_ids]
        delivered = self.broadcast(targets, event)
        logger.debug(
            "Broadcast %s to %d users (%d connections)", event.type, len(targets), delivered
        )
        return delivered

    def send_to(self, connection: Connection, event: Event) -> bool:
        """Deliver to a single connection; failures tear that connection down."""
        try:
            return connection.send(event)
        except Exception:
            logger.warning(
                "Delivery of %s to connection %s failed, closing it",
                event.type,
                connection.id,
                exc_info=True,
            )
            self._handle_failure(connection)
            return False

    def _handle_failure(self, connection: Connection) -> None:
        if self._on_delivery_failure is None:
            return
        try:
            self._on_delivery_failure(connection)
        except Exception:
            logger.exception("Teardown after failed delivery raised for %s", connection.id)
