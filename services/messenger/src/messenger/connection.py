"""Connection handles: one per live client channel.

A connection moves PENDING → ADMITTED → CLOSED, or PENDING → UNREGISTERED →
CLOSED when the handshake carried no usable user id. Delivery never blocks the
caller: events go into a bounded per-connection queue that a writer task
flushes onto the socket.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from fastapi import WebSocket

    from messenger.events import Event

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    PENDING = "pending"
    ADMITTED = "admitted"
    UNREGISTERED = "unregistered"
    CLOSED = "closed"


class ConnectionClosedError(RuntimeError):
    """Raised when sending on a connection that has been torn down."""


class Connection(ABC):
    """State machine shared by every transport.

    Subclasses implement ``_deliver`` for the actual (non-blocking) hand-off.
    """

    def __init__(self) -> None:
        self.id = uuid.uuid4().hex[:12]
        self._state = ConnectionState.PENDING
        self._user_id: Optional[str] = None
        self._state_lock = threading.Lock()
        self.dropped = 0

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id} user={self._user_id} {self._state.value}>"

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def closed(self) -> bool:
        return self._state is ConnectionState.CLOSED

    def mark_admitted(self, user_id: str) -> bool:
        with self._state_lock:
            if self._state is not ConnectionState.PENDING:
                return False
            self._user_id = user_id
            self._state = ConnectionState.ADMITTED
            return True

    def mark_unregistered(self) -> bool:
        with self._state_lock:
            if self._state is not ConnectionState.PENDING:
                return False
            self._state = ConnectionState.UNREGISTERED
            return True

    def mark_closed(self) -> Optional[ConnectionState]:
        """Close once. Returns the state closed from, or None if already closed."""
        with self._state_lock:
            previous = self._state
            if previous is ConnectionState.CLOSED:
                return None
            self._state = ConnectionState.CLOSED
        try:
            self._on_closed()
        except Exception:
            # The state change stands; callers still release the connection.
            logger.exception("Close hook failed for connection %s", self.id)
        return previous

    def send(self, event: Event) -> bool:
        """Hand an event off for delivery. False means it was dropped."""
        if self.closed:
            raise ConnectionClosedError(f"connection {self.id} is closed")
        return self._deliver(event.serialize())

    @abstractmethod
    def _deliver(self, text: str) -> bool:
        """Queue serialized text without blocking. False means dropped."""

    def _on_closed(self) -> None:
        pass


class WebSocketConnection(Connection):
    def __init__(
        self,
        websocket: WebSocket,
        *,
        max_pending: int = 256,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        super().__init__()
        self._websocket = websocket
        self._loop = loop or asyncio.get_running_loop()
        self._outbound: asyncio.Queue[Optional[str]] = asyncio.Queue(maxsize=max_pending)

    def _in_owner_loop(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _call_in_loop(self, fn: Callable[..., object], *args: object) -> None:
        if self._in_owner_loop():
            fn(*args)
        else:
            self._loop.call_soon_threadsafe(fn, *args)

    def _deliver(self, text: str) -> bool:
        if self._in_owner_loop():
            return self._offer(text)
        # Outcome is decided on the loop; from here it counts as handed off.
        self._loop.call_soon_threadsafe(self._offer, text)
        return True

    def _offer(self, text: str) -> bool:
        if self.closed:
            return False
        try:
            self._outbound.put_nowait(text)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                "Outbound queue full for connection %s (user %s), dropping event",
                self.id,
                self._user_id,
            )
            return False
        return True

    def _on_closed(self) -> None:
        if self._loop.is_closed():
            # No writer can still be running.
            return
        self._call_in_loop(self._stop_writer)

    def _stop_writer(self) -> None:
        # Closed connections deliver nothing more; pending events are discarded.
        while not self._outbound.empty():
            self._outbound.get_nowait()
        self._outbound.put_nowait(None)

    async def run_writer(self) -> None:
        """Flush queued events until closed. Transport errors propagate."""
        while True:
            text = await self._outbound.get()
            if text is None:
                return
            await self._websocket.send_text(text)
