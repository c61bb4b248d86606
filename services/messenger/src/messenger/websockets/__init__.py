"""Messenger WebSocket handlers."""

from messenger.websockets.stream import websocket_event_stream

__all__ = ["websocket_event_stream"]
