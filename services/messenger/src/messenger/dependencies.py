"""FastAPI dependencies resolving the per-app hub and store."""

from fastapi import Request, WebSocket

from messenger.hub import RealtimeHub
from messenger.store import MemoryStore


def get_hub(request: Request) -> RealtimeHub:
    return request.app.state.hub


def get_ws_hub(websocket: WebSocket) -> RealtimeHub:
    return websocket.app.state.hub


def get_store(request: Request) -> MemoryStore:
    return request.app.state.store
