"""WebSocket endpoint pushing events to a user's live connection."""

import asyncio
import json
import logging

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from messenger.connection import WebSocketConnection
from messenger.dependencies import get_ws_hub
from messenger.events import Event
from messenger.lifecycle import extract_user_id

logger = logging.getLogger(__name__)

_PONG = Event.create("pong")


async def websocket_event_stream(websocket: WebSocket):
    """Server-push stream for one client.

    Connect with ``/ws?userId=<id>``. Without a usable id the socket stays
    open but receives no events. The client may send:
      {"type": "ping"}

    Server pushes events as JSON: {"type": "...", "data": {...}}.
    """
    hub = get_ws_hub(websocket)
    await websocket.accept()

    connection = WebSocketConnection(
        websocket, max_pending=hub.config.max_pending_events
    )
    user_id = extract_user_id(
        websocket.query_params, max_length=hub.config.max_user_id_length
    )

    async def _read_ws():
        """Read client frames until the socket closes."""
        try:
            while True:
                text = await websocket.receive_text()
                try:
                    data = json.loads(text)
                except ValueError:
                    continue
                if isinstance(data, dict) and data.get("type") == "ping":
                    hub.broadcaster.send_to(connection, _PONG)
        except WebSocketDisconnect:
            pass
        except (ConnectionResetError, BrokenPipeError):
            pass
        except Exception as e:
            logger.warning("Error reading from WebSocket %s: %s", connection.id, e)

    async def _write_ws():
        """Flush queued events onto the socket."""
        try:
            await connection.run_writer()
        except (WebSocketDisconnect, ConnectionResetError, BrokenPipeError, RuntimeError) as e:
            logger.debug("Write to connection %s failed: %s", connection.id, e)

    tasks: list[asyncio.Task] = []
    try:
        hub.lifecycle.admit(connection, user_id)

        tasks = [asyncio.create_task(_read_ws()), asyncio.create_task(_write_ws())]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.error(
                    "WebSocket task failed for connection %s",
                    connection.id,
                    exc_info=task.exception(),
                )
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception("Unexpected error in WebSocket for connection %s", connection.id)
    finally:
        for task in tasks:
            task.cancel()
        hub.lifecycle.teardown(connection)
        if websocket.client_state == WebSocketState.CONNECTED:
            try:
                await websocket.close()
            except RuntimeError:
                pass
