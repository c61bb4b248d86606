"""FastAPI application entry point."""
from __future__ import annotations

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from common.logging import setup_logging

from messenger.config import AppConfig, load_config
from messenger.errors import MessengerError
from messenger.hub import RealtimeHub
from messenger.ratelimit import configure_limits, limiter
from messenger.routers import (
    conversations_router,
    friends_router,
    messages_router,
    status_router,
    users_router,
)
from messenger.store import MemoryStore
from messenger.websockets import websocket_event_stream

logger = logging.getLogger(__name__)


async def _messenger_error_handler(request: Request, exc: MessengerError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"error": f"{location}: {message}" if location else message},
    )


def create_app(
    config: Optional[AppConfig] = None,
    store: Optional[MemoryStore] = None,
) -> FastAPI:
    """Build the app with its own hub and store."""
    config = config or load_config()

    app = FastAPI(title="Messenger", description="Chat backend with real-time push")
    app.state.config = config
    app.state.hub = RealtimeHub(config.realtime)
    app.state.store = store or MemoryStore()
    app.state.limiter = limiter
    configure_limits(config.rate_limit)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.origins,
        allow_credentials=config.cors.allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(MessengerError, _messenger_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.include_router(status_router)
    app.include_router(users_router)
    app.include_router(friends_router)
    app.include_router(messages_router)
    app.include_router(conversations_router)
    app.add_api_websocket_route("/ws", websocket_event_stream)

    return app


def main() -> None:
    setup_logging("messenger")
    config = load_config()
    logger.info("Starting messenger on %s:%d", config.server.host, config.server.port)
    uvicorn.run(create_app(config), host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
