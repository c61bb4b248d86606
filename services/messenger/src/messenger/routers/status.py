"""Service status endpoints, including who is currently connected."""

from fastapi import APIRouter, Depends

from messenger.dependencies import get_hub
from messenger.hub import RealtimeHub
from messenger.models import HealthResponse, OnlineUsersResponse, RootResponse

router = APIRouter(tags=["status"])


@router.get("/", response_model=RootResponse)
async def root() -> RootResponse:
    """Root endpoint with service info and available endpoints."""
    return RootResponse(
        service="messenger",
        status="running",
        endpoints={
            "health": "/health",
            "events_ws": "/ws?userId={userId}",
            "online": "/status/online",
            "users_api": "/users",
            "friends_api": "/friends",
            "conversations_api": "/conversations",
        },
    )


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok")


@router.get("/status/online", response_model=OnlineUsersResponse)
async def online_users(hub: RealtimeHub = Depends(get_hub)) -> OnlineUsersResponse:
    return OnlineUsersResponse(
        online_users=hub.online_user_ids(),
        connections=hub.registry.connection_count(),
    )
