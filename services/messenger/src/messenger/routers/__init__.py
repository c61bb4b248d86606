"""Messenger routers for REST endpoints."""

from messenger.routers.conversations import router as conversations_router
from messenger.routers.friends import router as friends_router
from messenger.routers.messages import router as messages_router
from messenger.routers.status import router as status_router
from messenger.routers.users import router as users_router

__all__ = [
    "conversations_router",
    "friends_router",
    "messages_router",
    "status_router",
    "users_router",
]
