"""Friend request REST API endpoints.

Every state change is stored first, then pushed to the users it concerns.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request

from messenger.converters import friend_request_info, parse_id, to_json
from messenger.dependencies import get_hub, get_store
from messenger.errors import ConflictError, InvalidRequestError
from messenger.events import Event, EventType
from messenger.hub import RealtimeHub
from messenger.models import (
    FriendRequestInfo,
    ResolveFriendRequest,
    SendFriendRequest,
    StatusMessage,
)
from messenger.ratelimit import friend_request_limit, limiter
from messenger.store import ACCEPTED, REJECTED, MemoryStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/friends", tags=["friends"])


@router.post("/send", response_model=StatusMessage, status_code=201)
@limiter.limit(friend_request_limit)
async def send_friend_request(
    request: Request,
    body: SendFriendRequest,
    store: MemoryStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
) -> StatusMessage:
    sender_id = parse_id(body.sender_id, "IDs should be integers.")
    receiver_id = parse_id(body.receiver_id, "IDs should be integers.")
    if sender_id == receiver_id:
        raise InvalidRequestError("Cannot send a friend request to yourself")

    await store.require_user(sender_id)
    await store.require_user(receiver_id)
    if await store.are_friends(sender_id, receiver_id):
        raise ConflictError("Users are already friends")
    if await store.find_pending_request(sender_id, receiver_id):
        raise ConflictError("Friend request already sent")

    friend_request = await store.create_friend_request(sender_id, receiver_id)
    info = await friend_request_info(store, friend_request)
    hub.broadcast_to_users(
        [receiver_id],
        Event.create(EventType.NEW_FRIEND_REQUEST, request=to_json(info)),
    )
    logger.info("Friend request %s: %s -> %s", friend_request.id, sender_id, receiver_id)
    return StatusMessage(message="Friend request sent")


@router.post("/accept", response_model=StatusMessage)
async def accept_friend_request(
    body: ResolveFriendRequest,
    store: MemoryStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
) -> StatusMessage:
    request_id = parse_id(body.request_id, "Request ID must be a valid number.")
    friend_request = await store.resolve_friend_request(request_id, ACCEPTED)

    info = await friend_request_info(store, friend_request)
    hub.broadcast_to_users(
        [friend_request.sender_id, friend_request.receiver_id],
        Event.create(EventType.FRIEND_REQUEST_ACCEPTED, request=to_json(info)),
    )
    return StatusMessage(message="Friend request accepted")


@router.post("/reject", response_model=StatusMessage)
async def reject_friend_request(
    body: ResolveFriendRequest,
    store: MemoryStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
) -> StatusMessage:
    request_id = parse_id(body.request_id, "Request ID must be a valid number.")
    friend_request = await store.resolve_friend_request(request_id, REJECTED)

    info = await friend_request_info(store, friend_request)
    hub.broadcast_to_users(
        [friend_request.sender_id],
        Event.create(EventType.FRIEND_REQUEST_REJECTED, request=to_json(info)),
    )
    return StatusMessage(message="Friend request rejected")


@router.get("/listRequests/{user_id}", response_model=List[FriendRequestInfo])
async def list_friend_requests(
    user_id: str,
    store: MemoryStore = Depends(get_store),
) -> List[FriendRequestInfo]:
    uid = parse_id(user_id, "User ID must be a valid number.")
    requests = await store.list_friend_requests(uid)
    return [await friend_request_info(store, r) for r in requests]
