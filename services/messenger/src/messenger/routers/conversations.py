"""Conversation REST API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from messenger.converters import (
    clean_text,
    conversation_detail,
    conversation_info,
    parse_id,
    to_json,
    user_summary,
)
from messenger.dependencies import get_hub, get_store
from messenger.errors import ForbiddenError, InvalidRequestError, NotFoundError
from messenger.events import Event, EventType
from messenger.hub import RealtimeHub
from messenger.models import (
    AddUsersRequest,
    ConversationDetail,
    ConversationInfo,
    ConversationPictureRequest,
    ConversationsResponse,
    CreateConversationRequest,
    RenameConversationRequest,
)
from messenger.ratelimit import conversation_limit, limiter
from messenger.store import MemoryStore, StoredConversation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["conversations"])


async def _require_friends_of_admin(
    store: MemoryStore, admin_id: int, user_ids: list[int]
) -> None:
    for user_id in user_ids:
        if user_id != admin_id and not await store.are_friends(admin_id, user_id):
            raise InvalidRequestError(
                "All users in the conversation must be friends with the admin."
            )


def _require_member(conversation: StoredConversation, user_id: int) -> None:
    if user_id not in conversation.member_ids:
        raise ForbiddenError("User not in this conversation")


@router.post("/create", response_model=ConversationInfo, status_code=201)
@limiter.limit(conversation_limit)
async def create_conversation(
    request: Request,
    body: CreateConversationRequest,
    store: MemoryStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
) -> ConversationInfo:
    """Create a conversation between the admin and at least one friend."""
    if not isinstance(body.user_ids, list) or len(body.user_ids) < 2:
        raise InvalidRequestError("A conversation must include at least two users.")

    user_ids = [parse_id(u, "All user IDs must be valid numbers.") for u in body.user_ids]
    admin_id = parse_id(body.admin_id, "All user IDs must be valid numbers.")
    user_ids = list(dict.fromkeys(user_ids))
    if admin_id not in user_ids:
        user_ids.insert(0, admin_id)
    if len(user_ids) < 2:
        raise InvalidRequestError("A conversation must include at least two users.")

    existing = await store.get_users(user_ids)
    if len(existing) != len(user_ids):
        raise InvalidRequestError("One or more users not found.")
    await _require_friends_of_admin(store, admin_id, user_ids)

    conversation = await store.create_conversation(
        user_ids, admin_id=admin_id, name=clean_text(body.name)
    )
    info = await conversation_info(store, conversation)
    hub.broadcast_to_users(
        user_ids,
        Event.create(EventType.NEW_CONVERSATION, conversation=to_json(info)),
    )
    logger.info("Created conversation %s with %d users", conversation.id, len(user_ids))
    return info


@router.get("/user/{user_id}", response_model=ConversationsResponse)
async def list_user_conversations(
    user_id: str,
    store: MemoryStore = Depends(get_store),
) -> ConversationsResponse:
    """Conversations a user belongs to, most recently active first."""
    uid = parse_id(user_id, "Invalid user ID", positive=False)
    await store.require_user(uid)
    conversations = await store.list_conversations(uid)
    return ConversationsResponse(
        conversations=[await conversation_info(store, c) for c in conversations]
    )


@router.get("/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(
    conversation_id: str,
    store: MemoryStore = Depends(get_store),
) -> ConversationDetail:
    cid = parse_id(conversation_id, "Invalid conversation ID", positive=False)
    conversation = await store.require_conversation(cid)
    return await conversation_detail(store, conversation)


@router.patch("/{conversation_id}/name", response_model=ConversationInfo)
async def rename_conversation(
    conversation_id: str,
    body: RenameConversationRequest,
    store: MemoryStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
) -> ConversationInfo:
    cid = parse_id(conversation_id, "IDs should be integers.")
    user_id = parse_id(body.user_id, "IDs should be integers.")
    name = clean_text(body.name)
    if not name:
        raise InvalidRequestError("Name cannot be empty")

    conversation = await store.require_conversation(cid)
    _require_member(conversation, user_id)
    conversation = await store.rename_conversation(cid, name)

    hub.broadcast_to_users(
        conversation.member_ids,
        Event.create(
            EventType.CONVERSATION_NAME_UPDATED,
            conversationId=cid,
            name=name,
            updatedBy=user_id,
        ),
    )
    return await conversation_info(store, conversation)


@router.patch("/{conversation_id}/picture", response_model=ConversationInfo)
async def update_conversation_picture(
    conversation_id: str,
    body: ConversationPictureRequest,
    store: MemoryStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
) -> ConversationInfo:
    cid = parse_id(conversation_id, "IDs should be integers.")
    user_id = parse_id(body.user_id, "IDs should be integers.")
    picture = clean_text(body.picture)
    if not picture:
        raise InvalidRequestError("Picture cannot be empty")

    conversation = await store.require_conversation(cid)
    _require_member(conversation, user_id)
    conversation = await store.set_conversation_picture(cid, picture)

    hub.broadcast_to_users(
        conversation.member_ids,
        Event.create(
            EventType.CONVERSATION_PICTURE_UPDATED,
            conversationId=cid,
            picture=picture,
            updatedBy=user_id,
        ),
    )
    return await conversation_info(store, conversation)


@router.post("/{conversation_id}/users", response_model=ConversationInfo)
async def add_conversation_users(
    conversation_id: str,
    body: AddUsersRequest,
    store: MemoryStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
) -> ConversationInfo:
    """Admin adds friends to an existing conversation."""
    cid = parse_id(conversation_id, "IDs should be integers.")
    admin_id = parse_id(body.admin_id, "IDs should be integers.")
    if not isinstance(body.user_ids, list) or not body.user_ids:
        raise InvalidRequestError("userIds must be a non-empty list.")
    user_ids = [parse_id(u, "IDs should be integers.") for u in body.user_ids]

    conversation = await store.require_conversation(cid)
    if conversation.admin_id != admin_id:
        raise ForbiddenError("Only the admin can add users")
    if len(await store.get_users(set(user_ids))) != len(set(user_ids)):
        raise NotFoundError("One or more users not found.")
    await _require_friends_of_admin(store, admin_id, user_ids)

    added = await store.add_members(cid, user_ids)
    if added:
        added_users = await store.get_users(added)
        hub.broadcast_to_users(
            conversation.member_ids,
            Event.create(
                EventType.CONVERSATION_USERS_ADDED,
                conversationId=cid,
                users=[to_json(user_summary(u)) for u in added_users],
            ),
        )
    return await conversation_info(store, conversation)


@router.delete("/{conversation_id}/users/{user_id}", response_model=ConversationInfo)
async def remove_conversation_user(
    conversation_id: str,
    user_id: str,
    admin_id: Optional[str] = Query(default=None, alias="adminId"),
    store: MemoryStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
) -> ConversationInfo:
    """Remove a member. The admin removes anyone but themselves; members may leave."""
    cid = parse_id(conversation_id, "IDs should be integers.")
    uid = parse_id(user_id, "IDs should be integers.")
    actor_id = parse_id(admin_id, "IDs should be integers.") if admin_id is not None else uid

    conversation = await store.require_conversation(cid)
    if uid == conversation.admin_id:
        raise ForbiddenError("The admin cannot be removed from the conversation")
    if actor_id not in (conversation.admin_id, uid):
        raise ForbiddenError("Only the admin can remove other users")
    if uid not in conversation.member_ids:
        raise NotFoundError("User not in this conversation")

    # Notify the removed user as well as those who remain.
    recipients = list(conversation.member_ids)
    await store.remove_member(cid, uid)
    hub.broadcast_to_users(
        recipients,
        Event.create(
            EventType.CONVERSATION_USERS_REMOVED,
            conversationId=cid,
            userIds=[uid],
        ),
    )
    return await conversation_info(store, conversation)
