"""Stored records → API models, plus request-value parsing helpers.

Timestamps are ISO 8601 strings in both REST responses and event payloads.
"""

from typing import Any, Optional

from messenger.errors import InvalidRequestError
from messenger.models import (
    ConversationDetail,
    ConversationInfo,
    FriendRequestInfo,
    MessageAuthor,
    MessageInfo,
    UserDetail,
    UserSummary,
)
from messenger.store import (
    MemoryStore,
    StoredConversation,
    StoredFriendRequest,
    StoredMessage,
    StoredUser,
)


def parse_id(value: Any, message: str, positive: bool = True) -> int:
    """Parse an int id from a JSON value or a path segment."""
    if isinstance(value, bool):
        raise InvalidRequestError(message)
    if isinstance(value, int):
        user_id = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        user_id = int(value.strip())
    else:
        raise InvalidRequestError(message)
    if positive and user_id <= 0:
        raise InvalidRequestError(message)
    return user_id


def clean_text(value: Optional[str], min_length: int = 1) -> Optional[str]:
    """Trimmed string, or None if missing/too short."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or len(value) < min_length:
        return None
    return value


def to_json(model) -> dict:
    """Event payload form of an API model (camelCase, JSON types)."""
    return model.model_dump(mode="json", by_alias=True)


def user_summary(user: StoredUser) -> UserSummary:
    return UserSummary(id=user.id, name=user.name, picture=user.picture)


def user_detail(user: StoredUser) -> UserDetail:
    return UserDetail(
        id=user.id,
        email=user.email,
        name=user.name,
        description=user.description,
        picture=user.picture,
        created_at=user.created_at,
    )


async def friend_request_info(
    store: MemoryStore, request: StoredFriendRequest
) -> FriendRequestInfo:
    sender = await store.require_user(request.sender_id)
    receiver = await store.require_user(request.receiver_id)
    return FriendRequestInfo(
        id=request.id,
        sender_id=request.sender_id,
        receiver_id=request.receiver_id,
        status=request.status,
        created_at=request.created_at,
        sender=user_summary(sender),
        receiver=user_summary(receiver),
    )


async def message_info(store: MemoryStore, message: StoredMessage) -> MessageInfo:
    author = await store.get_user(message.author_id)
    return MessageInfo(
        id=message.id,
        content=message.content,
        author_id=message.author_id,
        conversation_id=message.conversation_id,
        created_at=message.created_at,
        author=MessageAuthor(
            id=message.author_id,
            name=author.name if author else "Unknown",
        ),
    )


async def conversation_info(
    store: MemoryStore, conversation: StoredConversation
) -> ConversationInfo:
    members = await store.get_users(conversation.member_ids)
    return ConversationInfo(
        id=conversation.id,
        name=conversation.name,
        picture=conversation.picture,
        admin_id=conversation.admin_id,
        created_at=conversation.created_at,
        users=[user_summary(u) for u in members],
    )


async def conversation_detail(
    store: MemoryStore, conversation: StoredConversation
) -> ConversationDetail:
    info = await conversation_info(store, conversation)
    messages = await store.load_messages(conversation.id)
    return ConversationDetail(
        **info.model_dump(),
        messages=[await message_info(store, m) for m in messages],
    )
