"""Message REST API endpoint, nested under a conversation."""

import logging

from fastapi import APIRouter, Depends

from messenger.converters import message_info, parse_id, to_json
from messenger.dependencies import get_hub, get_store
from messenger.errors import ForbiddenError, InvalidRequestError
from messenger.events import Event, EventType
from messenger.hub import RealtimeHub
from messenger.models import MessageInfo, SendMessageRequest
from messenger.store import MemoryStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations/{conversation_id}/message", tags=["messages"])


@router.post("", response_model=MessageInfo, status_code=201)
async def send_message(
    conversation_id: str,
    body: SendMessageRequest,
    store: MemoryStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
) -> MessageInfo:
    """Store a message, then push it to every member of the conversation."""
    content = body.content
    if body.author_id in (None, "") or not conversation_id or not (content or "").strip():
        raise InvalidRequestError("Missing required fields")

    author_id = parse_id(body.author_id, "ID should be a number.", positive=False)
    cid = parse_id(conversation_id, "ID should be a number.", positive=False)

    await store.require_user(author_id)
    conversation = await store.require_conversation(cid)
    if author_id not in conversation.member_ids:
        raise ForbiddenError("User not in this conversation")

    message = await store.add_message(cid, author_id, content)
    info = await message_info(store, message)
    hub.broadcast_to_users(
        conversation.member_ids,
        Event.create(EventType.NEW_MESSAGE, message=to_json(info)),
    )
    return info
