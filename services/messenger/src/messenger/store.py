"""In-memory store for users, friendships, conversations and messages.

All data lives in dicts, lost on restart. Interface is async so a database
backed implementation can be swapped in later. Ids are sequential integers.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

from messenger.errors import ConflictError, NotFoundError

PENDING = "pending"
ACCEPTED = "accepted"
REJECTED = "rejected"


@dataclass
class StoredUser:
    id: int
    email: str
    name: str
    created_at: datetime
    description: str = ""
    picture: Optional[str] = None


@dataclass
class StoredFriendRequest:
    id: int
    sender_id: int
    receiver_id: int
    created_at: datetime
    status: str = PENDING


@dataclass
class StoredConversation:
    id: int
    admin_id: int
    created_at: datetime
    # insertion ordered; dict keys double as an ordered set
    member_ids: dict[int, datetime] = field(default_factory=dict)
    name: Optional[str] = None
    picture: Optional[str] = None


@dataclass
class StoredMessage:
    id: int
    conversation_id: int
    author_id: int
    content: str
    created_at: datetime


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryStore:
    def __init__(self) -> None:
        self._users: dict[int, StoredUser] = {}
        self._emails: dict[str, int] = {}
        # user_id → friend ids (kept symmetric)
        self._friends: dict[int, set[int]] = {}
        self._requests: dict[int, StoredFriendRequest] = {}
        self._conversations: dict[int, StoredConversation] = {}
        # conversation_id → messages (append-only, chronological)
        self._messages: dict[int, list[StoredMessage]] = {}
        self._ids = {
            name: itertools.count(1)
            for name in ("user", "request", "conversation", "message")
        }

    def _next_id(self, kind: str) -> int:
        return next(self._ids[kind])

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(
        self,
        email: str,
        name: str,
        description: str = "",
        picture: Optional[str] = None,
    ) -> StoredUser:
        key = email.lower()
        if key in self._emails:
            raise ConflictError("Email is already in use")
        user = StoredUser(
            id=self._next_id("user"),
            email=email,
            name=name,
            created_at=_now(),
            description=description,
            picture=picture,
        )
        self._users[user.id] = user
        self._emails[key] = user.id
        self._friends[user.id] = set()
        return user

    async def get_user(self, user_id: int) -> Optional[StoredUser]:
        return self._users.get(user_id)

    async def require_user(self, user_id: int, message: str = "User not found") -> StoredUser:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError(message)
        return user

    async def get_users(self, user_ids: Iterable[int]) -> list[StoredUser]:
        """Existing users among ``user_ids``, in the order given."""
        return [self._users[u] for u in user_ids if u in self._users]

    # ------------------------------------------------------------------
    # Friendships
    # ------------------------------------------------------------------

    async def get_friends(self, user_id: int) -> list[StoredUser]:
        return [self._users[f] for f in sorted(self._friends.get(user_id, ()))]

    async def are_friends(self, a: int, b: int) -> bool:
        return b in self._friends.get(a, ())

    async def add_friendship(self, a: int, b: int) -> None:
        self._friends.setdefault(a, set()).add(b)
        self._friends.setdefault(b, set()).add(a)

    async def find_pending_request(
        self, sender_id: int, receiver_id: int
    ) -> Optional[StoredFriendRequest]:
        for request in self._requests.values():
            if (
                request.sender_id == sender_id
                and request.receiver_id == receiver_id
                and request.status == PENDING
            ):
                return request
        return None

    async def create_friend_request(self, sender_id: int, receiver_id: int) -> StoredFriendRequest:
        request = StoredFriendRequest(
            id=self._next_id("request"),
            sender_id=sender_id,
            receiver_id=receiver_id,
            created_at=_now(),
        )
        self._requests[request.id] = request
        return request

    async def get_friend_request(self, request_id: int) -> Optional[StoredFriendRequest]:
        return self._requests.get(request_id)

    async def resolve_friend_request(self, request_id: int, status: str) -> StoredFriendRequest:
        """Move a pending request to accepted/rejected; accepting links both users."""
        request = self._requests.get(request_id)
        if request is None or request.status != PENDING:
            raise NotFoundError("Friend request not found or already handled")
        request.status = status
        if status == ACCEPTED:
            await self.add_friendship(request.sender_id, request.receiver_id)
        return request

    async def list_friend_requests(self, user_id: int) -> list[StoredFriendRequest]:
        return [
            r
            for r in self._requests.values()
            if user_id in (r.sender_id, r.receiver_id)
        ]

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def create_conversation(
        self,
        member_ids: Iterable[int],
        admin_id: int,
        name: Optional[str] = None,
    ) -> StoredConversation:
        now = _now()
        conversation = StoredConversation(
            id=self._next_id("conversation"),
            admin_id=admin_id,
            created_at=now,
            name=name,
        )
        for user_id in member_ids:
            conversation.member_ids.setdefault(user_id, now)
        self._conversations[conversation.id] = conversation
        self._messages[conversation.id] = []
        return conversation

    async def get_conversation(self, conversation_id: int) -> Optional[StoredConversation]:
        return self._conversations.get(conversation_id)

    async def require_conversation(self, conversation_id: int) -> StoredConversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        return conversation

    async def list_conversations(self, user_id: int) -> list[StoredConversation]:
        conversations = [
            c for c in self._conversations.values() if user_id in c.member_ids
        ]
        conversations.sort(key=self._last_activity, reverse=True)
        return conversations

    def _last_activity(self, conversation: StoredConversation) -> datetime:
        messages = self._messages.get(conversation.id)
        return messages[-1].created_at if messages else conversation.created_at

    async def rename_conversation(self, conversation_id: int, name: str) -> StoredConversation:
        conversation = await self.require_conversation(conversation_id)
        conversation.name = name
        return conversation

    async def set_conversation_picture(
        self, conversation_id: int, picture: str
    ) -> StoredConversation:
        conversation = await self.require_conversation(conversation_id)
        conversation.picture = picture
        return conversation

    async def add_members(self, conversation_id: int, user_ids: Iterable[int]) -> list[int]:
        """Add users; returns the ids that were not already members."""
        conversation = await self.require_conversation(conversation_id)
        now = _now()
        added = []
        for user_id in user_ids:
            if user_id not in conversation.member_ids:
                conversation.member_ids[user_id] = now
                added.append(user_id)
        return added

    async def remove_member(self, conversation_id: int, user_id: int) -> bool:
        conversation = await self.require_conversation(conversation_id)
        return conversation.member_ids.pop(user_id, None) is not None

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def add_message(
        self,
        conversation_id: int,
        author_id: int,
        content: str,
    ) -> StoredMessage:
        message = StoredMessage(
            id=self._next_id("message"),
            conversation_id=conversation_id,
            author_id=author_id,
            content=content,
            created_at=_now(),
        )
        self._messages.setdefault(conversation_id, []).append(message)
        return message

    async def load_messages(self, conversation_id: int) -> list[StoredMessage]:
        return list(self._messages.get(conversation_id, ()))
