"""Event envelope pushed to clients over WebSocket.

Every event is serialized once at construction; all recipients of a broadcast
receive the same text.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Mapping


class EventType(str, Enum):
    # Emitted by the realtime core
    USER_STATUS_CHANGE = "USER_STATUS_CHANGE"
    INITIAL_STATUS = "INITIAL_STATUS"
    # Emitted by domain routes
    NEW_CONVERSATION = "NEW_CONVERSATION"
    CONVERSATION_NAME_UPDATED = "CONVERSATION_NAME_UPDATED"
    CONVERSATION_PICTURE_UPDATED = "CONVERSATION_PICTURE_UPDATED"
    CONVERSATION_USERS_ADDED = "CONVERSATION_USERS_ADDED"
    CONVERSATION_USERS_REMOVED = "CONVERSATION_USERS_REMOVED"
    NEW_MESSAGE = "NEW_MESSAGE"
    NEW_FRIEND_REQUEST = "NEW_FRIEND_REQUEST"
    FRIEND_REQUEST_ACCEPTED = "FRIEND_REQUEST_ACCEPTED"
    FRIEND_REQUEST_REJECTED = "FRIEND_REQUEST_REJECTED"


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


@dataclass(frozen=True)
class Event:
    type: str
    data: dict[str, Any] = field(default_factory=dict)
    _wire: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        event_type = self.type.value if isinstance(self.type, EventType) else self.type
        if not isinstance(event_type, str) or not event_type:
            raise ValueError("Event type must be a non-empty string")
        object.__setattr__(self, "type", event_type)
        object.__setattr__(self, "data", copy.deepcopy(dict(self.data)))
        object.__setattr__(
            self,
            "_wire",
            json.dumps({"type": event_type, "data": self.data}, default=_json_default),
        )

    @classmethod
    def create(cls, event_type: EventType | str, **data: Any) -> Event:
        return cls(type=event_type, data=data)

    @classmethod
    def from_payload(cls, payload: Event | Mapping[str, Any]) -> Event:
        """Accept an Event or a plain ``{"type": ..., "data": ...}`` mapping."""
        if isinstance(payload, Event):
            return payload
        return cls(type=payload["type"], data=payload.get("data") or {})

    def serialize(self) -> str:
        return self._wire


def user_status_event(user_id: str, online: bool) -> Event:
    return Event.create(
        EventType.USER_STATUS_CHANGE,
        userId=user_id,
        status="online" if online else "offline",
    )


def initial_status_event(online_user_ids: Iterable[str]) -> Event:
    return Event.create(EventType.INITIAL_STATUS, onlineUsers=sorted(online_user_ids))
