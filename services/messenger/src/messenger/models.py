"""Pydantic models for request/response validation.

JSON uses camelCase (``senderId``); Python attributes use snake_case.
Id fields on requests accept ints or numeric strings and are checked in the
routes, so a bad id yields the route's own error message.
"""

from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

IdValue = Optional[Union[int, str]]


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class CreateUserRequest(ApiModel):
    """Request body for creating a user."""

    email: Optional[str] = Field(default=None, max_length=254)
    name: Optional[str] = Field(default=None, max_length=100)
    description: str = Field(default="", max_length=1000)
    picture: Optional[str] = Field(default=None, max_length=2048)


class UserSummary(ApiModel):
    id: int
    name: str
    picture: Optional[str] = None


class UserDetail(ApiModel):
    id: int
    email: str
    name: str
    description: str = ""
    picture: Optional[str] = None
    created_at: datetime


class FriendsResponse(ApiModel):
    friends: List[UserSummary]


# ---------------------------------------------------------------------------
# Friend requests
# ---------------------------------------------------------------------------


class SendFriendRequest(ApiModel):
    sender_id: IdValue = None
    receiver_id: IdValue = None


class ResolveFriendRequest(ApiModel):
    request_id: IdValue = None


class FriendRequestInfo(ApiModel):
    id: int
    sender_id: int
    receiver_id: int
    status: str  # "pending" | "accepted" | "rejected"
    created_at: datetime
    sender: UserSummary
    receiver: UserSummary


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------


class CreateConversationRequest(ApiModel):
    user_ids: Optional[List[IdValue]] = None
    admin_id: IdValue = None
    name: Optional[str] = Field(default=None, max_length=200)


class RenameConversationRequest(ApiModel):
    user_id: IdValue = None
    name: Optional[str] = Field(default=None, max_length=200)


class ConversationPictureRequest(ApiModel):
    user_id: IdValue = None
    picture: Optional[str] = Field(default=None, max_length=2048)


class AddUsersRequest(ApiModel):
    admin_id: IdValue = None
    user_ids: Optional[List[IdValue]] = None


class MessageAuthor(ApiModel):
    id: int
    name: str


class MessageInfo(ApiModel):
    id: int
    content: str
    author_id: int
    conversation_id: int
    created_at: datetime
    author: MessageAuthor


class ConversationInfo(ApiModel):
    id: int
    name: Optional[str] = None
    picture: Optional[str] = None
    admin_id: int
    created_at: datetime
    users: List[UserSummary] = Field(default_factory=list)


class ConversationDetail(ConversationInfo):
    messages: List[MessageInfo] = Field(default_factory=list)


class ConversationsResponse(ApiModel):
    conversations: List[ConversationInfo]


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class SendMessageRequest(ApiModel):
    author_id: IdValue = None
    content: Optional[str] = Field(default=None, max_length=5000)


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


class StatusMessage(ApiModel):
    message: str


class OnlineUsersResponse(ApiModel):
    online_users: List[str]
    connections: int


class HealthResponse(ApiModel):
    """Health check response."""

    status: str


class RootResponse(ApiModel):
    """Root endpoint response."""

    service: str
    status: str
    endpoints: Dict[str, str]
