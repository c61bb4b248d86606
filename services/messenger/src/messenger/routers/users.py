"""User REST API endpoints."""

import logging

from fastapi import APIRouter, Depends

from messenger.converters import clean_text, parse_id, user_detail, user_summary
from messenger.dependencies import get_store
from messenger.errors import InvalidRequestError
from messenger.models import CreateUserRequest, FriendsResponse, UserDetail
from messenger.store import MemoryStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/create", response_model=UserDetail, status_code=201)
async def create_user(
    body: CreateUserRequest,
    store: MemoryStore = Depends(get_store),
) -> UserDetail:
    """Create a user account. Email must be unique (case-insensitive)."""
    name = clean_text(body.name)
    email = clean_text(body.email)
    if not name or not email:
        raise InvalidRequestError("All fields are required and cannot be empty")

    user = await store.create_user(
        email=email,
        name=name,
        description=(body.description or "").strip(),
        picture=clean_text(body.picture),
    )
    logger.info("Created user %s (%s)", user.id, user.email)
    return user_detail(user)


@router.get("/friends/{user_id}", response_model=FriendsResponse)
async def list_friends(
    user_id: str,
    store: MemoryStore = Depends(get_store),
) -> FriendsResponse:
    uid = parse_id(user_id, "User ID must be a valid number.")
    await store.require_user(uid, "User not found.")
    friends = await store.get_friends(uid)
    return FriendsResponse(friends=[user_summary(f) for f in friends])


@router.get("/{user_id}", response_model=UserDetail)
async def get_user(
    user_id: str,
    store: MemoryStore = Depends(get_store),
) -> UserDetail:
    uid = parse_id(user_id, "User ID must be a valid number.")
    return user_detail(await store.require_user(uid, "User not found."))
