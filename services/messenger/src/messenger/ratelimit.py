"""Shared slowapi limiter, keyed by client address.

Route limits are read when a request is checked, from the rate limit config
of the most recently built app.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from messenger.config import RateLimitConfig

limiter = Limiter(key_func=get_remote_address)

_limits = RateLimitConfig()


def configure_limits(config: RateLimitConfig) -> None:
    global _limits
    _limits = config


def friend_request_limit() -> str:
    return _limits.friend_requests


def conversation_limit() -> str:
    return _limits.conversations
