"""Token bucket rate limiting for handlers."""

from .bucket import Jitter, Quota, TokenBucket
from .key import KeyFn, key_chat, key_chat_user, key_user
from .predicate import (
    DirectRateLimitPredicate,
    KeyedRateLimitPredicate,
    RateLimitMethod,
    with_rate_limit,
)

__all__ = [
    "DirectRateLimitPredicate",
    "Jitter",
    "KeyFn",
    "KeyedRateLimitPredicate",
    "Quota",
    "RateLimitMethod",
    "TokenBucket",
    "key_chat",
    "key_chat_user",
    "key_user",
    "with_rate_limit",
]
