"""Functions deriving a rate limit key from an update."""

from typing import Callable, Hashable, Optional

from ..models import ChatId, Update, UserId

KeyFn = Callable[[Update], Optional[Hashable]]


def key_chat(update: Update) -> ChatId | None:
    """One bucket per chat."""
    return update.chat_id


def key_user(update: Update) -> UserId | None:
    """One bucket per user."""
    return update.user_id


def key_chat_user(update: Update) -> tuple[ChatId, UserId] | None:
    """One bucket per user in each chat."""
    chat_id, user_id = update.chat_id, update.user_id
    if chat_id is None or user_id is None:
        return None
    return chat_id, user_id
