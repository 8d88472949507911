"""Core data models for updatechain."""

from .command import Command
from .update import (
    CallbackQuery,
    Chat,
    ChatId,
    InlineQuery,
    Message,
    Text,
    Update,
    UpdateKind,
    User,
    UserId,
)

__all__ = [
    # Update
    "Update",
    "UpdateKind",
    "Message",
    "Text",
    "Chat",
    "User",
    "CallbackQuery",
    "InlineQuery",
    "ChatId",
    "UserId",
    # Command
    "Command",
]
