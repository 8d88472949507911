"""Update-related data models."""

from dataclasses import dataclass
from enum import Enum


class ChatId(int):
    """Identifier of the chat an update belongs to."""


class UserId(int):
    """Identifier of the user who produced an update."""


@dataclass(frozen=True)
class User:
    """A user who sent an update."""

    id: int
    first_name: str = ""
    is_bot: bool = False
    username: str | None = None
    language_code: str | None = None


@dataclass(frozen=True)
class Chat:
    """A chat where a message was posted."""

    id: int
    type: str = "private"  # "private", "group", "supergroup", "channel"
    title: str | None = None
    username: str | None = None


@dataclass(frozen=True)
class Text:
    """Free-text payload of a message."""

    data: str

    def __str__(self) -> str:
        return self.data


@dataclass(frozen=True)
class Message:
    """A single message in a chat."""

    id: int
    chat: Chat
    date: int = 0
    from_user: User | None = None
    text: str | None = None

    def get_text(self) -> Text | None:
        """Get message text, if any."""
        return Text(self.text) if self.text is not None else None


@dataclass(frozen=True)
class CallbackQuery:
    """A press on an inline keyboard button."""

    id: str
    from_user: User
    data: str | None = None
    message: Message | None = None


@dataclass(frozen=True)
class InlineQuery:
    """An inline query typed by a user."""

    id: str
    from_user: User
    query: str = ""
    offset: str = ""


class UpdateKind(str, Enum):
    """Kinds of incoming updates."""

    MESSAGE = "message"
    EDITED_MESSAGE = "edited_message"
    CHANNEL_POST = "channel_post"
    CALLBACK_QUERY = "callback_query"
    INLINE_QUERY = "inline_query"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Update:
    """
    One unit of inbound activity.

    Exactly one of the payload fields is expected to be set; the accessors
    derive chat and user identifiers without mutating the update.
    """

    id: int
    message: Message | None = None
    edited_message: Message | None = None
    channel_post: Message | None = None
    callback_query: CallbackQuery | None = None
    inline_query: InlineQuery | None = None

    @property
    def kind(self) -> UpdateKind:
        """Kind of the payload carried by this update."""
        for kind in UpdateKind:
            if kind is not UpdateKind.UNKNOWN and getattr(self, kind.value) is not None:
                return kind
        return UpdateKind.UNKNOWN

    def get_message(self) -> Message | None:
        """Get the message payload for message-like updates."""
        return self.message or self.edited_message or self.channel_post

    @property
    def chat(self) -> Chat | None:
        message = self.get_message()
        if message is not None:
            return message.chat
        if self.callback_query is not None and self.callback_query.message is not None:
            return self.callback_query.message.chat
        return None

    @property
    def chat_id(self) -> ChatId | None:
        chat = self.chat
        return ChatId(chat.id) if chat is not None else None

    @property
    def chat_username(self) -> str | None:
        chat = self.chat
        return chat.username if chat is not None else None

    @property
    def user(self) -> User | None:
        message = self.get_message()
        if message is not None:
            return message.from_user
        if self.callback_query is not None:
            return self.callback_query.from_user
        if self.inline_query is not None:
            return self.inline_query.from_user
        return None

    @property
    def user_id(self) -> UserId | None:
        user = self.user
        return UserId(user.id) if user is not None else None

    @property
    def text(self) -> Text | None:
        message = self.get_message()
        return message.get_text() if message is not None else None
