"""Tests for update models and command parsing."""

import pytest

from updatechain.exceptions import CommandError
from updatechain.models import (
    CallbackQuery,
    Chat,
    ChatId,
    Command,
    InlineQuery,
    Message,
    Update,
    UpdateKind,
    User,
    UserId,
)


def message(text: str | None) -> Message:
    return Message(id=1, chat=Chat(id=5, username="group"), from_user=User(id=7), text=text)


class TestUpdateAccessors:
    """Tests for Update accessors."""

    def test_message_update(self):
        """Test chat and user come from the message."""
        update = Update(id=1, message=message("hi"))

        assert update.kind is UpdateKind.MESSAGE
        assert update.chat_id == 5
        assert isinstance(update.chat_id, ChatId)
        assert update.user_id == 7
        assert isinstance(update.user_id, UserId)
        assert update.chat_username == "group"
        assert update.text.data == "hi"

    def test_edited_message_update(self):
        """Test edited messages expose the same accessors."""
        update = Update(id=1, edited_message=message("fixed"))

        assert update.kind is UpdateKind.EDITED_MESSAGE
        assert update.get_message().text == "fixed"
        assert update.chat_id == 5

    def test_callback_query_update(self):
        """Test callback query takes the chat from its message."""
        query = CallbackQuery(id="cb", from_user=User(id=3), data="x", message=message(None))
        update = Update(id=1, callback_query=query)

        assert update.kind is UpdateKind.CALLBACK_QUERY
        assert update.user_id == 3
        assert update.chat_id == 5
        assert update.text is None

    def test_inline_query_has_no_chat(self):
        """Test inline queries have a user but no chat."""
        update = Update(id=1, inline_query=InlineQuery(id="q", from_user=User(id=4)))

        assert update.kind is UpdateKind.INLINE_QUERY
        assert update.user_id == 4
        assert update.chat_id is None
        assert update.get_message() is None

    def test_empty_update(self):
        """Test update without payload."""
        update = Update(id=1)

        assert update.kind is UpdateKind.UNKNOWN
        assert update.user is None
        assert update.chat is None


class TestCommandParse:
    """Tests for Command.parse()."""

    def test_parse_name_and_args(self):
        """Test name keeps the slash and args are split shell-style."""
        command = Command.parse(message("/say hello 'big world'"))

        assert command.name == "/say"
        assert command.args == ("hello", "big world")
        assert command.bot_name is None

    def test_parse_bot_name(self):
        """Test @botname suffix is split off."""
        command = Command.parse(message("/start@my_bot"))

        assert command.name == "/start"
        assert command.bot_name == "my_bot"
        assert command.args == ()

    @pytest.mark.parametrize("text", [None, "", "start", "hello /start", "/"])
    def test_not_a_command(self, text):
        """Test texts without a leading command parse to None."""
        assert Command.parse(message(text)) is None

    def test_unbalanced_quotes(self):
        """Test unbalanced quotes raise CommandError."""
        with pytest.raises(CommandError):
            Command.parse(message("/say 'oops"))
