"""Command parsed from a message text."""

import shlex
from dataclasses import dataclass, field

from ..exceptions import CommandError
from .update import Message

COMMAND_PREFIX = "/"


@dataclass(frozen=True)
class Command:
    """
    A bot command such as ``/start arg1 'two words'``.

    The name keeps its leading slash. A ``@botname`` suffix is split off
    into ``bot_name``. Everything after the name is split shell-style.
    """

    name: str
    message: Message
    args: tuple[str, ...] = field(default_factory=tuple)
    bot_name: str | None = None

    @classmethod
    def parse(cls, message: Message) -> "Command | None":
        """
        Parse a command from a message.

        Returns None when the message text does not start with a command.
        Raises CommandError when the arguments have mismatched quotes.
        """
        text = message.text
        if not text or not text.startswith(COMMAND_PREFIX):
            return None

        head, *rest = text.split(None, 1)
        raw_args = rest[0] if rest else ""
        name, _, bot_name = head.partition("@")
        if name == COMMAND_PREFIX:
            return None

        try:
            args = shlex.split(raw_args)
        except ValueError as e:
            raise CommandError(f"failed to parse command {name}: {e}") from e

        return cls(
            name=name,
            message=message,
            args=tuple(args),
            bot_name=bot_name or None,
        )
