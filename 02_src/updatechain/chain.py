"""Ordered composition of handlers."""

from enum import Enum
from typing import Any

from .exceptions import HandlerError
from .extract import HandlerInput
from .handler import HandlerResult, IHandler, as_handler, handler_name
from .logging_config import get_logger

logger = get_logger(__name__)


class ChainStrategy(str, Enum):
    """How a chain walks its members."""

    ALL = "all"  # every member until one stops
    ONCE = "once"  # first member that applies


class Chain:
    """
    Runs handlers in insertion order.

    ``all``: every member runs until one returns STOP. ``once``: members run
    until one does not skip; its result is the chain result. In both modes
    a chain whose members all skipped returns SKIPPED, and raised errors
    propagate without running later members.
    """

    def __init__(self, strategy: ChainStrategy, name: str | None = None):
        self._strategy = strategy
        self._handlers: list[IHandler] = []
        self.name = name or f"Chain.{strategy.value}"

    @classmethod
    def all(cls, name: str | None = None) -> "Chain":
        return cls(ChainStrategy.ALL, name)

    @classmethod
    def once(cls, name: str | None = None) -> "Chain":
        return cls(ChainStrategy.ONCE, name)

    @property
    def strategy(self) -> ChainStrategy:
        return self._strategy

    def add(self, handler: Any) -> "Chain":
        """Append a handler or function. Returns the chain."""
        self._handlers.append(as_handler(handler))
        return self

    def __len__(self) -> int:
        return len(self._handlers)

    async def handle(self, input: HandlerInput) -> HandlerResult:
        skipped = True
        for handler in self._handlers:
            try:
                result = await handler.handle(input)
            except HandlerError:
                raise
            except Exception as e:
                raise HandlerError.wrap(e, handler_name(handler))
            logger.debug(
                "%s: %s -> %s", self.name, handler_name(handler), result.value
            )
            if result is HandlerResult.SKIPPED:
                continue
            skipped = False
            if self._strategy is ChainStrategy.ONCE or result is HandlerResult.STOP:
                return result

        return HandlerResult.SKIPPED if skipped else HandlerResult.CONTINUE

    def __repr__(self) -> str:
        return f"{self.name}({len(self._handlers)} handlers)"
