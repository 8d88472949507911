"""Predicate decorator: run a handler only when a condition holds."""

from enum import Enum
from typing import Any, Protocol

from .exceptions import HandlerError
from .extract import HandlerInput
from .handler import FnHandler, HandlerResult, IHandler, as_handler, handler_name
from .logging_config import get_logger
from .models.command import COMMAND_PREFIX

logger = get_logger(__name__)


class PredicateResult(str, Enum):
    """Decision of a predicate."""

    TRUE = "true"  # run the decorated handler
    FALSE = "false"  # skip it
    STOP = "stop"  # skip it and stop the enclosing chain

    @classmethod
    def coerce(cls, value: Any, name: str) -> "PredicateResult":
        if isinstance(value, PredicateResult):
            return value
        if isinstance(value, bool):
            return cls.TRUE if value else cls.FALSE
        raise HandlerError(
            f"predicate {name} returned unsupported value {value!r}", handler_name=name
        )


class IPredicate(Protocol):
    """Decides whether a decorated handler runs."""

    async def evaluate(self, input: HandlerInput) -> PredicateResult:
        """Evaluate the predicate. Errors propagate to the caller."""
        ...


class FnPredicate:
    """
    Adapts a function returning bool or PredicateResult.

    Arguments are extracted like handler arguments; when one is absent the
    predicate evaluates to FALSE.
    """

    def __init__(self, func: Any):
        self._fn = FnHandler(func)
        self.name = self._fn.name

    async def evaluate(self, input: HandlerInput) -> PredicateResult:
        outcome = await self._fn.invoke(input)
        if outcome.is_absent:
            return PredicateResult.FALSE
        return PredicateResult.coerce(outcome.value, self.name)


def as_predicate(obj: Any) -> IPredicate:
    """Return obj if it is a predicate, otherwise wrap the callable in FnPredicate."""
    if callable(getattr(obj, "evaluate", None)):
        return obj
    if callable(obj):
        return FnPredicate(obj)
    raise TypeError(f"{obj!r} is neither a predicate nor callable")


class Predicate:
    """Runs the inner handler only when the predicate evaluates to TRUE."""

    def __init__(self, predicate: Any, handler: Any):
        self._predicate = as_predicate(predicate)
        self._handler = as_handler(handler)
        self.name = f"{handler_name(self._handler)}[{handler_name(self._predicate)}]"

    async def handle(self, input: HandlerInput) -> HandlerResult:
        try:
            decision = await self._predicate.evaluate(input)
        except HandlerError:
            raise
        except Exception as e:
            raise HandlerError.wrap(e, handler_name(self._predicate))
        if decision is PredicateResult.TRUE:
            return await self._handler.handle(input)

        logger.debug("Predicate %s: %s", self.name, decision.value)
        if decision is PredicateResult.STOP:
            return HandlerResult.STOP
        return HandlerResult.SKIPPED


class CommandPredicate:
    """
    Matches messages whose command name equals ``name`` exactly.

    The name includes the leading slash: ``CommandPredicate("/start")``
    matches ``/start`` and ``/start@bot arg`` but not ``/start2``.
    """

    def __init__(self, name: str):
        self.command = name
        self.name = f"command {name}"

    async def evaluate(self, input: HandlerInput) -> PredicateResult:
        message = input.update.get_message()
        if message is None or not message.text:
            return PredicateResult.FALSE
        if not message.text.startswith(COMMAND_PREFIX):
            return PredicateResult.FALSE

        head = message.text.split(maxsplit=1)[0]
        name = head.partition("@")[0]
        return PredicateResult.TRUE if name == self.command else PredicateResult.FALSE


def with_predicate(handler: Any, predicate: Any) -> Predicate:
    """Decorate handler with predicate."""
    return Predicate(predicate, handler)


def with_command(handler: Any, name: str) -> Predicate:
    """Run handler only for the command ``name``."""
    return Predicate(CommandPredicate(name), handler)
