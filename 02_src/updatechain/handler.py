"""Handler abstraction and the adapter for plain functions."""

import inspect
from enum import Enum
from typing import Any, Callable, Protocol, get_type_hints

from .exceptions import HandlerError
from .extract import Extraction, HandlerInput, TupleExtractor, resolve_extractor
from .logging_config import get_logger

logger = get_logger(__name__)


class HandlerResult(str, Enum):
    """Outcome of a handler that did not raise."""

    CONTINUE = "continue"
    STOP = "stop"
    SKIPPED = "skipped"  # arguments absent or predicate declined


class IHandler(Protocol):
    """Processes one dispatch input."""

    async def handle(self, input: HandlerInput) -> HandlerResult:
        """Handle input. Raises HandlerError on failure."""
        ...


def handler_name(handler: Any) -> str:
    """Readable name for logs and error messages."""
    name = getattr(handler, "name", None)
    if isinstance(name, str):
        return name
    return getattr(handler, "__qualname__", type(handler).__qualname__)


def coerce_result(value: Any, name: str) -> HandlerResult:
    """Map a function return value to a HandlerResult."""
    if value is None:
        return HandlerResult.CONTINUE
    if isinstance(value, HandlerResult):
        return value
    raise HandlerError(
        f"{name} returned unsupported value {value!r}", handler_name=name
    )


class FnHandler:
    """
    Adapts a sync or async function to IHandler.

    Every parameter must be annotated with an extractable type. Arguments
    are extracted in declaration order: the first absent argument skips the
    call, the first failed argument raises its ExtractionError. The first
    ``skip`` parameters are not extracted and must be passed to invoke().
    """

    def __init__(self, func: Callable[..., Any], skip: int = 0):
        if not callable(func):
            raise TypeError(f"{func!r} is not callable")
        self._func = func
        self.name = getattr(func, "__qualname__", type(func).__qualname__)

        target = func if inspect.isroutine(func) else func.__call__
        hints = get_type_hints(target, include_extras=True)
        params = list(inspect.signature(func).parameters.values())[skip:]

        extractors = []
        for param in params:
            if param.name not in hints:
                raise TypeError(f"{self.name}: parameter '{param.name}' is not annotated")
            extractors.append(resolve_extractor(hints[param.name]))
        self._arguments = TupleExtractor(*extractors)

    async def invoke(self, input: HandlerInput, *leading: Any) -> Extraction:
        """
        Extract arguments and call the function.

        Returns absent when an argument is absent, otherwise present with
        the raw return value.
        """
        arguments = await self._arguments.extract(input)
        if arguments.is_absent:
            return arguments
        if arguments.is_failed:
            error = arguments.error
            if error.handler_name is None:
                error.handler_name = self.name
            raise error

        try:
            result = self._func(*leading, *arguments.value)
            if inspect.isawaitable(result):
                result = await result
        except HandlerError:
            raise
        except Exception as e:
            raise HandlerError.wrap(e, self.name)
        return Extraction.present(result)

    async def handle(self, input: HandlerInput) -> HandlerResult:
        outcome = await self.invoke(input)
        if outcome.is_absent:
            logger.debug("Handler %s skipped: argument absent", self.name)
            return HandlerResult.SKIPPED
        return coerce_result(outcome.value, self.name)

    def __repr__(self) -> str:
        return f"FnHandler({self.name})"


def as_handler(obj: Any) -> IHandler:
    """Return obj if it is a handler, otherwise wrap the callable in FnHandler."""
    if callable(getattr(obj, "handle", None)):
        return obj
    if callable(obj):
        return FnHandler(obj)
    raise TypeError(f"{obj!r} is neither a handler nor callable")
