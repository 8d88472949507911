"""Error decorator: intercept handler errors and decide how to continue."""

import inspect
from typing import Any, Callable, Protocol, Union

from .exceptions import HandlerError
from .extract import HandlerInput
from .handler import HandlerResult, as_handler, handler_name
from .logging_config import get_logger

logger = get_logger(__name__)

ErrorOutcome = Union[HandlerResult, BaseException]


class IErrorHandler(Protocol):
    """Receives errors raised by a decorated handler."""

    async def handle_error(self, error: HandlerError) -> ErrorOutcome:
        """Return a HandlerResult to recover, or an exception to re-raise."""
        ...


class LoggingErrorHandler:
    """Logs the error and recovers with a fixed result."""

    def __init__(self, policy: HandlerResult = HandlerResult.STOP):
        self.policy = policy

    async def handle_error(self, error: HandlerError) -> ErrorOutcome:
        logger.error(
            "Handler %s failed: %s",
            error.handler_name or "<unknown>",
            error,
            exc_info=error,
        )
        return self.policy


class _FnErrorHandler:
    def __init__(self, func: Callable[[HandlerError], Any]):
        self._func = func

    async def handle_error(self, error: HandlerError) -> ErrorOutcome:
        outcome = self._func(error)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return outcome


class ErrorDecorator:
    """
    Runs a handler and routes its HandlerError to an error handler.

    The error handler either recovers with a HandlerResult or returns an
    exception which is raised in place of the original one.
    """

    def __init__(self, handler: Any, error_handler: Any):
        self._handler = as_handler(handler)
        if callable(getattr(error_handler, "handle_error", None)):
            self._error_handler = error_handler
        else:
            self._error_handler = _FnErrorHandler(error_handler)
        self.name = handler_name(self._handler)

    async def handle(self, input: HandlerInput) -> HandlerResult:
        try:
            return await self._handler.handle(input)
        except HandlerError as e:
            outcome = await self._error_handler.handle_error(e)
        except Exception as e:
            outcome = await self._error_handler.handle_error(HandlerError.wrap(e, self.name))

        if isinstance(outcome, HandlerResult):
            return outcome
        if isinstance(outcome, BaseException):
            raise outcome
        raise HandlerError(
            f"error handler for {self.name} returned unsupported value {outcome!r}",
            handler_name=self.name,
        )


def on_error(handler: Any, error_handler: Any = None) -> ErrorDecorator:
    """Decorate handler with an error handler; logs and stops by default."""
    return ErrorDecorator(handler, error_handler or LoggingErrorHandler())
