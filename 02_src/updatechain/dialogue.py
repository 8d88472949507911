"""Dialogues: handlers driven by a state persisted in the user's session."""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .exceptions import DialogueError, HandlerError, StorageError
from .extract import HandlerInput
from .handler import FnHandler, HandlerResult
from .logging_config import get_logger
from .predicate import PredicateResult, as_predicate
from .session import Session, SessionManager

logger = get_logger(__name__)

S = TypeVar("S")

SESSION_KEY_PREFIX = "__dialogue:"


@dataclass(frozen=True)
class DialogueResult(Generic[S]):
    """Next state of a dialogue, or the end of it."""

    state: S | None = None
    finished: bool = False

    @classmethod
    def next(cls, state: S) -> "DialogueResult[S]":
        return cls(state=state)

    @classmethod
    def exit(cls) -> "DialogueResult[S]":
        return cls(finished=True)


class Dialogue:
    """
    Runs a state-machine handler whose state lives in the session.

    The handler receives the current state as its first argument; the
    remaining arguments are extracted like any handler's. A stored state
    means the dialogue is in progress and the handler always runs. Without
    one, ``predicate`` decides whether a new dialogue starts from
    ``initial``.

    Returning ``DialogueResult.next(state)`` or a bare state saves it and
    continues; returning None keeps the current state.
    ``DialogueResult.exit()`` removes the state and stops the chain.
    """

    def __init__(
        self,
        handler: Any,
        *,
        name: str,
        initial: Any,
        state_type: Any = None,
        predicate: Any = None,
    ):
        self._handler = FnHandler(handler, skip=1)
        self._predicate = as_predicate(predicate) if predicate is not None else None
        self.initial = initial
        self.state_type = state_type or type(initial)
        self.session_key = f"{SESSION_KEY_PREFIX}{name}"
        self.name = f"dialogue {name}"

    def _get_session(self, input: HandlerInput) -> Session | None:
        manager = input.context.get(SessionManager)
        if manager is None:
            raise DialogueError("SessionManager not found in context", handler_name=self.name)
        return manager.get_session(input.update)

    async def _load(self, session: Session) -> Any | None:
        try:
            return await session.get(self.session_key, self.state_type)
        except StorageError as e:
            raise DialogueError(f"Failed to load state: {e}", handler_name=self.name) from e

    async def _save(self, session: Session, state: Any) -> None:
        try:
            await session.set(self.session_key, state)
        except StorageError as e:
            raise DialogueError(f"Failed to save state: {e}", handler_name=self.name) from e

    async def _clear(self, session: Session) -> None:
        try:
            await session.remove(self.session_key)
        except StorageError as e:
            raise DialogueError(f"Failed to remove state: {e}", handler_name=self.name) from e

    async def handle(self, input: HandlerInput) -> HandlerResult:
        session = self._get_session(input)
        if session is None:
            return HandlerResult.SKIPPED

        state = await self._load(session)
        if state is None:
            if self._predicate is not None:
                try:
                    decision = await self._predicate.evaluate(input)
                except HandlerError:
                    raise
                except Exception as e:
                    raise HandlerError.wrap(e, self.name)
                if decision is PredicateResult.FALSE:
                    return HandlerResult.SKIPPED
                if decision is PredicateResult.STOP:
                    return HandlerResult.STOP
            state = self.initial
            logger.debug("Starting %s for session %s", self.name, session.id)

        outcome = await self._handler.invoke(input, state)
        if outcome.is_absent:
            return HandlerResult.SKIPPED

        result = outcome.value
        if result is None:
            result = DialogueResult.next(state)
        elif not isinstance(result, DialogueResult):
            result = DialogueResult.next(result)

        if result.finished:
            await self._clear(session)
            logger.debug("Finished %s for session %s", self.name, session.id)
            return HandlerResult.STOP

        await self._save(session, result.state)
        return HandlerResult.CONTINUE
