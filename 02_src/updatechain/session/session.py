"""Session handles and their manager."""

import time
from typing import Any, Awaitable, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from ..exceptions import SessionError, StorageError
from ..extract import Extraction, HandlerInput
from ..models import Update
from .backend import Clock, ISessionBackend

T = TypeVar("T")

_ANY = TypeAdapter(Any)


class StoredValue(BaseModel):
    """Envelope written to the backend for every session key."""

    value: Any = None
    expires_at: float | None = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class SessionId(str):
    """Session identifier: ``"{chat_id}-{user_id}"`` or a custom string."""

    @classmethod
    def from_ids(cls, chat_id: int, user_id: int) -> "SessionId":
        return cls(f"{chat_id}-{user_id}")

    @classmethod
    def from_update(cls, update: Update) -> "SessionId | None":
        """Derive the id; None unless the update has both chat and user."""
        chat_id, user_id = update.chat_id, update.user_id
        if chat_id is None or user_id is None:
            return None
        return cls.from_ids(chat_id, user_id)

    @classmethod
    async def from_input(cls, input: HandlerInput) -> Extraction:
        return Extraction.from_optional(cls.from_update(input.update))


class Session:
    """
    Key-value view of one session record.

    Values are stored as JSON through pydantic, so anything pydantic can
    serialize may be stored; pass ``type_`` to get() to validate it back
    into a model, dataclass or enum. Backend failures raise StorageError.
    """

    def __init__(self, session_id: str, backend: ISessionBackend, clock: Clock = time.time):
        self._id = SessionId(session_id)
        self._backend = backend
        self._clock = clock

    @property
    def id(self) -> SessionId:
        return self._id

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Session {self._id}: {operation} failed: {e}") from e

    async def _load(self, key: str) -> StoredValue | None:
        data = await self._call("read", self._backend.read(str(self._id), key))
        if data is None:
            return None
        try:
            stored = StoredValue.model_validate_json(data)
        except ValidationError as e:
            raise StorageError(f"Session {self._id}: corrupt value for {key!r}") from e

        if stored.is_expired(self._clock()):
            await self._call("remove", self._backend.remove(str(self._id), key))
            return None
        return stored

    async def _store(self, key: str, stored: StoredValue) -> None:
        data = stored.model_dump_json().encode()
        await self._call("write", self._backend.write(str(self._id), key, data))

    async def get(self, key: str, type_: type[T] | None = None) -> T | Any | None:
        """Get the value for key, or None when missing or expired."""
        stored = await self._load(key)
        if stored is None:
            return None
        if type_ is None:
            return stored.value
        try:
            return TypeAdapter(type_).validate_python(stored.value)
        except ValidationError as e:
            raise StorageError(
                f"Session {self._id}: value for {key!r} is not a valid {type_!r}"
            ) from e

    async def set(self, key: str, value: Any) -> None:
        """Store value under key; clears any expiry set for it."""
        try:
            payload = _ANY.dump_python(value, mode="json")
        except Exception as e:
            raise StorageError(f"Session {self._id}: can not serialize {key!r}: {e}") from e
        await self._store(key, StoredValue(value=payload))

    async def remove(self, key: str) -> None:
        await self._call("remove", self._backend.remove(str(self._id), key))

    async def expire(self, key: str, seconds: float) -> None:
        """Expire key after seconds. Missing keys are ignored."""
        stored = await self._load(key)
        if stored is None:
            return
        stored.expires_at = self._clock() + seconds
        await self._store(key, stored)

    @classmethod
    async def from_input(cls, input: HandlerInput) -> Extraction:
        manager = input.context.get(SessionManager)
        if manager is None:
            return Extraction.failed(SessionError("SessionManager not found in context"))
        return Extraction.from_optional(manager.get_session(input.update))

    def __repr__(self) -> str:
        return f"Session({self._id!r})"


class SessionManager:
    """Hands out Session objects bound to one backend."""

    def __init__(self, backend: ISessionBackend, clock: Clock = time.time):
        self._backend = backend
        self._clock = clock

    @property
    def backend(self) -> ISessionBackend:
        return self._backend

    def get_session(self, source: Update | str) -> Session | None:
        """Session for an update (None without chat and user) or an id."""
        if isinstance(source, str):
            return self.get_session_by_id(source)
        session_id = SessionId.from_update(source)
        if session_id is None:
            return None
        return self.get_session_by_id(session_id)

    def get_session_by_id(self, session_id: str) -> Session:
        return Session(session_id, self._backend, self._clock)
