"""Session backend protocol and the in-memory backend."""

import asyncio
import time
from typing import Callable, Protocol

Clock = Callable[[], float]


class ISessionBackend(Protocol):
    """
    Raw storage of session records.

    A record maps keys to bytes and carries a last-access timestamp that
    every read and write of an existing record refreshes.
    """

    async def init(self) -> None:
        """Open the backend."""
        ...

    async def close(self) -> None:
        """Release resources held by the backend."""
        ...

    async def read(self, session_id: str, key: str) -> bytes | None:
        """Get the value stored under key, or None."""
        ...

    async def write(self, session_id: str, key: str, value: bytes) -> None:
        """Store value under key, creating the record if needed."""
        ...

    async def remove(self, session_id: str, key: str) -> None:
        """Remove key from the record. Missing keys are ignored."""
        ...

    async def session_ids(self) -> list[str]:
        """List ids of all stored records."""
        ...

    async def expire(self, session_id: str, max_age: float) -> bool:
        """Delete the record if it was not accessed for max_age seconds."""
        ...


class MemoryBackend:
    """Keeps records in process memory; lost on restart."""

    def __init__(self, clock: Clock = time.time):
        self._clock = clock
        self._records: dict[str, dict[str, bytes]] = {}
        self._accessed: dict[str, float] = {}
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        return

    async def close(self) -> None:
        return

    async def read(self, session_id: str, key: str) -> bytes | None:
        async with self._lock:
            record = self._records.get(session_id)
            if record is None:
                return None
            self._accessed[session_id] = self._clock()
            return record.get(key)

    async def write(self, session_id: str, key: str, value: bytes) -> None:
        async with self._lock:
            self._records.setdefault(session_id, {})[key] = value
            self._accessed[session_id] = self._clock()

    async def remove(self, session_id: str, key: str) -> None:
        async with self._lock:
            record = self._records.get(session_id)
            if record is None:
                return
            record.pop(key, None)
            self._accessed[session_id] = self._clock()

    async def session_ids(self) -> list[str]:
        async with self._lock:
            return list(self._records)

    async def expire(self, session_id: str, max_age: float) -> bool:
        async with self._lock:
            accessed = self._accessed.get(session_id)
            if accessed is None or self._clock() - accessed < max_age:
                return False
            del self._records[session_id]
            del self._accessed[session_id]
            return True
