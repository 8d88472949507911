"""Filesystem session backend: one directory per session, one file per key."""

import asyncio
import shutil
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator
from urllib.parse import quote, unquote

from .backend import Clock

ACCESS_MARKER = ".accessed"
VALUE_SUFFIX = ".value"


def _encode(name: str) -> str:
    # Dots are escaped too so "." and ".." can never become path components.
    return quote(name, safe="").replace(".", "%2E")


class _SessionLock:
    """Lock of one session plus the number of coroutines holding or awaiting it."""

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class FilesystemBackend:
    """
    Stores each session under ``root/<session id>/``.

    The last-access time is kept in a marker file inside the session
    directory. Blocking file operations run in worker threads; operations on
    the same session are serialized by a per-session lock, which is dropped
    once no coroutine holds or awaits it.
    """

    def __init__(self, root: str | Path, clock: Clock = time.time):
        self._root = Path(root)
        self._clock = clock
        self._locks: dict[str, _SessionLock] = {}

    @property
    def root(self) -> Path:
        return self._root

    async def init(self) -> None:
        await asyncio.to_thread(self._root.mkdir, parents=True, exist_ok=True)

    async def close(self) -> None:
        self._locks.clear()

    @asynccontextmanager
    async def _lock(self, session_id: str) -> AsyncIterator[None]:
        entry = self._locks.get(session_id)
        if entry is None:
            entry = self._locks[session_id] = _SessionLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._locks.get(session_id) is entry:
                del self._locks[session_id]

    def _session_dir(self, session_id: str) -> Path:
        return self._root / _encode(session_id)

    def _key_path(self, session_id: str, key: str) -> Path:
        return self._session_dir(session_id) / f"{_encode(key)}{VALUE_SUFFIX}"

    def _touch(self, session_dir: Path) -> None:
        (session_dir / ACCESS_MARKER).write_text(repr(self._clock()), encoding="utf-8")

    def _read(self, session_id: str, key: str) -> bytes | None:
        session_dir = self._session_dir(session_id)
        if not session_dir.is_dir():
            return None
        self._touch(session_dir)
        try:
            return self._key_path(session_id, key).read_bytes()
        except FileNotFoundError:
            return None

    def _write(self, session_id: str, key: str, value: bytes) -> None:
        session_dir = self._session_dir(session_id)
        session_dir.mkdir(parents=True, exist_ok=True)
        self._touch(session_dir)
        self._key_path(session_id, key).write_bytes(value)

    def _remove(self, session_id: str, key: str) -> None:
        session_dir = self._session_dir(session_id)
        if not session_dir.is_dir():
            return
        self._key_path(session_id, key).unlink(missing_ok=True)
        self._touch(session_dir)

    def _session_ids(self) -> list[str]:
        if not self._root.is_dir():
            return []
        return [unquote(path.name) for path in self._root.iterdir() if path.is_dir()]

    def _expire(self, session_id: str, max_age: float) -> bool:
        session_dir = self._session_dir(session_id)
        marker = session_dir / ACCESS_MARKER
        try:
            accessed = float(marker.read_text(encoding="utf-8"))
        except FileNotFoundError:
            if not session_dir.is_dir():
                return False
            # Directory without a marker was never written completely.
            accessed = 0.0
        if self._clock() - accessed < max_age:
            return False
        shutil.rmtree(session_dir)
        return True

    async def read(self, session_id: str, key: str) -> bytes | None:
        async with self._lock(session_id):
            return await asyncio.to_thread(self._read, session_id, key)

    async def write(self, session_id: str, key: str, value: bytes) -> None:
        async with self._lock(session_id):
            await asyncio.to_thread(self._write, session_id, key, value)

    async def remove(self, session_id: str, key: str) -> None:
        async with self._lock(session_id):
            await asyncio.to_thread(self._remove, session_id, key)

    async def session_ids(self) -> list[str]:
        return await asyncio.to_thread(self._session_ids)

    async def expire(self, session_id: str, max_age: float) -> bool:
        async with self._lock(session_id):
            return await asyncio.to_thread(self._expire, session_id, max_age)
