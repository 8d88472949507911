"""SQLite session backend."""

import asyncio
import time
from pathlib import Path

import aiosqlite

from ..config import resolve_session_path
from .backend import Clock


class SqliteBackend:
    """SQLite session backend (aiosqlite). Operations are serialized by a lock."""

    def __init__(self, db_path: str | Path | None = None, clock: Clock = time.time):
        self._db_path = resolve_session_path("sqlite", db_path)
        self._clock = clock
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        """Open the database and create tables."""
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)

        # Read and execute schema
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    async def read(self, session_id: str, key: str) -> bytes | None:
        conn = self._require_conn()
        async with self._lock:
            await conn.execute(
                "UPDATE sessions SET accessed_at = ? WHERE id = ?",
                (self._clock(), session_id),
            )
            cursor = await conn.execute(
                """
                SELECT value FROM session_values
                WHERE session_id = ? AND key = ?
                """,
                (session_id, key),
            )
            row = await cursor.fetchone()
            await conn.commit()
        return bytes(row[0]) if row else None

    async def write(self, session_id: str, key: str, value: bytes) -> None:
        conn = self._require_conn()
        async with self._lock:
            await conn.execute(
                """
                INSERT INTO sessions (id, accessed_at) VALUES (?, ?)
                ON CONFLICT(id) DO UPDATE SET accessed_at = excluded.accessed_at
                """,
                (session_id, self._clock()),
            )
            await conn.execute(
                """
                INSERT INTO session_values (session_id, key, value) VALUES (?, ?, ?)
                ON CONFLICT(session_id, key) DO UPDATE SET value = excluded.value
                """,
                (session_id, key, value),
            )
            await conn.commit()

    async def remove(self, session_id: str, key: str) -> None:
        conn = self._require_conn()
        async with self._lock:
            await conn.execute(
                "DELETE FROM session_values WHERE session_id = ? AND key = ?",
                (session_id, key),
            )
            await conn.execute(
                "UPDATE sessions SET accessed_at = ? WHERE id = ?",
                (self._clock(), session_id),
            )
            await conn.commit()

    async def session_ids(self) -> list[str]:
        conn = self._require_conn()
        async with self._lock:
            cursor = await conn.execute("SELECT id FROM sessions")
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def expire(self, session_id: str, max_age: float) -> bool:
        conn = self._require_conn()
        async with self._lock:
            cursor = await conn.execute(
                "DELETE FROM sessions WHERE id = ? AND accessed_at <= ?",
                (session_id, self._clock() - max_age),
            )
            expired = cursor.rowcount > 0
            if expired:
                await conn.execute(
                    "DELETE FROM session_values WHERE session_id = ?", (session_id,)
                )
            await conn.commit()
        return expired
