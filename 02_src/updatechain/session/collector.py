"""Background eviction of stale sessions."""

import asyncio
from contextlib import suppress
from typing import Awaitable, Callable

from ..exceptions import StorageError
from ..logging_config import get_logger
from .backend import ISessionBackend

logger = get_logger(__name__)


class SessionCollectorHandle:
    """Stops a running collector task."""

    def __init__(self, task: asyncio.Task):
        self._task = task

    @property
    def running(self) -> bool:
        return not self._task.done()

    async def stop(self) -> None:
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task


class SessionCollector:
    """Every ``period`` seconds, evicts sessions idle for ``lifetime`` seconds."""

    def __init__(
        self,
        backend: ISessionBackend,
        period: float,
        lifetime: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if period <= 0:
            raise ValueError("Collector period must be positive")
        self._backend = backend
        self.period = period
        self.lifetime = lifetime
        self._sleep = sleep

    async def collect(self) -> int:
        """Run one sweep. Returns the number of evicted sessions."""
        try:
            session_ids = await self._backend.session_ids()
        except Exception as e:
            raise StorageError(f"Failed to list sessions: {e}") from e

        evicted = 0
        for session_id in session_ids:
            try:
                if await self._backend.expire(session_id, self.lifetime):
                    evicted += 1
            except Exception:
                logger.error("Failed to collect session %s", session_id, exc_info=True)

        if evicted:
            logger.info("Evicted %d of %d sessions", evicted, len(session_ids))
        return evicted

    async def run(self) -> None:
        """Sweep forever; a failed sweep is logged and retried next period."""
        while True:
            await self._sleep(self.period)
            try:
                await self.collect()
            except Exception:
                logger.error("Session collector sweep failed", exc_info=True)

    def start(self) -> SessionCollectorHandle:
        """Run the collector as a task on the current event loop."""
        task = asyncio.create_task(self.run(), name="session-collector")
        return SessionCollectorHandle(task)
