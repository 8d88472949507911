"""Tests for SessionCollector."""

import asyncio
import logging

import pytest

from updatechain.exceptions import StorageError
from updatechain.session import MemoryBackend, SessionCollector


class FlakyBackend(MemoryBackend):
    """Fails to expire one session."""

    def __init__(self, broken: str, **kwargs):
        super().__init__(**kwargs)
        self.broken = broken

    async def expire(self, session_id, max_age):
        if session_id == self.broken:
            raise OSError("locked")
        return await super().expire(session_id, max_age)


class UnlistableBackend(MemoryBackend):
    async def session_ids(self):
        raise OSError("no listing")


class TestCollect:
    """Tests for SessionCollector.collect()."""

    async def test_evicts_only_stale_sessions(self, memory_backend, clock):
        """Test sessions idle for the lifetime are evicted."""
        await memory_backend.write("old", "k", b"1")
        clock.advance(100)
        await memory_backend.write("new", "k", b"2")

        evicted = await SessionCollector(memory_backend, period=1, lifetime=100).collect()

        assert evicted == 1
        assert await memory_backend.session_ids() == ["new"]

    async def test_failing_record_is_skipped(self, clock, caplog):
        """Test one failing session does not stop the sweep."""
        backend = FlakyBackend("a", clock=clock)
        await backend.write("a", "k", b"1")
        await backend.write("b", "k", b"2")
        clock.advance(10)

        with caplog.at_level(logging.ERROR):
            evicted = await SessionCollector(backend, period=1, lifetime=5).collect()

        assert evicted == 1
        assert await backend.session_ids() == ["a"]
        assert any("Failed to collect session a" in r.getMessage() for r in caplog.records)

    async def test_listing_failure(self):
        """Test a failed listing raises StorageError."""
        with pytest.raises(StorageError):
            await SessionCollector(UnlistableBackend(), period=1, lifetime=5).collect()

    def test_invalid_period(self, memory_backend):
        """Test period must be positive."""
        with pytest.raises(ValueError):
            SessionCollector(memory_backend, period=0, lifetime=5)


class TestCollectorTask:
    """Tests for the background collector task."""

    async def test_start_and_stop(self, memory_backend):
        """Test the task sweeps periodically until stopped."""
        await memory_backend.write("s1", "k", b"1")
        collector = SessionCollector(memory_backend, period=0.01, lifetime=0)

        handle = collector.start()
        for _ in range(100):
            if not await memory_backend.session_ids():
                break
            await asyncio.sleep(0.01)

        assert handle.running
        assert await memory_backend.session_ids() == []

        await handle.stop()
        assert not handle.running

    async def test_sweep_failure_keeps_running(self, caplog):
        """Test a failed sweep is logged and the loop continues."""
        collector = SessionCollector(UnlistableBackend(), period=0.01, lifetime=0)

        with caplog.at_level(logging.ERROR):
            handle = collector.start()
            await asyncio.sleep(0.05)

        assert handle.running
        await handle.stop()
        assert any("sweep failed" in r.getMessage() for r in caplog.records)
