"""Pytest configuration and fixtures."""

import os
import shutil
import socket
import subprocess
import sys
import time
import uuid
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeClock:
    """Manually advanced clock; sleeping advances it instead of waiting."""

    def __init__(self, now: float = 1000.0):
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def make_update():
    """Factory for message updates."""
    from updatechain.models import Chat, InlineQuery, Message, Update, User

    def factory(
        text: str | None = "hello",
        chat_id: int | None = 1,
        user_id: int | None = 10,
        username: str | None = None,
        chat_username: str | None = None,
        update_id: int = 1,
    ) -> Update:
        user = None
        if user_id is not None:
            user = User(id=user_id, first_name="Test", username=username)
        if chat_id is None:
            return Update(
                id=update_id,
                inline_query=InlineQuery(id="q1", from_user=user, query=text or ""),
            )
        chat = Chat(id=chat_id, username=chat_username)
        message = Message(id=update_id, chat=chat, from_user=user, text=text)
        return Update(id=update_id, message=message)

    return factory


@pytest.fixture
def memory_backend(clock):
    """Create in-memory session backend driven by the fake clock."""
    from updatechain.session import MemoryBackend

    return MemoryBackend(clock=clock)


@pytest.fixture
def session_manager(memory_backend, clock):
    """Create SessionManager over the memory backend."""
    from updatechain.session import SessionManager

    return SessionManager(memory_backend, clock=clock)


@pytest.fixture
def context(session_manager):
    """Create TypedStore holding the session manager."""
    from updatechain.store import TypedStore

    return TypedStore(session_manager)


@pytest.fixture
def make_input(context, make_update):
    """Factory for HandlerInput sharing one context."""
    from updatechain.extract import HandlerInput

    def factory(*args, **kwargs):
        return HandlerInput(context=context, update=make_update(*args, **kwargs))

    return factory


@pytest_asyncio.fixture
async def sqlite_backend(clock):
    """Create in-memory SQLite session backend."""
    from updatechain.session import SqliteBackend

    backend = SqliteBackend(":memory:", clock=clock)
    await backend.init()
    yield backend
    await backend.close()


@pytest_asyncio.fixture
async def fs_backend(tmp_path, clock):
    """Create filesystem session backend in a temporary directory."""
    from updatechain.session import FilesystemBackend

    backend = FilesystemBackend(tmp_path / "sessions", clock=clock)
    await backend.init()
    yield backend
    await backend.close()


@pytest_asyncio.fixture(params=["memory", "fs", "sqlite", "redis"])
async def any_backend(request, tmp_path, clock):
    """Create each session backend in turn."""
    from updatechain.session import FilesystemBackend, MemoryBackend, RedisBackend, SqliteBackend

    if request.param == "redis":
        url = request.getfixturevalue("redis_url")
        backend = RedisBackend(url, prefix=f"test-{uuid.uuid4().hex}", clock=clock)
    elif request.param == "fs":
        backend = FilesystemBackend(tmp_path / "sessions", clock=clock)
    elif request.param == "sqlite":
        backend = SqliteBackend(":memory:", clock=clock)
    else:
        backend = MemoryBackend(clock=clock)
    await backend.init()
    yield backend
    await backend.close()


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture(scope="session")
def redis_url(tmp_path_factory):
    """
    URL of a Redis server for backend tests.

    Uses TEST_REDIS_URL when set, otherwise starts a throwaway redis-server.
    Tests are skipped when neither is available.
    """
    url = os.getenv("TEST_REDIS_URL")
    if url:
        yield url
        return

    server = shutil.which("redis-server")
    if server is None:
        pytest.skip("redis-server not installed")

    port = _free_port()
    process = subprocess.Popen(
        [
            server,
            "--port", str(port),
            "--bind", "127.0.0.1",
            "--save", "",
            "--appendonly", "no",
            "--dir", str(tmp_path_factory.mktemp("redis")),
        ],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    try:
        deadline = time.monotonic() + 5.0
        while True:
            try:
                socket.create_connection(("127.0.0.1", port), timeout=0.2).close()
                break
            except OSError:
                if time.monotonic() > deadline or process.poll() is not None:
                    pytest.skip("redis-server did not start")
                time.sleep(0.05)
        yield f"redis://127.0.0.1:{port}/0"
    finally:
        process.terminate()
        process.wait(timeout=5)


@pytest_asyncio.fixture
async def redis_backend(redis_url, clock):
    """Create Redis session backend with a per-test key prefix."""
    from updatechain.session import RedisBackend

    backend = RedisBackend(redis_url, prefix=f"test-{uuid.uuid4().hex}", clock=clock)
    await backend.init()
    yield backend
    await backend.close()
