"""Sessions: per chat-user key-value storage with background eviction."""

from .backend import ISessionBackend, MemoryBackend
from .collector import SessionCollector, SessionCollectorHandle
from .fs import FilesystemBackend
from .redis_backend import RedisBackend
from .session import Session, SessionId, SessionManager, StoredValue
from .sqlite import SqliteBackend

__all__ = [
    "FilesystemBackend",
    "ISessionBackend",
    "MemoryBackend",
    "RedisBackend",
    "Session",
    "SessionCollector",
    "SessionCollectorHandle",
    "SessionId",
    "SessionManager",
    "SqliteBackend",
    "StoredValue",
]
