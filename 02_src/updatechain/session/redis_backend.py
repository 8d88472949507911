"""Redis session backend for sessions shared between processes."""

import time

import redis.asyncio as aioredis

from ..config import DEFAULT_REDIS_URL
from .backend import Clock

# KEYS[1] index of last-access times, KEYS[2] session hash
# ARGV[1] session id, ARGV[2] now, ARGV[3] key
_LUA_READ = """
redis.call('ZADD', KEYS[1], 'XX', ARGV[2], ARGV[1])
return redis.call('HGET', KEYS[2], ARGV[3])
"""

# ARGV[4] value
_LUA_WRITE = """
redis.call('HSET', KEYS[2], ARGV[3], ARGV[4])
redis.call('ZADD', KEYS[1], ARGV[2], ARGV[1])
return 1
"""

_LUA_REMOVE = """
redis.call('HDEL', KEYS[2], ARGV[3])
redis.call('ZADD', KEYS[1], 'XX', ARGV[2], ARGV[1])
return 1
"""

# ARGV[3] max age
_LUA_EXPIRE = """
local accessed = redis.call('ZSCORE', KEYS[1], ARGV[1])
if not accessed or tonumber(ARGV[2]) - tonumber(accessed) < tonumber(ARGV[3]) then
    return 0
end
redis.call('ZREM', KEYS[1], ARGV[1])
redis.call('DEL', KEYS[2])
return 1
"""


class RedisBackend:
    """
    Keeps each session in a Redis hash, with last-access times in a sorted set.

    Every operation is a single Lua script, so Redis runs it atomically and
    an eviction can never interleave with a read or write. Keys share the
    ``{prefix}`` hash tag and therefore one cluster slot.
    """

    def __init__(
        self,
        url: str = DEFAULT_REDIS_URL,
        prefix: str = "updatechain",
        clock: Clock = time.time,
        client: aioredis.Redis | None = None,
    ):
        self._url = url
        self._prefix = prefix
        self._clock = clock
        self._client = client
        self._owns_client = client is None
        self._scripts: dict = {}

    def _require_client(self) -> aioredis.Redis:
        if self._client is None or not self._scripts:
            raise RuntimeError("Storage not initialized")
        return self._client

    @property
    def index_key(self) -> str:
        return f"{{{self._prefix}}}:sessions"

    def session_key(self, session_id: str) -> str:
        return f"{{{self._prefix}}}:session:{session_id}"

    async def init(self) -> None:
        """Connect and register the scripts."""
        if self._client is None:
            self._client = aioredis.from_url(self._url)
        await self._client.ping()
        self._scripts = {
            "read": self._client.register_script(_LUA_READ),
            "write": self._client.register_script(_LUA_WRITE),
            "remove": self._client.register_script(_LUA_REMOVE),
            "expire": self._client.register_script(_LUA_EXPIRE),
        }

    async def close(self) -> None:
        """Close the connection pool if this backend created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
        self._scripts = {}

    async def _run(self, script: str, session_id: str, *args) -> object:
        self._require_client()
        return await self._scripts[script](
            keys=[self.index_key, self.session_key(session_id)],
            args=[session_id, repr(self._clock()), *args],
        )

    async def read(self, session_id: str, key: str) -> bytes | None:
        return await self._run("read", session_id, key)

    async def write(self, session_id: str, key: str, value: bytes) -> None:
        await self._run("write", session_id, key, value)

    async def remove(self, session_id: str, key: str) -> None:
        await self._run("remove", session_id, key)

    async def session_ids(self) -> list[str]:
        members = await self._require_client().zrange(self.index_key, 0, -1)
        return [member.decode() for member in members]

    async def expire(self, session_id: str, max_age: float) -> bool:
        return bool(await self._run("expire", session_id, repr(max_age)))
