"""Rate limit predicates built on token buckets."""

import asyncio
import random
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Hashable

from ..exceptions import HandlerError
from ..extract import HandlerInput
from ..logging_config import get_logger
from ..predicate import Predicate, PredicateResult
from .bucket import Jitter, Quota, TokenBucket
from .key import KeyFn

logger = get_logger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class RateLimitMethod(str, Enum):
    """What to do when no token is available."""

    DISCARD = "discard"
    WAIT = "wait"


class _Limiter:
    """Acquisition shared by the direct and keyed predicates."""

    def __init__(
        self,
        quota: Quota,
        method: RateLimitMethod,
        jitter: Jitter | None,
        clock: Clock,
        sleep: Sleep,
        rng: random.Random | None,
    ):
        self.quota = quota
        self.method = method
        self.jitter = jitter or Jitter()
        self._clock = clock
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._lock = asyncio.Lock()

    def new_bucket(self) -> TokenBucket:
        return TokenBucket.full(self.quota, self._clock())

    async def acquire(self, bucket: TokenBucket) -> bool:
        """Take a token from bucket. False only when discarding."""
        waited = False
        while True:
            async with self._lock:
                now = self._clock()
                if bucket.try_acquire(now):
                    break
                if self.method is RateLimitMethod.DISCARD:
                    return False
                delay = bucket.time_until_token(now)
            waited = True
            await self._sleep(delay)

        if waited:
            delay = self.jitter.sample(self._rng)
            if delay > 0:
                await self._sleep(delay)
        return True


class DirectRateLimitPredicate:
    """Limits all updates passing through it with a single bucket."""

    def __init__(
        self,
        quota: Quota,
        method: RateLimitMethod = RateLimitMethod.DISCARD,
        jitter: Jitter | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        self._limiter = _Limiter(quota, method, jitter, clock, sleep, rng)
        self._bucket = self._limiter.new_bucket()
        self.name = f"ratelimit {method.value}"

    @classmethod
    def discard(cls, quota: Quota, **kwargs: Any) -> "DirectRateLimitPredicate":
        return cls(quota, RateLimitMethod.DISCARD, **kwargs)

    @classmethod
    def wait(cls, quota: Quota, **kwargs: Any) -> "DirectRateLimitPredicate":
        return cls(quota, RateLimitMethod.WAIT, **kwargs)

    @classmethod
    def wait_with_jitter(
        cls, quota: Quota, jitter: Jitter, **kwargs: Any
    ) -> "DirectRateLimitPredicate":
        return cls(quota, RateLimitMethod.WAIT, jitter, **kwargs)

    async def evaluate(self, input: HandlerInput) -> PredicateResult:
        if await self._limiter.acquire(self._bucket):
            return PredicateResult.TRUE
        logger.info("Rate limit exceeded for update %s", input.update.id)
        return PredicateResult.STOP


class KeyedRateLimitPredicate:
    """
    Limits updates with one bucket per key.

    Buckets are created on first use and kept for the predicate's lifetime.
    ``with_key`` restricts limiting to the listed keys; updates with other
    keys pass. Updates the key function returns None for are decided by
    ``on_missing``.
    """

    def __init__(
        self,
        key: KeyFn,
        quota: Quota,
        method: RateLimitMethod = RateLimitMethod.DISCARD,
        jitter: Jitter | None = None,
        on_missing: bool = True,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        self._key = key
        self._limiter = _Limiter(quota, method, jitter, clock, sleep, rng)
        self._buckets: dict[Hashable, TokenBucket] = {}
        self._keys: set[Hashable] = set()
        self.on_missing = on_missing
        self.name = f"ratelimit {getattr(key, '__name__', 'key')} {method.value}"

    @classmethod
    def discard(cls, key: KeyFn, quota: Quota, **kwargs: Any) -> "KeyedRateLimitPredicate":
        return cls(key, quota, RateLimitMethod.DISCARD, **kwargs)

    @classmethod
    def wait(cls, key: KeyFn, quota: Quota, **kwargs: Any) -> "KeyedRateLimitPredicate":
        return cls(key, quota, RateLimitMethod.WAIT, **kwargs)

    @classmethod
    def wait_with_jitter(
        cls, key: KeyFn, quota: Quota, jitter: Jitter, **kwargs: Any
    ) -> "KeyedRateLimitPredicate":
        return cls(key, quota, RateLimitMethod.WAIT, jitter, **kwargs)

    def with_key(self, *keys: Hashable) -> "KeyedRateLimitPredicate":
        """Limit only the given keys. Returns the predicate."""
        self._keys.update(keys)
        return self

    def __len__(self) -> int:
        return len(self._buckets)

    async def evaluate(self, input: HandlerInput) -> PredicateResult:
        try:
            key = self._key(input.update)
            hash(key)
        except Exception as e:
            raise HandlerError.wrap(e, self.name)
        if key is None:
            return PredicateResult.TRUE if self.on_missing else PredicateResult.STOP
        if self._keys and key not in self._keys:
            return PredicateResult.TRUE

        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = self._buckets[key] = self._limiter.new_bucket()

        if await self._limiter.acquire(bucket):
            return PredicateResult.TRUE
        logger.info("Rate limit exceeded for key %s", key)
        return PredicateResult.STOP


def with_rate_limit(handler: Any, limiter: Any) -> Predicate:
    """Run handler only when limiter grants a token."""
    return Predicate(limiter, handler)
