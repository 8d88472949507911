"""Token bucket primitives."""

import random
from dataclasses import dataclass

# Absorbs float error left after sleeping exactly time_until_token().
_EPSILON = 1e-9


@dataclass(frozen=True)
class Quota:
    """``burst`` tokens, refilled evenly over ``interval`` seconds."""

    burst: int
    interval: float

    def __post_init__(self):
        if self.burst < 1:
            raise ValueError("Quota burst must be at least 1")
        if self.interval <= 0:
            raise ValueError("Quota interval must be positive")

    @classmethod
    def per_second(cls, burst: int) -> "Quota":
        return cls(burst, 1.0)

    @classmethod
    def per_minute(cls, burst: int) -> "Quota":
        return cls(burst, 60.0)

    @property
    def rate(self) -> float:
        """Tokens per second."""
        return self.burst / self.interval


@dataclass(frozen=True)
class Jitter:
    """Upper bound of a random delay added after waiting for a token."""

    max: float = 0.0

    def __post_init__(self):
        if self.max < 0:
            raise ValueError("Jitter must not be negative")

    def sample(self, rng: random.Random) -> float:
        if self.max == 0:
            return 0.0
        return rng.uniform(0.0, self.max)


@dataclass
class TokenBucket:
    """Token bucket refilling continuously at quota.rate up to quota.burst."""

    quota: Quota
    tokens: float
    last_refill: float

    @classmethod
    def full(cls, quota: Quota, now: float) -> "TokenBucket":
        return cls(quota=quota, tokens=float(quota.burst), last_refill=now)

    def refill(self, now: float) -> None:
        elapsed = max(0.0, now - self.last_refill)
        self.tokens = min(float(self.quota.burst), self.tokens + elapsed * self.quota.rate)
        self.last_refill = now

    def try_acquire(self, now: float) -> bool:
        """Consume one token if available."""
        self.refill(now)
        if self.tokens >= 1.0 - _EPSILON:
            self.tokens = max(0.0, self.tokens - 1.0)
            return True
        return False

    def time_until_token(self, now: float) -> float:
        """Seconds until one token is available."""
        self.refill(now)
        if self.tokens >= 1.0 - _EPSILON:
            return 0.0
        return (1.0 - self.tokens) / self.quota.rate
