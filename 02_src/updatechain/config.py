"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_SESSION_DB_PATH = DATA_DIR / "sessions.db"
DEFAULT_SESSION_DIR = DATA_DIR / "sessions"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

SESSION_BACKENDS = ("memory", "fs", "sqlite", "redis")
DEFAULT_REDIS_URL = "redis://localhost:6379/0"


PathLike = Union[str, Path]


def resolve_session_path(backend: str, env_value: PathLike | None = None) -> PathLike:
    """Resolve SESSION_PATH to an absolute path for the given backend."""
    if not env_value:
        return DEFAULT_SESSION_DIR if backend == "fs" else DEFAULT_SESSION_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the pipeline and its webhook ingress."""

    api_host: str = "localhost"
    api_port: int = 8000
    log_level: str = "INFO"
    session_backend: str = "memory"
    session_path: PathLike | None = None
    redis_url: str = DEFAULT_REDIS_URL
    session_gc_period: float = 60.0
    session_lifetime: float = 3600.0
    rate_limit_burst: int = 1
    rate_limit_interval: float = 1.0
    rate_limit_jitter: float = 0.0
    access_username: str | None = None

    def __post_init__(self) -> None:
        if self.session_backend not in SESSION_BACKENDS:
            raise ValueError(
                f"SESSION_BACKEND must be one of {', '.join(SESSION_BACKENDS)}, "
                f"got {self.session_backend!r}"
            )
        if self.session_gc_period <= 0:
            raise ValueError("SESSION_GC_PERIOD must be positive")
        if self.session_lifetime <= 0:
            raise ValueError("SESSION_LIFETIME must be positive")
        if self.rate_limit_burst < 1:
            raise ValueError("RATE_LIMIT_BURST must be at least 1")
        if self.rate_limit_interval <= 0:
            raise ValueError("RATE_LIMIT_INTERVAL must be positive")
        if self.rate_limit_jitter < 0:
            raise ValueError("RATE_LIMIT_JITTER must not be negative")

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        Call ``dotenv.load_dotenv()`` beforehand to pick up a ``.env`` file.
        """
        backend = os.getenv("SESSION_BACKEND", "memory")
        return cls(
            api_host=os.getenv("API_HOST", "localhost"),
            api_port=_get_int("API_PORT", 8000),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            session_backend=backend,
            session_path=resolve_session_path(backend, os.getenv("SESSION_PATH")),
            redis_url=os.getenv("REDIS_URL") or DEFAULT_REDIS_URL,
            session_gc_period=_get_float("SESSION_GC_PERIOD", 60.0),
            session_lifetime=_get_float("SESSION_LIFETIME", 3600.0),
            rate_limit_burst=_get_int("RATE_LIMIT_BURST", 1),
            rate_limit_interval=_get_float("RATE_LIMIT_INTERVAL", 1.0),
            rate_limit_jitter=_get_float("RATE_LIMIT_JITTER", 0.0),
            access_username=os.getenv("ACCESS_USERNAME") or None,
        )
