"""Tests for Settings."""

import pytest

from updatechain.config import PROJECT_ROOT, Settings, resolve_session_path


class TestSettingsFromEnv:
    """Tests for Settings.from_env()."""

    def test_defaults(self, monkeypatch):
        """Test defaults when nothing is set."""
        for name in ["API_PORT", "SESSION_BACKEND", "SESSION_PATH", "RATE_LIMIT_BURST"]:
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()

        assert settings.api_port == 8000
        assert settings.session_backend == "memory"
        assert settings.rate_limit_burst == 1

    def test_values(self, monkeypatch):
        """Test values are read from the environment."""
        monkeypatch.setenv("API_PORT", "9000")
        monkeypatch.setenv("SESSION_BACKEND", "sqlite")
        monkeypatch.setenv("SESSION_PATH", ":memory:")
        monkeypatch.setenv("SESSION_LIFETIME", "120")
        monkeypatch.setenv("RATE_LIMIT_JITTER", "0.5")
        monkeypatch.setenv("ACCESS_USERNAME", "admin")

        settings = Settings.from_env()

        assert settings.api_port == 9000
        assert settings.session_backend == "sqlite"
        assert settings.session_path == ":memory:"
        assert settings.session_lifetime == 120.0
        assert settings.rate_limit_jitter == 0.5
        assert settings.access_username == "admin"

    def test_redis_url(self, monkeypatch):
        """Test the redis backend reads its URL from REDIS_URL."""
        monkeypatch.setenv("SESSION_BACKEND", "redis")
        monkeypatch.setenv("REDIS_URL", "redis://cache:6380/2")

        settings = Settings.from_env()

        assert settings.session_backend == "redis"
        assert settings.redis_url == "redis://cache:6380/2"

    def test_invalid_number(self, monkeypatch):
        """Test invalid numbers name the variable."""
        monkeypatch.setenv("SESSION_GC_PERIOD", "soon")

        with pytest.raises(ValueError, match="SESSION_GC_PERIOD"):
            Settings.from_env()

    def test_invalid_backend(self):
        """Test unknown backends are rejected."""
        with pytest.raises(ValueError, match="SESSION_BACKEND"):
            Settings(session_backend="mongo")


class TestResolveSessionPath:
    """Tests for resolve_session_path()."""

    def test_relative_path(self):
        assert resolve_session_path("fs", "data/s") == PROJECT_ROOT / "data/s"

    def test_memory(self):
        assert resolve_session_path("sqlite", ":memory:") == ":memory:"
