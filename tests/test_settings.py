"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from frame_relay.settings import Environment, Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "ENV",
        "PORT",
        "UPSTREAM_WS_URL",
        "PYTHON_WS_URL",
        "WS_PATH",
        "LOG_LEVEL",
        "LOG_CONSOLE_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)


def make_settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestDefaults:
    def test_defaults(self):
        settings = make_settings()

        assert settings.ENV == Environment.DEV
        assert settings.PORT == 3000
        assert settings.WS_PATH == "/ws"
        assert settings.UPSTREAM_WS_URL == "ws://localhost:8000/ws"
        assert settings.UPSTREAM_RECONNECT_DELAY_SECONDS == 3.0
        assert settings.STATIC_DIR == "public"
        assert settings.LOG_EXCLUDED_PATHS == ["/metrics", "/health"]

    def test_port_from_env(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")

        assert make_settings().PORT == 8080


class TestUpstreamUrl:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("UPSTREAM_WS_URL", "wss://analysis.internal/ws")

        assert make_settings().UPSTREAM_WS_URL == "wss://analysis.internal/ws"

    def test_legacy_variable_name(self, monkeypatch):
        monkeypatch.setenv("PYTHON_WS_URL", "ws://python-backend:8000/ws")

        assert make_settings().UPSTREAM_WS_URL == "ws://python-backend:8000/ws"

    def test_primary_name_wins(self, monkeypatch):
        monkeypatch.setenv("UPSTREAM_WS_URL", "ws://primary/ws")
        monkeypatch.setenv("PYTHON_WS_URL", "ws://legacy/ws")

        assert make_settings().UPSTREAM_WS_URL == "ws://primary/ws"

    @pytest.mark.parametrize(
        "url", ["http://localhost:8000/ws", "localhost:8000", ""]
    )
    def test_rejects_non_websocket_url(self, monkeypatch, url):
        monkeypatch.setenv("UPSTREAM_WS_URL", url)

        with pytest.raises(ValidationError):
            make_settings()


class TestWsPath:
    def test_leading_slash_added(self, monkeypatch):
        monkeypatch.setenv("WS_PATH", "relay")

        assert make_settings().WS_PATH == "/relay"


class TestEnvironmentDefaults:
    @pytest.mark.parametrize(
        "env, console_format, level",
        [
            ("dev", "human", "DEBUG"),
            ("staging", "json", "INFO"),
            ("production", "json", "WARNING"),
        ],
    )
    def test_logging_defaults(self, monkeypatch, env, console_format, level):
        monkeypatch.setenv("ENV", env)

        settings = make_settings()

        assert settings.LOG_CONSOLE_FORMAT == console_format
        assert settings.LOG_LEVEL == level

    def test_explicit_values_win(self, monkeypatch):
        monkeypatch.setenv("ENV", "production")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("LOG_CONSOLE_FORMAT", "human")

        settings = make_settings()

        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.LOG_CONSOLE_FORMAT == "human"
        assert settings.is_production
        assert not settings.is_development
