"""Runtime configuration loaded from environment variables."""

import os
from enum import Enum
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment types."""

    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):  # type: ignore[misc]
    """
    Main settings class.

    Every field can be overridden with an environment variable of the same
    name. `UPSTREAM_WS_URL` also accepts `PYTHON_WS_URL`, the name used by
    older deployments of the relay.
    """

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    # Environment configuration
    ENV: Environment = Environment.DEV

    # HTTP / WebSocket listener
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    WS_PATH: str = "/ws"
    STATIC_DIR: str = "public"

    # Upstream analysis backend
    UPSTREAM_WS_URL: str = Field(
        default="ws://localhost:8000/ws",
        validation_alias=AliasChoices("UPSTREAM_WS_URL", "PYTHON_WS_URL"),
    )
    UPSTREAM_RECONNECT_DELAY_SECONDS: float = 3.0
    UPSTREAM_CONNECT_TIMEOUT_SECONDS: float = 10.0

    # Downstream clients
    WS_SEND_TIMEOUT_SECONDS: float = 5.0

    # Logging settings
    LOG_FILE_PATH: str = "logs/logging_errors.log"
    LOG_EXCLUDED_PATHS: list[str] = ["/metrics", "/health"]
    LOG_LEVEL: str = "INFO"
    LOG_CONSOLE_FORMAT: Literal["human", "json"] = "human"

    def __init__(self, **kwargs: Any) -> None:
        """Initialize settings with environment-specific defaults."""
        super().__init__(**kwargs)
        self._apply_environment_defaults()

    @field_validator("UPSTREAM_WS_URL")
    @classmethod
    def validate_upstream_url(cls, value: str) -> str:
        if not value.startswith(("ws://", "wss://")):
            raise ValueError(
                f"UPSTREAM_WS_URL must start with ws:// or wss://, got {value!r}"
            )
        return value

    @field_validator("WS_PATH")
    @classmethod
    def validate_ws_path(cls, value: str) -> str:
        if not value.startswith("/"):
            return f"/{value}"
        return value

    def _apply_environment_defaults(self) -> None:
        """Apply environment-specific logging defaults."""
        if self.ENV == Environment.PRODUCTION:
            if os.getenv("LOG_CONSOLE_FORMAT") is None:
                self.LOG_CONSOLE_FORMAT = "json"
            if os.getenv("LOG_LEVEL") is None:
                self.LOG_LEVEL = "WARNING"

        elif self.ENV == Environment.STAGING:
            if os.getenv("LOG_CONSOLE_FORMAT") is None:
                self.LOG_CONSOLE_FORMAT = "json"
            if os.getenv("LOG_LEVEL") is None:
                self.LOG_LEVEL = "INFO"

        else:  # Environment.DEV
            if os.getenv("LOG_CONSOLE_FORMAT") is None:
                self.LOG_CONSOLE_FORMAT = "human"
            if os.getenv("LOG_LEVEL") is None:
                self.LOG_LEVEL = "DEBUG"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENV == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENV == Environment.DEV


app_settings = Settings()
