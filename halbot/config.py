"""
Robot and adapter configuration.

All settings are read from environment variables.
"""

from typing import Annotated

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


class RobotSettings(BaseSettings):
    """Settings for the robot itself."""

    model_config = SettingsConfigDict(env_prefix="HAL_", extra="ignore")

    name: str = "hal"
    alias: str = ""
    adapter: str = "shell"
    log_level: str = "info"


class HipChatSettings(BaseSettings):
    """Settings for the HipChat adapter."""

    model_config = SettingsConfigDict(env_prefix="HAL_HIPCHAT_", extra="ignore")

    user: str
    password: str
    rooms: Annotated[list[str], NoDecode] = []
    resource: str = "bot"

    # Server
    host: str = "chat.hipchat.com"
    conf_host: str = "conf.hipchat.com"
    port: int = 5222
    keepalive_interval: int = 60  # seconds

    @field_validator("rooms", mode="before")
    @classmethod
    def split_rooms(cls, value: object) -> object:
        """Split a comma-separated room list."""
        if isinstance(value, str):
            return [room.strip() for room in value.split(",") if room.strip()]
        return value

    @field_validator("user", "password")
    @classmethod
    def not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value


def load_robot_settings() -> RobotSettings:
    """Load robot settings from the environment."""
    try:
        return RobotSettings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid robot configuration: {e}") from e


def load_hipchat_settings() -> HipChatSettings:
    """
    Load HipChat settings from the environment.

    Raises:
        ConfigurationError: If HAL_HIPCHAT_USER or HAL_HIPCHAT_PASSWORD is missing
    """
    try:
        return HipChatSettings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid HipChat configuration: {e}") from e
