"""
Settings loaded from the environment (``MON_CLI_*`` variables) or a .env file.
"""
from __future__ import annotations

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

DEFAULT_TIMEOUT = 30.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MON_CLI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str | None = None
    secret: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    error_debug: bool = False

    def require_base_url(self) -> str:
        if not self.base_url:
            raise ConfigurationError("Base url must be supplied")
        return self.base_url

    def require_secret(self) -> str:
        if not self.secret:
            raise ConfigurationError("Secret must be supplied")
        return self.secret


def get_settings(**overrides) -> Settings:
    """Return settings from the environment with the non-empty `overrides`
    (typically command line options) applied on top.

    Raises:
        ConfigurationError: If an environment value is malformed.
    """
    try:
        settings = Settings()
    except ValidationError as e:
        error = e.errors()[0]
        name = ".".join(str(loc) for loc in error["loc"])
        raise ConfigurationError(
            f"Invalid setting {name}: {error['msg']}",
            context={"setting": name},
        ) from e

    updates = {key: value for key, value in overrides.items() if value is not None}
    if updates:
        settings = settings.model_copy(update=updates)
    return settings


def error_debug_enabled() -> bool:
    """Whether errors should be re-raised instead of reported. Unreadable
    settings count as disabled."""
    try:
        return get_settings().error_debug
    except ConfigurationError:
        return False
