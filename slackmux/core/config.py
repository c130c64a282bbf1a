"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="slackmux", alias="APP_NAME")
    app_env: str = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="SLACKMUX_DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Mux configuration file (endpoints, tokens, destinations)
    mux_config_path: str = Field(default="config.json", alias="SLACKMUX_CONFIG")

    # Listener
    listen_fds: Optional[int] = Field(default=None, alias="LISTEN_FDS")
    unix_socket: Optional[str] = Field(default=None, alias="SLACKMUX_SOCKET")
    interface: Optional[str] = Field(default=None, alias="SLACKMUX_INTERFACE")
    port: Optional[int] = Field(default=None, alias="SLACKMUX_PORT")

    # Delivery
    delivery_timeout: Optional[float] = Field(default=None, alias="SLACKMUX_DELIVERY_TIMEOUT")
    parallel_dispatch: bool = Field(default=False, alias="SLACKMUX_PARALLEL_DISPATCH")
    user_agent: str = Field(default="slackmux/0.1.0", alias="SLACKMUX_USER_AGENT")

    @property
    def socket_activated(self) -> bool:
        """Whether systemd passed exactly one listening socket."""
        return self.listen_fds == 1


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
