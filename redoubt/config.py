"""
Configuration management for redoubt.

This module uses Pydantic's BaseSettings to manage configuration
through environment variables. Command line flags given to
``redoubt serve`` take precedence over these values.
"""
from typing import Tuple

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    These settings are loaded from environment variables.
    """

    # HTTP listener, "host:port"
    LISTEN: str = "0.0.0.0:2326"

    # Policy document
    CONFIG_FILE: str = "redoubt.yaml"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        env_prefix="REDOUBT_",
        extra="ignore",
    )

    @field_validator("LISTEN")
    @classmethod
    def _check_listen(cls, v: str) -> str:
        parse_listen(v)
        return v

    @property
    def listen_address(self) -> Tuple[str, int]:
        return parse_listen(self.LISTEN)


def parse_listen(value: str) -> Tuple[str, int]:
    """
    Split a ``host:port`` listen address.

    Raises:
        ValueError: If the port is missing or not a valid TCP port
    """
    host, sep, port = value.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid listen address '{value}', expected host:port")
    port_num = int(port)
    if not 0 < port_num < 65536:
        raise ValueError(f"Invalid port {port_num} in listen address '{value}'")
    return host or "0.0.0.0", port_num


settings = Settings()
