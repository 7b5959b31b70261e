"""Configuration management for the MCP tool console.

Supports YAML configuration files and environment variable overrides.
Configuration is loaded once and cached for the lifetime of the process.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """MCP client configuration."""
    connect_attempts: int = Field(default=3, ge=1, description="Connect attempts before giving up")
    connect_timeout_seconds: float = Field(default=30.0, gt=0)
    request_timeout_seconds: float = Field(default=60.0, gt=0)

    # Transport specifics
    http_headers: dict[str, str] = Field(default_factory=dict, description="Extra headers for HTTP servers")
    server_env: Optional[dict[str, str]] = Field(default=None, description="Environment for stdio servers")

    model_config = SettingsConfigDict(
        env_prefix="MCP_CLIENT_",
        env_file=".env",
        extra="ignore"
    )


class CLISettings(BaseSettings):
    """Interactive console configuration."""
    default_target: Optional[str] = Field(default=None, description="Server used when none is given")
    json_logs: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="MCP_CLI_",
        env_file=".env",
        extra="ignore"
    )


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="WARNING")

    # Component settings
    client: ClientSettings = Field(default_factory=ClientSettings)
    cli: CLISettings = Field(default_factory=CLISettings)

    model_config = SettingsConfigDict(
        env_prefix="MCP_",
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        return cls(**load_yaml_config(path))


def load_yaml_config(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file."""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path) as f:
        return yaml.safe_load(f) or {}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("MCP_CONFIG_PATH", "config/settings.yaml")
    return Settings.from_yaml(config_path)
