"""Configuration loading from environment and YAML files."""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

# Providers shipped with the server, in the order their tools are listed
BUILTIN_PROVIDERS = ["metatags", "poster", "dates", "text_stats"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # Timeouts
    default_timeout: int = 30

    # Sessions
    session_timeout_seconds: int = 1800
    keepalive_seconds: float = 30.0

    # Upstream services used by tools
    meta_thief_base_url: str = "https://meta-thief.itea.dev"
    readpo_base_url: str = "https://readpo.com"

    # Tool provider config (YAML)
    tools_config_path: str = ""

    # Server info
    server_name: str = "mcpie"
    server_version: str = "1.0.0"
    server_description: str = "Modular MCP tool server providing small utility tools"

    # Host and port
    host: str = "0.0.0.0"
    port: int = 3001

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def _default_config() -> dict[str, Any]:
    return {"enabled_providers": list(BUILTIN_PROVIDERS)}


def load_tools_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """
    Load tool provider configuration from a YAML file.

    Args:
        config_path: Path to the config file. If None, uses the
            ``tools_config_path`` setting or the default location.

    Returns:
        Dictionary with configuration data. When no file is found every
        built-in provider is enabled.
    """
    if not config_path:
        config_path = get_settings().tools_config_path or None

    if config_path is None:
        possible_paths = [
            Path("config/tools.yaml"),
            Path(__file__).parent.parent.parent / "config" / "tools.yaml",
        ]
        for path in possible_paths:
            if path.exists():
                config_path = path
                break
        else:
            return _default_config()

    config_path = Path(config_path)
    if not config_path.exists():
        return _default_config()

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    return config


def get_enabled_providers(config: dict[str, Any] | None = None) -> list[str]:
    """Get list of enabled provider names."""
    if config is None:
        config = load_tools_config()
    return config.get("enabled_providers", list(BUILTIN_PROVIDERS))
