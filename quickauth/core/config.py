"""
Configuration management for quickauth.
"""

import os
from functools import lru_cache
from typing import Any, Dict, Literal, Optional
import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict
from quickauth.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """Service settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_prefix="QUICKAUTH_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Token settings
    secret: str = DEFAULT_SECRET
    token_expires_in: str = "7d"
    issuer: Optional[str] = None
    audience: Optional[str] = None

    # Storage
    user_store: Literal["memory", "sqlite"] = "memory"
    user_store_path: str = "quickauth.db"

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    route_prefix: str = "/auth"

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    # Observability
    enable_metrics: bool = True

    # Config file path
    config_file: Optional[str] = None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings."""
    return load_merged_config()


def load_config_from_file(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file

    Returns:
        Configuration dictionary, empty if the file is missing or unreadable
    """
    if not os.path.exists(config_path):
        return {}

    try:
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config file {config_path}: {e}")
        return {}


def get_config_file_paths() -> list[str]:
    """Get list of potential config file paths in order of preference."""
    return [
        os.environ.get("QUICKAUTH_CONFIG_FILE", ""),
        "./quickauth.yaml",
        os.path.expanduser("~/.config/quickauth/config.yaml"),
    ]


def load_merged_config(**overrides: Any) -> Settings:
    """
    Load configuration from multiple sources with precedence:
    1. Explicit overrides (CLI flags, tests)
    2. Environment variables
    3. Configuration file
    4. Defaults
    """
    config_data: Dict[str, Any] = {}
    for config_path in get_config_file_paths():
        if config_path and os.path.exists(config_path):
            config_data = load_config_from_file(config_path)
            config_data["config_file"] = config_path
            break

    # Environment wins over the file: keep only file keys the env does not set.
    env_keys = {
        name[len("QUICKAUTH_"):].lower()
        for name in os.environ
        if name.upper().startswith("QUICKAUTH_")
    }
    file_values = {
        key: value for key, value in config_data.items()
        if key in Settings.model_fields and key not in env_keys
    }

    settings = Settings(**{**file_values, **overrides})
    if settings.secret == DEFAULT_SECRET:
        logger.warning("Using the default token secret; set QUICKAUTH_SECRET in production")
    return settings
