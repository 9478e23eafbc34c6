"""
Configuration for Alexandria.

Settings come from, in increasing priority:
- /etc/alexandria/config.json
- ./config.json
- ALEXANDRIA_* environment variables
- Values passed explicitly (load_settings() or Settings(...))

Invariants:
    - All settings have sensible defaults for local use
    - Missing config files are skipped, invalid ones raise
    - get_settings() returns the same instance until cleared

How to change safely:
    - Add new settings with defaults that keep current behavior
    - Never rename an environment variable without keeping the old one
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

logger = logging.getLogger(__name__)

CONFIG_FILES = ("/etc/alexandria/config.json", "config.json")


class Settings(BaseSettings):
    """Alexandria configuration."""

    # Logging
    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")
    log_format: Literal["text", "json"] = Field(default="text")

    # CMDB
    cmdb_name: str = Field(default="default")
    strict_records: bool = Field(
        default=True, description="Reject CI records with unknown attributes"
    )

    model_config = SettingsConfigDict(env_prefix="ALEXANDRIA_", json_file=CONFIG_FILES)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, env_settings, JsonConfigSettingsSource(settings_cls))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings."""
    return Settings()


def load_settings(path: str | Path) -> Settings:
    """Load settings from an explicit YAML or JSON file.

    Values in the file take priority over the environment.

    Args:
        path: Config file path

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file does not contain a mapping
    """
    path = Path(path)
    with path.open() as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    settings = Settings(**data)
    logger.info(f"Loaded configuration from {path}")
    return settings
