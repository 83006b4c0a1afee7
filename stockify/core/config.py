"""
Configuration management for Stockify.

Loads settings from environment variables and YAML config files.
Uses Pydantic for validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stockify.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    API keys and paths are loaded from .env file or environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Qualitative enrichment (optional)
    groq_api_key: str = Field(
        default="",
        validation_alias="GROQ_API_KEY",
        description="Groq API key for qualitative scoring (optional)",
    )
    qualitative_model: str = Field(
        default="moonshotai/kimi-k2-instruct-0905",
        description="Chat model used for qualitative scoring",
    )
    qualitative_timeout: float = Field(
        default=20.0,
        gt=0,
        description="Per-call timeout for qualitative scoring, in seconds",
    )
    enable_qualitative: bool = Field(
        default=True,
        description="Run qualitative enrichment when an API key is present",
    )

    # Paths
    data_dir: Path = Field(
        default=Path("data"),
        description="Root directory for data storage",
    )
    config_dir: Path = Field(
        default=Path("config"),
        description="Directory containing YAML config files",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("data_dir", "config_dir", mode="before")
    @classmethod
    def resolve_path(cls, v: str | Path) -> Path:
        """Convert string to Path and resolve."""
        return Path(v).resolve()

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str) -> str:
        """Ensure log level is uppercase."""
        return v.upper()

    @property
    def qualitative_enabled(self) -> bool:
        """Whether qualitative enrichment can run."""
        return self.enable_qualitative and bool(self.groq_api_key)

    @property
    def db_dir(self) -> Path:
        """Directory for recommendation history."""
        path = self.data_dir / "db"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def sectors_file(self) -> Path:
        """Sector lookup tables."""
        return self.config_dir / "sectors.yaml"


def load_yaml(path: Path) -> dict[str, Any]:
    """
    Load and parse a YAML file.

    Raises:
        ConfigurationError: If the file is missing or not a mapping
    """
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {path}")
    return data


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
