"""
Server configuration using Pydantic settings.

Configuration is loaded from environment variables with the VIBEMATE_
prefix, and can be overridden via a YAML config file.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = Path.home() / ".vibemate"


def _env_config(prefix: str) -> SettingsConfigDict:
    """Environment variables with the given prefix, also read from .env."""
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class ServerSettings(BaseSettings):
    """Server configuration settings."""

    model_config = _env_config("VIBEMATE_")

    host: str = Field(default="127.0.0.1", description="Server bind host")
    port: int = Field(default=12345, description="Server bind port")
    log_level: str = Field(default="INFO", description="Log level")
    reload: bool = Field(default=False, description="Enable hot reload (dev mode)")
    docs_enabled: bool = Field(default=True, description="Serve OpenAPI docs")

    # Config file path
    config_path: Path | None = Field(default=None, description="Path to YAML config file")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v


class StorageSettings(BaseSettings):
    """Rule storage settings."""

    model_config = _env_config("VIBEMATE_STORAGE_")

    backend: Literal["memory", "yaml", "database"] = Field(
        default="yaml", description="Where routing rules are persisted"
    )
    rules_path: Path = Field(
        default=DEFAULT_DATA_DIR / "rules.yaml",
        description="Rules file for the yaml backend",
    )
    database_url: str = Field(
        default=f"sqlite+aiosqlite:///{DEFAULT_DATA_DIR / 'vibemate.db'}",
        description="Database URL for the database backend",
    )
    echo: bool = Field(default=False, description="Echo SQL statements")
    pool_size: int = Field(default=5, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Max overflow connections")


class ProviderSettings(BaseSettings):
    """Provider seed settings."""

    model_config = _env_config("VIBEMATE_PROVIDERS_")

    providers_path: Path | None = Field(
        default=None, description="YAML file listing providers to register at startup"
    )


class Settings(BaseSettings):
    """Combined application settings."""

    server: ServerSettings = Field(default_factory=ServerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)

    def load_from_yaml(self, path: Path) -> None:
        """Load additional settings from YAML file."""
        if not path.exists():
            return

        with open(path) as f:
            config = yaml.safe_load(f)

        if not config:
            return

        for section in ("server", "storage", "providers"):
            if section not in config:
                continue
            target = getattr(self, section)
            for key, value in config[section].items():
                if hasattr(target, key):
                    if key.endswith("_path") and value:
                        value = Path(value).expanduser()
                    setattr(target, key, value)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()

    # Load from config file if specified
    if settings.server.config_path:
        settings.load_from_yaml(settings.server.config_path)

    return settings


def get_settings_dict() -> dict[str, Any]:
    """Get settings as dictionary (for API responses)."""
    settings = get_settings()
    database_url = settings.storage.database_url
    return {
        "server": {
            "host": settings.server.host,
            "port": settings.server.port,
            "log_level": settings.server.log_level,
            "docs_enabled": settings.server.docs_enabled,
        },
        "storage": {
            "backend": settings.storage.backend,
            "rules_path": str(settings.storage.rules_path),
            # Strip credentials
            "database": database_url.split("@")[-1],
        },
        "providers": {
            "providers_path": (
                str(settings.providers.providers_path)
                if settings.providers.providers_path
                else None
            ),
        },
    }
