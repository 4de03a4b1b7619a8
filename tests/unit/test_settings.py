"""
Tests for server settings.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from vibemate.server.config import (
    ServerSettings,
    Settings,
    StorageSettings,
    get_settings,
    get_settings_dict,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for environment and YAML driven settings."""

    def test_defaults(self):
        settings = ServerSettings()
        assert settings.host == "127.0.0.1"
        assert settings.port == 12345
        assert settings.log_level == "INFO"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("VIBEMATE_PORT", "9000")
        monkeypatch.setenv("VIBEMATE_STORAGE_BACKEND", "memory")
        settings = Settings()
        assert settings.server.port == 9000
        assert settings.storage.backend == "memory"

    def test_log_level_normalized(self):
        assert ServerSettings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            ServerSettings(log_level="chatty")

    def test_invalid_backend(self):
        with pytest.raises(ValidationError):
            StorageSettings(backend="redis")

    def test_yaml_overlay(self, tmp_path: Path):
        config = tmp_path / "vibemate.yaml"
        config.write_text(
            "server:\n"
            "  port: 8100\n"
            "storage:\n"
            "  backend: yaml\n"
            "  rules_path: ~/custom-rules.yaml\n"
            "providers:\n"
            f"  providers_path: {tmp_path / 'providers.yaml'}\n"
        )
        settings = Settings()
        settings.load_from_yaml(config)

        assert settings.server.port == 8100
        assert settings.storage.rules_path == Path("~/custom-rules.yaml").expanduser()
        assert settings.providers.providers_path == tmp_path / "providers.yaml"

    def test_missing_yaml_is_ignored(self, tmp_path: Path):
        settings = Settings()
        settings.load_from_yaml(tmp_path / "missing.yaml")
        assert settings.server.port == 12345

    def test_get_settings_reads_config_path(self, tmp_path: Path, monkeypatch):
        config = tmp_path / "vibemate.yaml"
        config.write_text("storage:\n  backend: memory\n")
        monkeypatch.setenv("VIBEMATE_CONFIG_PATH", str(config))

        assert get_settings().storage.backend == "memory"

    def test_settings_dict_hides_credentials(self, monkeypatch):
        monkeypatch.setenv("VIBEMATE_STORAGE_DATABASE_URL", "postgresql://user:secret@db:5432/rules")
        data = get_settings_dict()
        assert data["storage"]["database"] == "db:5432/rules"
        assert "secret" not in str(data)
