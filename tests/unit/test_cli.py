"""
Tests for the vibemate CLI.
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from vibemate import __version__
from vibemate.cli.main import app
from vibemate.server.config import get_settings

runner = CliRunner()

RULES = """\
routing:
  rules:
    - id: d1
      ruleType: path
      apiGroup: openai
      providerId: p1
      matchPattern: /api/openai/*
      priority: 1
    - id: d2
      ruleType: path
      apiGroup: anthropic
      providerId: p1
      matchPattern: /api/anthropic/*
      priority: 1
"""


@pytest.fixture
def configured(tmp_path: Path, monkeypatch):
    """Point the CLI at a YAML rule store with one provider."""
    rules_path = tmp_path / "rules.yaml"
    rules_path.write_text(RULES)
    providers_path = tmp_path / "providers.yaml"
    providers_path.write_text("providers:\n  - id: p1\n    name: Provider One\n")

    monkeypatch.setenv("VIBEMATE_STORAGE_BACKEND", "yaml")
    monkeypatch.setenv("VIBEMATE_STORAGE_RULES_PATH", str(rules_path))
    monkeypatch.setenv("VIBEMATE_PROVIDERS_PROVIDERS_PATH", str(providers_path))
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


class TestCli:
    """Tests for CLI commands."""

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_check_consistent_file(self, configured: Path):
        result = runner.invoke(
            app,
            [
                "check",
                str(configured / "rules.yaml"),
                "--providers",
                str(configured / "providers.yaml"),
            ],
        )
        assert result.exit_code == 0
        assert "consistent" in result.output

    def test_check_reports_problems(self, tmp_path: Path):
        path = tmp_path / "rules.yaml"
        path.write_text(
            "routing:\n"
            "  rules:\n"
            "    - id: bad\n"
            "      ruleType: path\n"
            "      providerId: p1\n"
            "      matchPattern: /api/openai/x\n"
        )
        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == 1
        assert "bad" in result.output

    def test_check_invalid_file(self, tmp_path: Path):
        path = tmp_path / "rules.yaml"
        path.write_text("routing:\n  rules:\n    - id: a\n")
        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == 1
        assert "Invalid rules file" in result.output

    def test_rules_lists_configured_rules(self, configured: Path):
        result = runner.invoke(app, ["rules", "--group", "anthropic"])
        assert result.exit_code == 0
        assert "anthropic" in result.output
        assert "openai" not in result.output

    def test_route_preview(self, configured: Path):
        result = runner.invoke(app, ["route", "/api/openai/v1/chat/completions", "-m", "gpt-4o"])
        assert result.exit_code == 0
        assert "Provider One" in result.output
        assert "/api/openai/*" in result.output
