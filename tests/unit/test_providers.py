"""
Tests for provider records and the provider registry.
"""

from pathlib import Path

import pytest

from vibemate.providers import Provider, ProviderRegistry, load_providers


class TestProvider:
    """Tests for Provider records."""

    def test_to_dict(self):
        provider = Provider("p1", "One", api_url="https://example.test", is_default=True)
        assert provider.to_dict() == {
            "id": "p1",
            "name": "One",
            "apiUrl": "https://example.test",
            "isDefault": True,
        }

    def test_from_dict_accepts_both_casings(self):
        camel = Provider.from_dict({"id": "a", "name": "A", "apiUrl": "u", "isDefault": True})
        snake = Provider.from_dict({"id": "a", "name": "A", "api_url": "u", "is_default": True})
        assert camel == snake

    def test_from_dict_name_defaults_to_id(self):
        assert Provider.from_dict({"id": "solo"}).name == "solo"

    def test_from_dict_requires_id(self):
        with pytest.raises(ValueError):
            Provider.from_dict({"name": "nameless"})


class TestProviderRegistry:
    """Tests for ProviderRegistry."""

    def test_register_and_get(self):
        registry = ProviderRegistry()
        registry.register(Provider("p1", "One"))

        assert "p1" in registry
        assert "p2" not in registry
        assert registry.get("p1").name == "One"
        assert registry.get("p2") is None
        assert len(registry) == 1

    def test_duplicate_registration(self):
        registry = ProviderRegistry([Provider("p1", "One")])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(Provider("p1", "Again"))

    def test_unregister(self):
        registry = ProviderRegistry([Provider("p1", "One")])
        assert registry.unregister("p1").id == "p1"
        assert registry.unregister("p1") is None
        assert len(registry) == 0

    def test_first_keeps_registration_order(self):
        registry = ProviderRegistry([Provider("b", "B"), Provider("a", "A")])
        assert registry.first().id == "b"
        assert [p.id for p in registry.list_providers()] == ["b", "a"]

    def test_default_prefers_flag(self):
        registry = ProviderRegistry([Provider("a", "A"), Provider("b", "B", is_default=True)])
        assert registry.default().id == "b"

    def test_default_falls_back_to_first(self):
        registry = ProviderRegistry([Provider("a", "A")])
        assert registry.default().id == "a"
        assert ProviderRegistry().default() is None

    def test_to_dict(self):
        registry = ProviderRegistry([Provider("a", "A")])
        data = registry.to_dict()
        assert data["total"] == 1
        assert data["providers"][0]["id"] == "a"


class TestLoadProviders:
    """Tests for loading providers from YAML."""

    def test_load(self, tmp_path: Path):
        path = tmp_path / "providers.yaml"
        path.write_text(
            "providers:\n"
            "  - id: p1\n"
            "    name: Provider One\n"
            "  - id: p2\n"
            "    apiUrl: https://example.test\n"
            "    isDefault: true\n"
        )
        providers = load_providers(path)
        assert [p.id for p in providers] == ["p1", "p2"]
        assert providers[1].is_default is True

    def test_missing_file(self, tmp_path: Path):
        assert load_providers(tmp_path / "missing.yaml") == []

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "providers.yaml"
        path.write_text("")
        assert load_providers(path) == []
