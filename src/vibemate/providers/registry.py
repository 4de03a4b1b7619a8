"""
Provider registry.

The registry handles:
- Provider registration and removal
- Existence checks used by rule validation
- Choosing the first/default provider for bootstrap and fallback routing
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from vibemate.providers.base import Provider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Registry of known providers, in registration order.

    Supports ``provider_id in registry`` so it can be handed to the rule
    store as the set of valid provider ids.
    """

    def __init__(self, providers: list[Provider] | None = None):
        """Initialize registry, optionally seeded with providers."""
        self._providers: dict[str, Provider] = {}
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: Provider) -> None:
        """
        Register a provider.

        Args:
            provider: Provider to register

        Raises:
            ValueError: If a provider with the same id already exists
        """
        if provider.id in self._providers:
            raise ValueError(f"Provider '{provider.id}' already registered")

        self._providers[provider.id] = provider
        logger.info(f"Registered provider: {provider.id}")

    def unregister(self, provider_id: str) -> Provider | None:
        """
        Unregister a provider.

        Args:
            provider_id: Provider id to unregister

        Returns:
            The removed provider, or None if it was not registered
        """
        provider = self._providers.pop(provider_id, None)
        if provider is not None:
            logger.info(f"Unregistered provider: {provider_id}")
        return provider

    def get(self, provider_id: str) -> Provider | None:
        return self._providers.get(provider_id)

    def list_providers(self) -> list[Provider]:
        return list(self._providers.values())

    def first(self) -> Provider | None:
        """First registered provider, used to seed default rules."""
        return next(iter(self._providers.values()), None)

    def default(self) -> Provider | None:
        """Provider flagged as default, falling back to the first one."""
        for provider in self._providers.values():
            if provider.is_default:
                return provider
        return self.first()

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def to_dict(self) -> dict[str, Any]:
        """
        Get registry state as dictionary.

        Returns:
            Dictionary with provider information
        """
        return {
            "providers": [p.to_dict() for p in self.list_providers()],
            "total": len(self._providers),
        }


def load_providers(path: Path) -> list[Provider]:
    """
    Load provider records from a YAML file.

    The file holds a top-level ``providers`` list. A missing or empty file
    yields no providers.

    Raises:
        yaml.YAMLError: If YAML syntax is invalid
        ValueError: If an entry lacks an id
    """
    if not path.exists():
        logger.warning(f"Providers file not found: {path}")
        return []

    with open(path) as f:
        data = yaml.safe_load(f)

    if not data:
        return []

    return [Provider.from_dict(entry) for entry in data.get("providers", [])]
