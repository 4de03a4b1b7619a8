"""
Per-application wiring of registry, rule store and bootstrap.

One context exists per running configuration; route handlers reach it
through ``request.app.state.context``.
"""

import logging
from dataclasses import dataclass

from fastapi import Request

from vibemate.providers import Provider, ProviderRegistry, load_providers
from vibemate.router.bootstrap import BootstrapProvisioner
from vibemate.router.models import RoutingRule
from vibemate.router.store import RuleStore
from vibemate.server.config import Settings
from vibemate.storage.base import RuleBackend
from vibemate.storage.factory import close_backend, open_backend

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Objects shared by every request of one application."""

    registry: ProviderRegistry
    store: RuleStore
    provisioner: BootstrapProvisioner
    backend: RuleBackend

    @classmethod
    async def create(cls, backend: RuleBackend, registry: ProviderRegistry) -> "AppContext":
        """Load the rule store and run bootstrap once."""
        store = await RuleStore.open(backend, registry)
        context = cls(
            registry=registry,
            store=store,
            provisioner=BootstrapProvisioner(store, registry),
            backend=backend,
        )
        await context.provisioner.ensure()
        return context

    @classmethod
    async def from_settings(cls, settings: Settings) -> "AppContext":
        registry = ProviderRegistry()
        if settings.providers.providers_path:
            for provider in load_providers(settings.providers.providers_path):
                registry.register(provider)
        backend = await open_backend(settings)
        return await cls.create(backend, registry)

    async def close(self) -> None:
        await close_backend(self.backend)

    async def add_provider(self, provider: Provider) -> list[RoutingRule]:
        """
        Register a provider and retry any deferred bootstrap.

        Returns:
            Default rules provisioned as a result

        Raises:
            ValueError: If the provider id is already registered
        """
        self.registry.register(provider)
        return await self.provisioner.ensure()

    async def remove_provider(self, provider_id: str) -> list[RoutingRule] | None:
        """
        Drop the rules that reference a provider, then unregister it.

        The provider stays registered when dropping its rules fails.

        Returns:
            Dropped rules, or None if the provider was not registered
        """
        if provider_id not in self.registry:
            return None
        dropped = await self.store.drop_rules_for_provider(provider_id)
        self.registry.unregister(provider_id)
        await self.provisioner.ensure()
        return dropped


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the application context."""
    return request.app.state.context
