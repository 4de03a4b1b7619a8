"""
Shared fixtures for the routing rule tests.
"""

import pytest

from vibemate.providers import Provider, ProviderRegistry
from vibemate.router import BootstrapProvisioner, RuleStore
from vibemate.storage import MemoryRuleBackend


@pytest.fixture
def registry() -> ProviderRegistry:
    """Registry with two providers, p1 registered first."""
    return ProviderRegistry([Provider("p1", "Provider One"), Provider("p2", "Provider Two")])


@pytest.fixture
def backend() -> MemoryRuleBackend:
    return MemoryRuleBackend()


@pytest.fixture
async def store(backend, registry) -> RuleStore:
    """Empty store, no defaults provisioned."""
    return await RuleStore.open(backend, registry)


@pytest.fixture
async def bootstrapped(store, registry) -> RuleStore:
    """Store with the OpenAI and Anthropic default rules in place."""
    await BootstrapProvisioner(store, registry).run()
    return store

