"""
Tests for default rule provisioning.
"""

import asyncio

import pytest

from vibemate.providers import Provider, ProviderRegistry
from vibemate.router import BootstrapProvisioner, RuleStore
from vibemate.router.errors import NoProviderAvailable
from vibemate.router.models import ApiGroup, CreateRuleInput, RuleType
from vibemate.storage import MemoryRuleBackend


def locked_rules(store: RuleStore):
    return [r for r in store.list_rules() if r.is_locked]


class TestBootstrapProvisioner:
    """Tests for BootstrapProvisioner."""

    async def test_creates_both_defaults(self, store, registry):
        """One locked catch-all per group, pointing at the first provider."""
        created = await BootstrapProvisioner(store, registry).run()

        assert {(r.api_group, r.match_pattern) for r in created} == {
            (ApiGroup.OPENAI, "/api/openai/*"),
            (ApiGroup.ANTHROPIC, "/api/anthropic/*"),
        }
        for rule in created:
            assert rule.rule_type == RuleType.PATH
            assert rule.provider_id == "p1"
            assert rule.enabled is True
            assert rule.is_locked is True

    async def test_running_twice_creates_two_rules(self, store, registry):
        """Bootstrap is idempotent: two locked rules total, not four."""
        provisioner = BootstrapProvisioner(store, registry)

        await provisioner.run()
        second = await provisioner.run()

        assert second == []
        assert len(locked_rules(store)) == 2

    async def test_concurrent_runs_do_not_duplicate(self, store, registry):
        provisioner = BootstrapProvisioner(store, registry)
        await asyncio.gather(provisioner.run(), provisioner.run(), provisioner.run())
        assert len(locked_rules(store)) == 2

    async def test_group_with_path_rules_is_left_alone(self, store, registry):
        """Only groups with zero path rules get a default."""
        await store.create(
            CreateRuleInput(
                rule_type=RuleType.PATH,
                api_group=ApiGroup.OPENAI,
                provider_id="p2",
                match_pattern="/api/openai/v1/*",
            )
        )
        provisioner = BootstrapProvisioner(store, registry)
        assert provisioner.missing_groups() == [ApiGroup.ANTHROPIC]

        created = await provisioner.run()

        assert [r.api_group for r in created] == [ApiGroup.ANTHROPIC]
        assert store.default_rule(ApiGroup.OPENAI) is None

    async def test_model_rules_do_not_count(self, store, registry):
        await store.create(
            CreateRuleInput(api_group=ApiGroup.OPENAI, provider_id="p1", match_pattern="gpt-*")
        )
        assert BootstrapProvisioner(store, registry).missing_groups() == [
            ApiGroup.OPENAI,
            ApiGroup.ANTHROPIC,
        ]

    async def test_no_provider(self):
        registry = ProviderRegistry()
        store = await RuleStore.open(MemoryRuleBackend(), registry)
        provisioner = BootstrapProvisioner(store, registry)

        with pytest.raises(NoProviderAvailable):
            await provisioner.run()
        assert len(store) == 0

    async def test_ensure_defers_then_retries(self):
        """A deferred bootstrap succeeds on the next trigger."""
        registry = ProviderRegistry()
        store = await RuleStore.open(MemoryRuleBackend(), registry)
        provisioner = BootstrapProvisioner(store, registry)

        assert await provisioner.ensure() == []

        registry.register(Provider("late", "Late Provider"))
        created = await provisioner.ensure()

        assert len(created) == 2
        assert {r.provider_id for r in created} == {"late"}

    async def test_nothing_missing_needs_no_provider(self, bootstrapped, registry):
        """With defaults in place, removing providers does not make run() fail."""
        registry.unregister("p1")
        registry.unregister("p2")
        assert await BootstrapProvisioner(bootstrapped, registry).run() == []
