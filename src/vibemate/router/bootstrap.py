"""
Bootstrap of the protected default rules.

The OpenAI and Anthropic groups each need one catch-all path rule. When a
group has no path rules at all, one is created against the first available
provider. Running bootstrap again is a no-op.
"""

import logging

from vibemate.providers.registry import ProviderRegistry
from vibemate.router.errors import NoProviderAvailable
from vibemate.router.models import ApiGroup, RoutingRule, RuleType
from vibemate.router.store import RuleStore

logger = logging.getLogger(__name__)

BOOTSTRAP_GROUPS = (ApiGroup.OPENAI, ApiGroup.ANTHROPIC)


class BootstrapProvisioner:
    """Creates missing default rules for a rule store."""

    def __init__(self, store: RuleStore, registry: ProviderRegistry):
        self.store = store
        self.registry = registry

    def missing_groups(self) -> list[ApiGroup]:
        """Groups that currently have no path rules."""
        return [g for g in BOOTSTRAP_GROUPS if not self.store.list_rules((g, RuleType.PATH))]

    async def run(self) -> list[RoutingRule]:
        """
        Provision missing default rules.

        Returns:
            Rules created by this run (empty when nothing was missing)

        Raises:
            NoProviderAvailable: No provider is registered yet
        """
        if not self.missing_groups():
            return []

        provider = self.registry.first()
        if provider is None:
            raise NoProviderAvailable()

        created = await self.store.provision_defaults(provider.id, BOOTSTRAP_GROUPS)
        for rule in created:
            logger.info(
                f"Provisioned default rule '{rule.match_pattern}' -> provider '{provider.id}'"
            )
        return created

    async def ensure(self) -> list[RoutingRule]:
        """
        Run bootstrap, deferring quietly when no provider exists.

        Called on every load trigger (startup, provider registration) so a
        deferred bootstrap is retried later.
        """
        try:
            return await self.run()
        except NoProviderAvailable:
            logger.warning("No provider configured yet, deferring default routing rules")
            return []
