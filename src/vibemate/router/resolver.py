"""
Route resolution.

Applies the rule set to a single request the way a dispatcher does. Used
to preview where a request would go; it never forwards anything.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from vibemate.providers.base import Provider
from vibemate.providers.registry import ProviderRegistry
from vibemate.router.models import ApiGroup, RoutingRule, RuleType
from vibemate.router.patterns import GENERIC_CATCH_ALL, matches

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """Outcome of resolving a request against the rule set."""

    provider: Provider
    final_model: str
    model_rewritten: bool
    rule: RoutingRule | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider.to_dict(),
            "finalModel": self.final_model,
            "modelRewritten": self.model_rewritten,
            "rule": self.rule.to_dict() if self.rule else None,
        }


def group_for_path(request_path: str) -> ApiGroup:
    """Compatibility surface implied by a request path."""
    if request_path.startswith("/api/openai"):
        return ApiGroup.OPENAI
    if request_path.startswith("/api/anthropic"):
        return ApiGroup.ANTHROPIC
    return ApiGroup.GENERIC


def match_rule(
    rules: Iterable[RoutingRule],
    api_group: ApiGroup,
    request_path: str,
    model_name: str | None = None,
) -> RoutingRule | None:
    """
    Find the rule that handles a request within one group.

    Enabled model rules are tried first against the model name, then path
    rules against the request path, each by ascending priority. In the
    generic group the ``/api/*`` catch-all is tried after every other path
    rule.
    """
    enabled = [r for r in rules if r.enabled and r.api_group == api_group]

    if model_name is not None:
        model_rules = sorted(
            (r for r in enabled if r.rule_type == RuleType.MODEL),
            key=lambda r: r.priority,
        )
        for rule in model_rules:
            if matches(rule.match_pattern, model_name):
                return rule

    path_rules = [r for r in enabled if r.rule_type == RuleType.PATH]
    if api_group == ApiGroup.GENERIC:
        path_rules.sort(key=lambda r: (r.match_pattern == GENERIC_CATCH_ALL, r.priority))
    else:
        path_rules.sort(key=lambda r: r.priority)

    for rule in path_rules:
        if matches(rule.match_pattern, request_path):
            return rule

    return None


def resolve(
    rules: Iterable[RoutingRule],
    providers: ProviderRegistry,
    api_group: ApiGroup,
    request_path: str,
    model_name: str | None = None,
) -> Resolution | None:
    """
    Resolve the provider and outgoing model for a request.

    Args:
        rules: Current rule set
        providers: Registry of known providers
        api_group: Group the request arrived on
        request_path: Request URL path
        model_name: Model named in the request body, if any

    Returns:
        Resolution, or None when no provider is configured
    """
    fallback = providers.default()
    if fallback is None:
        return None

    rules = list(rules)
    rule = match_rule(rules, api_group, request_path, model_name)
    if rule is None and api_group != ApiGroup.GENERIC:
        rule = match_rule(rules, ApiGroup.GENERIC, request_path, model_name)

    if rule is not None:
        provider = providers.get(rule.provider_id)
        if provider is not None:
            logger.debug(
                f"Matched rule '{rule.match_pattern}' ({rule.id}) -> provider '{provider.id}'"
            )
            rewritten = rule.model_rewrite is not None and model_name is not None
            return Resolution(
                provider=provider,
                final_model=rule.model_rewrite if rewritten else (model_name or ""),
                model_rewritten=rewritten,
                rule=rule,
            )

    logger.debug(f"No rule matched, using default provider '{fallback.id}'")
    return Resolution(provider=fallback, final_model=model_name or "", model_rewritten=False)
