"""
Validation guard for rule create/update intents.

All checks run before the store touches any state. The guard is the
authority for these invariants even when callers already prevent them.
"""

import dataclasses
from collections.abc import Container
from datetime import UTC, datetime
from typing import Any

from vibemate.router.errors import (
    InvalidPattern,
    LockedRuleViolation,
    NamespaceCollision,
    UnknownProvider,
)
from vibemate.router.models import (
    ApiGroup,
    CreateRuleInput,
    RoutingRule,
    RuleType,
    UpdateRuleInput,
)
from vibemate.router.patterns import is_protected, reserved_prefix

# Fields whose change would alter what makes a locked rule locked
LOCKED_IDENTITY_FIELDS = ("match_pattern", "rule_type", "api_group")


def validate_pattern(match_pattern: str) -> None:
    """Reject empty or whitespace-only patterns."""
    if not match_pattern or not match_pattern.strip():
        raise InvalidPattern(match_pattern)


def check_namespace(api_group: ApiGroup, rule_type: RuleType, match_pattern: str) -> None:
    """Generic path rules may not start with an OpenAI/Anthropic prefix."""
    if api_group != ApiGroup.GENERIC or rule_type != RuleType.PATH:
        return
    prefix = reserved_prefix(match_pattern)
    if prefix is not None:
        raise NamespaceCollision(match_pattern, prefix)


def check_provider(provider_id: str, providers: Container[str]) -> None:
    """Provider must exist in the registry at validation time."""
    if not provider_id or provider_id not in providers:
        raise UnknownProvider(provider_id)


def ensure_not_locked(rule: RoutingRule, action: str) -> None:
    """Refuse delete/duplicate/reorder style actions on locked rules."""
    if rule.is_locked:
        raise LockedRuleViolation(rule.id, action, rule.match_pattern)


def validate_rule(
    api_group: ApiGroup,
    rule_type: RuleType,
    match_pattern: str,
    provider_id: str,
    providers: Container[str],
) -> None:
    validate_pattern(match_pattern)
    check_namespace(api_group, rule_type, match_pattern)
    check_provider(provider_id, providers)


def validate_create(data: CreateRuleInput, providers: Container[str]) -> None:
    """
    Validate a create intent.

    Raises:
        InvalidPattern: Pattern is empty
        NamespaceCollision: Generic path rule claims a reserved prefix
        UnknownProvider: Provider is not registered
    """
    validate_rule(
        data.api_group,
        data.rule_type,
        data.match_pattern,
        data.provider_id,
        providers,
    )


def validate_update(
    existing: RoutingRule,
    patch: UpdateRuleInput,
    providers: Container[str],
) -> RoutingRule:
    """
    Validate an update intent against the rule it applies to.

    Args:
        existing: Rule currently stored
        patch: Requested changes
        providers: Known provider ids

    Returns:
        A new rule carrying the merged values; the stored rule is untouched

    Raises:
        LockedRuleViolation: Patch changes the pattern of a locked rule
        InvalidPattern: Merged pattern is empty
        NamespaceCollision: Merged rule is a generic path rule on a reserved prefix
        UnknownProvider: Merged provider is not registered
    """
    changes: dict[str, Any] = patch.changes()

    if existing.is_locked:
        for name in LOCKED_IDENTITY_FIELDS:
            if name in changes and changes[name] != getattr(existing, name):
                raise LockedRuleViolation(existing.id, "edit the pattern of", existing.match_pattern)

    merged = dataclasses.replace(existing, **changes, updated_at=datetime.now(UTC))

    validate_pattern(merged.match_pattern)
    check_namespace(merged.api_group, merged.rule_type, merged.match_pattern)
    check_provider(merged.provider_id, providers)

    return merged


def becomes_protected(existing: RoutingRule, merged: RoutingRule) -> bool:
    """True when an edit turns an ordinary rule into a protected one."""
    return not existing.is_locked and is_protected(
        merged.rule_type, merged.match_pattern, merged.api_group
    )
