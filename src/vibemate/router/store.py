"""
Rule store.

Owns the canonical rule set for one running configuration. Every mutation
is validated first, written through the persistence backend second and
applied to the in-memory copy last, so a failing backend leaves the store
exactly as it was.
"""

import asyncio
import dataclasses
import logging
from collections.abc import Container, Iterable, Sequence
from datetime import UTC, datetime
from typing import Any

from vibemate.router.errors import (
    LockedRuleViolation,
    NotFound,
    RoutingError,
    StorageError,
    UnknownProvider,
)
from vibemate.router.models import (
    ApiGroup,
    CreateRuleInput,
    RoutingRule,
    RuleType,
    Scope,
    UpdateRuleInput,
)
from vibemate.router.patterns import DEFAULT_PATH_PATTERNS
from vibemate.router.priority import next_priority, partition, plan_insert, plan_reorder
from vibemate.router.validation import (
    becomes_protected,
    ensure_not_locked,
    validate_create,
    validate_update,
)
from vibemate.storage.base import RuleBackend

logger = logging.getLogger(__name__)


def _dedupe_protected(rules: Iterable[RoutingRule]) -> tuple[list[RoutingRule], list[RoutingRule]]:
    """
    Drop repeated ids and repeated protected rules.

    A protected rule is identified by (api_group, rule_type, match_pattern);
    the one with the lowest priority survives.
    """
    ordered = sorted(rules, key=lambda r: (r.priority, r.created_at))
    seen_ids: set[str] = set()
    seen_protected: set[tuple[ApiGroup, RuleType, str]] = set()
    kept: list[RoutingRule] = []
    dropped: list[RoutingRule] = []

    for rule in ordered:
        key = (rule.api_group, rule.rule_type, rule.match_pattern)
        if rule.id in seen_ids or (rule.is_locked and key in seen_protected):
            dropped.append(rule)
            continue
        seen_ids.add(rule.id)
        if rule.is_locked:
            seen_protected.add(key)
        kept.append(rule)

    return kept, dropped


class RuleStore:
    """
    Canonical ordered collection of routing rules.

    Mutations are serialized by a single writer lock; reads work on the
    current in-memory copy and never wait for writers.
    """

    def __init__(self, backend: RuleBackend, providers: Container[str]):
        """
        Args:
            backend: Persistence boundary the store writes through
            providers: Known provider ids, consulted at validation time
        """
        self._backend = backend
        self._providers = providers
        self._rules: dict[str, RoutingRule] = {}
        self._lock = asyncio.Lock()

    @classmethod
    async def open(cls, backend: RuleBackend, providers: Container[str]) -> "RuleStore":
        """Create a store and load the persisted rule set."""
        store = cls(backend, providers)
        await store.load()
        return store

    @property
    def providers(self) -> Container[str]:
        return self._providers

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_rules(self, scope: Scope | None = None) -> list[RoutingRule]:
        """
        List rules in evaluation order.

        Args:
            scope: Optional (api_group, rule_type) partition to restrict to

        Returns:
            Rules sorted by group, type and ascending priority
        """
        if scope is not None:
            return partition(self._rules.values(), scope)
        return sorted(self._rules.values(), key=lambda r: (r.sort_key(), r.created_at))

    def get(self, rule_id: str) -> RoutingRule:
        rule = self._rules.get(rule_id)
        if rule is None:
            raise NotFound(rule_id)
        return rule

    def enabled_rules(self, api_group: ApiGroup, rule_type: RuleType) -> list[RoutingRule]:
        """Materialized view handed to the dispatcher."""
        return [r for r in self.list_rules((api_group, rule_type)) if r.enabled]

    def default_rule(self, api_group: ApiGroup) -> RoutingRule | None:
        """The protected catch-all path rule of a group, if present."""
        pattern = DEFAULT_PATH_PATTERNS[api_group]
        for rule in self.list_rules((api_group, RuleType.PATH)):
            if rule.match_pattern == pattern:
                return rule
        return None

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """
        Replace the in-memory copy with the persisted rule set.

        Repeated protected defaults left behind by older writers are removed
        and the cleaned set is written back.
        """
        async with self._lock:
            rules = await self._call(self._backend.list_rules())
            kept, dropped = _dedupe_protected(rules)
            if dropped:
                logger.warning(f"Removing {len(dropped)} duplicate routing rule(s) on load")
                await self._call(self._backend.replace_rules(kept))
            self._rules = {r.id: r for r in kept}
            logger.info(f"Loaded {len(self._rules)} routing rule(s)")

    async def create(self, data: CreateRuleInput, position: int | None = None) -> RoutingRule:
        """
        Create a rule.

        Args:
            data: Create intent
            position: Optional 0-based insertion index within the partition;
                the rule is appended when omitted

        Returns:
            The stored rule. Creating a protected default that already exists
            returns the existing rule.
        """
        async with self._lock:
            return await self._create(data, position)

    async def update(self, rule_id: str, patch: UpdateRuleInput) -> RoutingRule:
        """
        Apply a partial update.

        A locked rule accepts patches whose ``match_pattern``, ``rule_type``
        and ``api_group`` equal the stored values, so a full-form editor can
        resend them alongside a provider or enabled change.

        Raises:
            NotFound: Unknown rule id
            LockedRuleViolation: Patch changes the pattern, type or group of a
                locked rule
        """
        async with self._lock:
            existing = self.get(rule_id)
            merged = validate_update(existing, patch, self._providers)

            if becomes_protected(existing, merged):
                clash = self._find_protected(merged.api_group, merged.rule_type, merged.match_pattern)
                if clash is not None:
                    raise LockedRuleViolation(clash.id, "duplicate", clash.match_pattern)

            if merged.scope != existing.scope:
                others = [r for r in self._rules.values() if r.id != rule_id]
                merged.priority = next_priority(others, merged.scope)

            stored = await self._call(self._backend.update_rule(rule_id, merged))
            self._rules[rule_id] = stored
            logger.info(f"Updated routing rule {rule_id}")
            return stored

    async def delete(self, rule_id: str) -> None:
        """
        Delete a rule. Other priorities are left as they are.

        Raises:
            NotFound: Unknown rule id
            LockedRuleViolation: Rule is a protected default
        """
        async with self._lock:
            rule = self.get(rule_id)
            ensure_not_locked(rule, "delete")
            await self._call(self._backend.delete_rule(rule_id))
            del self._rules[rule_id]
            logger.info(f"Deleted routing rule {rule_id}")

    async def duplicate(self, source: str | RoutingRule) -> RoutingRule:
        """
        Copy a rule to the end of its partition, always enabled.

        Raises:
            NotFound: Unknown rule id
            LockedRuleViolation: Rule is a protected default
        """
        async with self._lock:
            rule_id = source.id if isinstance(source, RoutingRule) else source
            rule = self.get(rule_id)
            ensure_not_locked(rule, "duplicate")

            data = CreateRuleInput.from_rule(rule)
            validate_create(data, self._providers)
            copied = self._build(data)
            stored = await self._call(self._backend.create_rule(copied))
            self._rules[stored.id] = stored
            logger.info(f"Duplicated routing rule {rule_id} as {stored.id}")
            return stored

    async def reorder(self, scoped_ids: Sequence[str]) -> list[RoutingRule]:
        """
        Reorder one partition.

        Each listed rule gets ``priority = index + 1``; locked rules in the
        list are skipped and unlisted rules keep their value unless it would
        collide with the new numbering.

        Returns:
            The partition in its new order
        """
        async with self._lock:
            plan = plan_reorder(self._rules.values(), list(scoped_ids))
            if plan:
                await self._call(self._backend.reorder_rules(plan))
                self._apply_priorities(plan)
                logger.info(f"Reordered {len(plan)} routing rule(s)")

            if not scoped_ids:
                return []
            return self.list_rules(self.get(scoped_ids[0]).scope)

    async def set_default_provider(
        self,
        api_group: ApiGroup,
        provider_id: str,
        enabled: bool | None = None,
    ) -> RoutingRule:
        """
        Point a group's protected catch-all rule at another provider.

        Raises:
            NotFound: The group has no default rule yet
            UnknownProvider: Provider is not registered
        """
        rule = self.default_rule(api_group)
        if rule is None:
            raise NotFound(DEFAULT_PATH_PATTERNS[api_group])
        patch = UpdateRuleInput(provider_id=provider_id, enabled=enabled)
        return await self.update(rule.id, patch)

    async def drop_rules(self, rule_ids: Iterable[str]) -> list[RoutingRule]:
        """
        Remove rules as instructed by provider reconciliation.

        Locked rules are dropped too; bootstrap provisions them again against
        the next available provider. Unknown ids are ignored. The remaining
        set is written in one backend call, so a failure drops nothing.
        """
        async with self._lock:
            doomed = set(rule_ids)
            dropped = [r for r in self._rules.values() if r.id in doomed]
            if not dropped:
                return []
            kept = [r for r in self._rules.values() if r.id not in doomed]
            await self._call(self._backend.replace_rules(kept))
            self._rules = {r.id: r for r in kept}
        logger.info(f"Dropped {len(dropped)} routing rule(s) during reconciliation")
        return dropped

    async def drop_rules_for_provider(self, provider_id: str) -> list[RoutingRule]:
        """Remove every rule that references a deleted provider."""
        ids = [r.id for r in self._rules.values() if r.provider_id == provider_id]
        return await self.drop_rules(ids)

    async def provision_defaults(
        self,
        provider_id: str,
        groups: Sequence[ApiGroup] = (ApiGroup.OPENAI, ApiGroup.ANTHROPIC),
    ) -> list[RoutingRule]:
        """
        Create the protected catch-all for every group with no path rules.

        Runs under the writer lock so it never interleaves with a reorder.
        """
        if provider_id not in self._providers:
            raise UnknownProvider(provider_id)

        created: list[RoutingRule] = []
        async with self._lock:
            for group in groups:
                if partition(self._rules.values(), (group, RuleType.PATH)):
                    continue
                data = CreateRuleInput(
                    rule_type=RuleType.PATH,
                    api_group=group,
                    provider_id=provider_id,
                    match_pattern=DEFAULT_PATH_PATTERNS[group],
                    enabled=True,
                )
                created.append(await self._create(data, None))
        return created

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    async def _create(self, data: CreateRuleInput, position: int | None) -> RoutingRule:
        validate_create(data, self._providers)

        existing = self._find_protected(data.api_group, data.rule_type, data.match_pattern)
        if existing is not None:
            logger.debug(f"Protected rule '{data.match_pattern}' already exists: {existing.id}")
            return existing

        rule = self._build(data)
        if position is None:
            stored = await self._call(self._backend.create_rule(rule))
            self._rules[stored.id] = stored
        else:
            plan = plan_insert(list(self._rules.values()), rule, position)
            rule.priority = plan.pop(rule.id)
            stored = await self._call(self._backend.create_rule(rule))
            if plan:
                try:
                    await self._call(self._backend.reorder_rules(plan))
                except StorageError:
                    await self._call(self._backend.delete_rule(stored.id))
                    raise
            self._rules[stored.id] = stored
            self._apply_priorities(plan)

        logger.info(
            f"Created routing rule {stored.id} "
            f"({stored.api_group.value}/{stored.rule_type.value} '{stored.match_pattern}' "
            f"-> {stored.provider_id}, priority {stored.priority})"
        )
        return stored

    def _build(self, data: CreateRuleInput) -> RoutingRule:
        scope = (data.api_group, data.rule_type)
        return RoutingRule(
            rule_type=data.rule_type,
            api_group=data.api_group,
            provider_id=data.provider_id,
            match_pattern=data.match_pattern,
            model_rewrite=data.model_rewrite,
            enabled=data.enabled,
            priority=next_priority(self._rules.values(), scope),
        )

    def _find_protected(
        self, api_group: ApiGroup, rule_type: RuleType, match_pattern: str
    ) -> RoutingRule | None:
        for rule in self._rules.values():
            if (
                rule.is_locked
                and rule.api_group == api_group
                and rule.rule_type == rule_type
                and rule.match_pattern == match_pattern
            ):
                return rule
        return None

    def _apply_priorities(self, plan: dict[str, int]) -> None:
        now = datetime.now(UTC)
        for rule_id, priority in plan.items():
            self._rules[rule_id] = dataclasses.replace(
                self._rules[rule_id], priority=priority, updated_at=now
            )

    async def _call(self, awaitable: Any) -> Any:
        """Await a backend call, wrapping unexpected failures in StorageError."""
        try:
            return await awaitable
        except RoutingError:
            raise
        except Exception as e:
            logger.error(f"Rule persistence failed: {e}")
            raise StorageError(str(e)) from e
