"""In-memory rule backend."""

import copy
from collections.abc import Iterable, Mapping, Sequence

from vibemate.router.errors import StorageError
from vibemate.router.models import RoutingRule


class MemoryRuleBackend:
    """Keeps rules in a dict. Used for tests and the ``memory`` storage mode."""

    def __init__(self, rules: Iterable[RoutingRule] | None = None):
        self._rules: dict[str, RoutingRule] = {}
        for rule in rules or ():
            self._rules[rule.id] = copy.copy(rule)

    async def list_rules(self) -> list[RoutingRule]:
        return [copy.copy(r) for r in self._rules.values()]

    async def create_rule(self, rule: RoutingRule) -> RoutingRule:
        if rule.id in self._rules:
            raise StorageError(f"Rule already exists: {rule.id}")
        self._rules[rule.id] = copy.copy(rule)
        return copy.copy(rule)

    async def update_rule(self, rule_id: str, rule: RoutingRule) -> RoutingRule:
        if rule_id not in self._rules:
            raise StorageError(f"Rule not persisted: {rule_id}")
        self._rules[rule_id] = copy.copy(rule)
        return copy.copy(rule)

    async def delete_rule(self, rule_id: str) -> None:
        self._rules.pop(rule_id, None)

    async def reorder_rules(self, priorities: Mapping[str, int]) -> None:
        missing = [rule_id for rule_id in priorities if rule_id not in self._rules]
        if missing:
            raise StorageError(f"Rules not persisted: {', '.join(missing)}")
        for rule_id, priority in priorities.items():
            self._rules[rule_id].priority = priority

    async def replace_rules(self, rules: Sequence[RoutingRule]) -> None:
        self._rules = {r.id: copy.copy(r) for r in rules}
