"""
YAML file rule backend.

Keeps the rule set in one YAML document and rewrites the whole file on
every change, the way a settings file is normally handled.
"""

import copy
import dataclasses
import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path

import yaml

from vibemate.router.config import ConfigValidationError, load_rules_file, save_rules_file
from vibemate.router.errors import StorageError
from vibemate.router.models import RoutingRule

logger = logging.getLogger(__name__)


class YamlRuleBackend:
    """Rule backend persisting to a YAML file."""

    def __init__(self, path: Path):
        self.path = path
        self._rules: dict[str, RoutingRule] | None = None

    def _read(self) -> dict[str, RoutingRule]:
        if self._rules is None:
            try:
                rules = load_rules_file(self.path)
            except (yaml.YAMLError, ConfigValidationError, OSError) as e:
                raise StorageError(f"Cannot read rules file {self.path}: {e}") from e
            self._rules = {r.id: r for r in rules}
            logger.debug(f"Read {len(self._rules)} rule(s) from {self.path}")
        return self._rules

    def _write(self, rules: dict[str, RoutingRule]) -> None:
        """Write the candidate rule set; the cached copy only changes on success."""
        try:
            save_rules_file(self.path, rules.values())
        except (OSError, yaml.YAMLError) as e:
            raise StorageError(f"Cannot write rules file {self.path}: {e}") from e
        self._rules = rules

    async def list_rules(self) -> list[RoutingRule]:
        # Re-read so edits made to the file by hand are picked up
        self._rules = None
        return [copy.copy(r) for r in self._read().values()]

    async def create_rule(self, rule: RoutingRule) -> RoutingRule:
        rules = dict(self._read())
        if rule.id in rules:
            raise StorageError(f"Rule already exists: {rule.id}")
        rules[rule.id] = copy.copy(rule)
        self._write(rules)
        return copy.copy(rule)

    async def update_rule(self, rule_id: str, rule: RoutingRule) -> RoutingRule:
        rules = dict(self._read())
        if rule_id not in rules:
            raise StorageError(f"Rule not persisted: {rule_id}")
        rules[rule_id] = copy.copy(rule)
        self._write(rules)
        return copy.copy(rule)

    async def delete_rule(self, rule_id: str) -> None:
        rules = dict(self._read())
        if rules.pop(rule_id, None) is not None:
            self._write(rules)

    async def reorder_rules(self, priorities: Mapping[str, int]) -> None:
        rules = dict(self._read())
        now = datetime.now(UTC)
        for rule_id, priority in priorities.items():
            if rule_id not in rules:
                raise StorageError(f"Rule not persisted: {rule_id}")
            rules[rule_id] = dataclasses.replace(rules[rule_id], priority=priority, updated_at=now)
        self._write(rules)

    async def replace_rules(self, rules: Sequence[RoutingRule]) -> None:
        self._write({r.id: copy.copy(r) for r in rules})
