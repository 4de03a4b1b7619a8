"""
YAML configuration for routing rule sets.

Supports:
- Loading rule sets from YAML files
- Validation of rule structure
- Consistency checks of a whole rule set (offline, no store needed)
- Writing rule sets back atomically
"""

import os
import tempfile
from collections import Counter
from collections.abc import Container, Iterable
from pathlib import Path
from typing import Any

import yaml

from vibemate.router.errors import RoutingError
from vibemate.router.models import ApiGroup, RoutingRule, RuleType
from vibemate.router.patterns import DEFAULT_PATH_PATTERNS
from vibemate.router.validation import check_namespace, validate_pattern


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


REQUIRED_RULE_KEYS = {"id", "providerId", "matchPattern"}

VALID_RULE_KEYS = REQUIRED_RULE_KEYS | {
    "ruleType",
    "apiGroup",
    "modelRewrite",
    "priority",
    "enabled",
    "createdAt",
    "updatedAt",
}


def validate_rules_config(config_dict: dict[str, Any]) -> list[RoutingRule]:
    """
    Validate a ``routing`` section and build its rules.

    Args:
        config_dict: Raw ``routing`` mapping

    Returns:
        Parsed rules in file order

    Raises:
        ConfigValidationError: If validation fails
    """
    raw_rules = config_dict.get("rules") or []
    if not isinstance(raw_rules, list):
        raise ConfigValidationError("'rules' must be a list")

    rules: list[RoutingRule] = []
    seen_ids: set[str] = set()

    for i, raw in enumerate(raw_rules):
        if not isinstance(raw, dict):
            raise ConfigValidationError(f"Rule {i}: expected a mapping")

        for key in sorted(REQUIRED_RULE_KEYS):
            if key not in raw or raw[key] in (None, ""):
                raise ConfigValidationError(f"Rule {i}: missing required field '{key}'")

        rule_id = str(raw["id"])
        if rule_id in seen_ids:
            raise ConfigValidationError(f"Rule '{rule_id}': duplicate rule id")
        seen_ids.add(rule_id)

        unknown = set(raw) - VALID_RULE_KEYS
        if unknown:
            raise ConfigValidationError(
                f"Rule '{rule_id}': unknown field(s) {sorted(unknown)}. "
                f"Valid fields: {sorted(VALID_RULE_KEYS)}"
            )

        if "priority" in raw and (
            not isinstance(raw["priority"], int) or isinstance(raw["priority"], bool)
        ):
            raise ConfigValidationError(
                f"Rule '{rule_id}': priority must be an integer, "
                f"got {type(raw['priority']).__name__}"
            )

        try:
            rules.append(RoutingRule.from_dict(raw))
        except (ValueError, TypeError) as e:
            raise ConfigValidationError(f"Rule '{rule_id}': {e}") from e

    return rules


def load_rules_file(config_path: Path) -> list[RoutingRule]:
    """
    Load a rule set from a YAML file.

    A missing, empty or section-less file is an empty rule set.

    Raises:
        yaml.YAMLError: If YAML syntax is invalid
        ConfigValidationError: If config validation fails
    """
    if not config_path.exists():
        return []

    with open(config_path) as f:
        content = f.read()

    if not content.strip():
        return []

    data = yaml.safe_load(content)
    if not data:
        return []

    if not isinstance(data, dict):
        raise ConfigValidationError("Top level of the rules file must be a mapping")

    routing_data = data.get("routing") or {}
    if not routing_data:
        return []

    return validate_rules_config(routing_data)


def dump_rules(rules: Iterable[RoutingRule]) -> dict[str, Any]:
    """Build the YAML document for a rule set."""
    ordered = sorted(rules, key=lambda r: (r.sort_key(), r.created_at))
    return {"routing": {"rules": [r.to_dict() for r in ordered]}}


def save_rules_file(config_path: Path, rules: Iterable[RoutingRule]) -> None:
    """
    Write a rule set to YAML, replacing the file in one step.

    Raises:
        OSError: If the file cannot be written
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)
    document = dump_rules(rules)

    fd, tmp_name = tempfile.mkstemp(prefix=".rules-", suffix=".yaml", dir=config_path.parent)
    try:
        with os.fdopen(fd, "w") as f:
            yaml.safe_dump(document, f, sort_keys=False, allow_unicode=True)
        os.replace(tmp_name, config_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def check_rule_set(
    rules: Iterable[RoutingRule],
    providers: Container[str] | None = None,
) -> list[str]:
    """
    Report consistency problems in a rule set.

    Checks empty patterns, reserved generic prefixes, priority ties within a
    partition, repeated or missing defaults, and (when ``providers`` is
    given) dangling provider references.

    Returns:
        Human-readable problems, empty when the rule set is consistent
    """
    rules = list(rules)
    problems: list[str] = []

    for rule in rules:
        try:
            validate_pattern(rule.match_pattern)
            check_namespace(rule.api_group, rule.rule_type, rule.match_pattern)
        except RoutingError as e:
            problems.append(f"Rule '{rule.id}': {e}")
        if providers is not None and rule.provider_id not in providers:
            problems.append(f"Rule '{rule.id}': unknown provider '{rule.provider_id}'")

    ties = Counter((r.api_group, r.rule_type, r.priority) for r in rules)
    for (group, rule_type, priority), count in sorted(
        ties.items(), key=lambda item: (item[0][0].value, item[0][1].value, item[0][2])
    ):
        if count > 1:
            problems.append(
                f"{group.value}/{rule_type.value}: {count} rules share priority {priority}"
            )

    for group in (ApiGroup.OPENAI, ApiGroup.ANTHROPIC):
        pattern = DEFAULT_PATH_PATTERNS[group]
        defaults = [
            r
            for r in rules
            if r.api_group == group and r.rule_type == RuleType.PATH and r.match_pattern == pattern
        ]
        if len(defaults) > 1:
            problems.append(f"{group.value}: default rule '{pattern}' appears {len(defaults)} times")
        has_path_rules = any(r.api_group == group and r.rule_type == RuleType.PATH for r in rules)
        if not has_path_rules:
            problems.append(f"{group.value}: no path rules, default rule will be provisioned")

    return problems
