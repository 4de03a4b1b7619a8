"""
Routing rule data model.

Rules are plain dataclasses owned by the rule store. Create/update intents
arrive as pydantic models so they can be fed straight from API payloads.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RuleType(str, Enum):
    """What a rule matches against."""

    PATH = "path"
    MODEL = "model"


class ApiGroup(str, Enum):
    """Compatibility surface a rule belongs to."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GENERIC = "generic"


# Ordering used when listing the whole rule set
API_GROUP_ORDER = {ApiGroup.OPENAI: 0, ApiGroup.ANTHROPIC: 1, ApiGroup.GENERIC: 2}
RULE_TYPE_ORDER = {RuleType.PATH: 0, RuleType.MODEL: 1}

Scope = tuple[ApiGroup, RuleType]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _parse_timestamp(value: Any) -> datetime:
    if value is None:
        return _utcnow()
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class RoutingRule:
    """A single routing rule."""

    provider_id: str
    match_pattern: str
    priority: int
    rule_type: RuleType = RuleType.MODEL
    api_group: ApiGroup = ApiGroup.GENERIC
    model_rewrite: str | None = None
    enabled: bool = True
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def scope(self) -> Scope:
        """The (api_group, rule_type) partition this rule lives in."""
        return (self.api_group, self.rule_type)

    @property
    def is_locked(self) -> bool:
        from vibemate.router.patterns import is_protected

        return is_protected(self.rule_type, self.match_pattern, self.api_group)

    def sort_key(self) -> tuple[int, int, int]:
        return (
            API_GROUP_ORDER[self.api_group],
            RULE_TYPE_ORDER[self.rule_type],
            self.priority,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert rule to its camelCase wire shape."""
        return {
            "id": self.id,
            "ruleType": self.rule_type.value,
            "apiGroup": self.api_group.value,
            "providerId": self.provider_id,
            "matchPattern": self.match_pattern,
            "modelRewrite": self.model_rewrite,
            "priority": self.priority,
            "enabled": self.enabled,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoutingRule":
        """
        Create a rule from its wire shape.

        Missing ``ruleType`` defaults to ``model`` and missing ``apiGroup``
        to ``generic``, matching rule sets written before either existed.
        """
        return cls(
            id=str(data["id"]),
            rule_type=RuleType(data.get("ruleType") or RuleType.MODEL),
            api_group=ApiGroup(data.get("apiGroup") or ApiGroup.GENERIC),
            provider_id=str(data["providerId"]),
            match_pattern=str(data["matchPattern"]),
            model_rewrite=data.get("modelRewrite"),
            priority=int(data.get("priority", 0)),
            enabled=bool(data.get("enabled", True)),
            created_at=_parse_timestamp(data.get("createdAt")),
            updated_at=_parse_timestamp(data.get("updatedAt")),
        )


class _RuleInput(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        protected_namespaces=(),
    )


class CreateRuleInput(_RuleInput):
    """Intent to create a rule."""

    rule_type: RuleType = RuleType.MODEL
    api_group: ApiGroup = ApiGroup.GENERIC
    provider_id: str
    match_pattern: str
    model_rewrite: str | None = None
    enabled: bool = True

    @classmethod
    def from_rule(cls, rule: RoutingRule) -> "CreateRuleInput":
        """Build a create intent copying a rule's matching fields."""
        return cls(
            rule_type=rule.rule_type,
            api_group=rule.api_group,
            provider_id=rule.provider_id,
            match_pattern=rule.match_pattern,
            model_rewrite=rule.model_rewrite,
            enabled=True,
        )


class UpdateRuleInput(_RuleInput):
    """
    Partial update of a rule.

    Only fields explicitly present in the payload are applied, so sending
    ``modelRewrite: null`` clears the rewrite while omitting it keeps it.
    """

    rule_type: RuleType | None = None
    api_group: ApiGroup | None = None
    provider_id: str | None = None
    match_pattern: str | None = None
    model_rewrite: str | None = None
    enabled: bool | None = None

    def changes(self) -> dict[str, Any]:
        """Fields set by the caller, dropping explicit nulls on required fields."""
        data = {name: getattr(self, name) for name in self.model_fields_set}
        return {
            name: value
            for name, value in data.items()
            if value is not None or name == "model_rewrite"
        }
