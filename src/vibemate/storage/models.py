"""
SQLAlchemy models for rule storage.
"""

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from vibemate.router.models import ApiGroup, RoutingRule, RuleType


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class RoutingRuleRecord(Base):
    """Persisted routing rule."""

    __tablename__ = "routing_rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    rule_type: Mapped[str] = mapped_column(String(10), default=RuleType.MODEL.value)
    api_group: Mapped[str] = mapped_column(String(20), default=ApiGroup.GENERIC.value)
    provider_id: Mapped[str] = mapped_column(String(100), index=True)
    match_pattern: Mapped[str] = mapped_column(String(500))
    model_rewrite: Mapped[str | None] = mapped_column(String(200), nullable=True)
    priority: Mapped[int] = mapped_column(Integer)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    __table_args__ = (Index("idx_routing_rules_scope", api_group, rule_type, priority),)

    @classmethod
    def from_rule(cls, rule: RoutingRule) -> "RoutingRuleRecord":
        record = cls(id=rule.id)
        record.apply(rule)
        return record

    def apply(self, rule: RoutingRule) -> None:
        """Copy every mutable field from a rule."""
        self.rule_type = rule.rule_type.value
        self.api_group = rule.api_group.value
        self.provider_id = rule.provider_id
        self.match_pattern = rule.match_pattern
        self.model_rewrite = rule.model_rewrite
        self.priority = rule.priority
        self.enabled = rule.enabled
        self.created_at = rule.created_at
        self.updated_at = rule.updated_at

    def to_rule(self) -> RoutingRule:
        return RoutingRule(
            id=self.id,
            rule_type=RuleType(self.rule_type),
            api_group=ApiGroup(self.api_group),
            provider_id=self.provider_id,
            match_pattern=self.match_pattern,
            model_rewrite=self.model_rewrite,
            priority=self.priority,
            enabled=self.enabled,
            created_at=_aware(self.created_at),
            updated_at=_aware(self.updated_at),
        )


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
