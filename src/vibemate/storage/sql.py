"""
Database rule backend.

Each call runs in its own session so a failure rolls back everything that
call wrote.
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from vibemate.router.errors import StorageError
from vibemate.router.models import RoutingRule
from vibemate.storage.database import get_session
from vibemate.storage.models import RoutingRuleRecord

logger = logging.getLogger(__name__)


class SqlRuleBackend:
    """Rule backend persisting to a SQL database through SQLAlchemy."""

    async def list_rules(self) -> list[RoutingRule]:
        try:
            async with get_session() as session:
                result = await session.execute(select(RoutingRuleRecord))
                return [record.to_rule() for record in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot list rules: {e}") from e

    async def create_rule(self, rule: RoutingRule) -> RoutingRule:
        try:
            async with get_session() as session:
                record = RoutingRuleRecord.from_rule(rule)
                session.add(record)
                await session.flush()
                return record.to_rule()
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot create rule {rule.id}: {e}") from e

    async def update_rule(self, rule_id: str, rule: RoutingRule) -> RoutingRule:
        try:
            async with get_session() as session:
                record = await session.get(RoutingRuleRecord, rule_id)
                if record is None:
                    raise StorageError(f"Rule not persisted: {rule_id}")
                record.apply(rule)
                await session.flush()
                return record.to_rule()
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot update rule {rule_id}: {e}") from e

    async def delete_rule(self, rule_id: str) -> None:
        try:
            async with get_session() as session:
                await session.execute(
                    delete(RoutingRuleRecord).where(RoutingRuleRecord.id == rule_id)
                )
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot delete rule {rule_id}: {e}") from e

    async def reorder_rules(self, priorities: Mapping[str, int]) -> None:
        if not priorities:
            return
        now = datetime.now(UTC)
        try:
            async with get_session() as session:
                stmt = select(RoutingRuleRecord).where(RoutingRuleRecord.id.in_(list(priorities)))
                result = await session.execute(stmt)
                records = {record.id: record for record in result.scalars().all()}

                missing = [rule_id for rule_id in priorities if rule_id not in records]
                if missing:
                    raise StorageError(f"Rules not persisted: {', '.join(missing)}")

                for rule_id, priority in priorities.items():
                    records[rule_id].priority = priority
                    records[rule_id].updated_at = now
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot reorder rules: {e}") from e

    async def replace_rules(self, rules: Sequence[RoutingRule]) -> None:
        try:
            async with get_session() as session:
                await session.execute(delete(RoutingRuleRecord))
                session.add_all(RoutingRuleRecord.from_rule(rule) for rule in rules)
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot replace rules: {e}") from e
        logger.info(f"Replaced persisted rule set ({len(rules)} rules)")
