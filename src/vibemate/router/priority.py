"""
Priority resolution within a rule partition.

Priorities only compare within one (api_group, rule_type) partition. Lower
values are evaluated first. New rules are appended after the current
maximum; a reorder hands out dense values starting at 1.
"""

import logging
from collections.abc import Iterable, Sequence

from vibemate.router.errors import InvalidReorder, NotFound
from vibemate.router.models import RoutingRule, Scope

logger = logging.getLogger(__name__)


def partition(rules: Iterable[RoutingRule], scope: Scope) -> list[RoutingRule]:
    """Rules of one partition in evaluation order."""
    members = [r for r in rules if r.scope == scope]
    members.sort(key=lambda r: (r.priority, r.created_at))
    return members


def next_priority(rules: Iterable[RoutingRule], scope: Scope) -> int:
    """Priority that places a new rule after every rule in the partition."""
    return max((r.priority for r in rules if r.scope == scope), default=0) + 1


def _free_values(count: int, taken: set[int]) -> list[int]:
    values: list[int] = []
    candidate = 1
    while len(values) < count:
        if candidate not in taken:
            values.append(candidate)
        candidate += 1
    return values


def plan_reorder(rules: Iterable[RoutingRule], scoped_ids: Sequence[str]) -> dict[str, int]:
    """
    Compute new priorities for a reorder of one partition.

    Listed rules receive 1..N in list order. Locked rules are skipped and keep
    their value; listed rules step over values held by locked rules so the
    partition stays free of ties. Unlisted rules that would collide with the
    new numbering are moved after it, keeping their relative order.

    Args:
        rules: Every rule currently stored
        scoped_ids: Newly ordered ids of one partition

    Returns:
        Mapping of rule id to its new priority, only for rules that change

    Raises:
        NotFound: An id is unknown
        InvalidReorder: Ids repeat or span several partitions
    """
    by_id = {r.id: r for r in rules}

    for rule_id in scoped_ids:
        if rule_id not in by_id:
            raise NotFound(rule_id)

    if len(set(scoped_ids)) != len(scoped_ids):
        raise InvalidReorder("Reorder request lists the same rule more than once")

    scopes = {by_id[rule_id].scope for rule_id in scoped_ids}
    if len(scopes) > 1:
        raise InvalidReorder("Reorder request spans several rule partitions")
    if not scopes:
        return {}

    scope = scopes.pop()
    members = partition(by_id.values(), scope)
    locked_values = {r.priority for r in members if r.is_locked}

    ordered = [rule_id for rule_id in scoped_ids if not by_id[rule_id].is_locked]
    skipped = len(scoped_ids) - len(ordered)
    if skipped:
        logger.debug(f"Reorder skipped {skipped} locked rule(s)")

    assigned = dict(zip(ordered, _free_values(len(ordered), locked_values)))

    taken = locked_values | set(assigned.values())
    ceiling = max(taken, default=0)
    for rule in members:
        if rule.id in assigned or rule.is_locked:
            continue
        if rule.priority in taken:
            ceiling += 1
            assigned[rule.id] = ceiling
            taken.add(ceiling)
        else:
            taken.add(rule.priority)
            ceiling = max(ceiling, rule.priority)

    return {
        rule_id: priority
        for rule_id, priority in assigned.items()
        if by_id[rule_id].priority != priority
    }


def plan_insert(
    rules: Sequence[RoutingRule],
    new_rule: RoutingRule,
    position: int,
) -> dict[str, int]:
    """
    Compute priorities for inserting a rule at a position in its partition.

    Position counts unlocked rules only and is clamped to the partition size.
    The returned mapping always contains the new rule's id.
    """
    movable = [r.id for r in partition(rules, new_rule.scope) if not r.is_locked]
    position = max(0, min(position, len(movable)))
    movable.insert(position, new_rule.id)

    plan = plan_reorder([*rules, new_rule], movable)
    plan.setdefault(new_rule.id, new_rule.priority)
    return plan
