"""
Persistence boundary for routing rules.

The rule store keeps an in-memory copy of the rule set and writes every
change through a backend first. Backends raise ``StorageError`` on failure
so the store can leave its cache untouched.
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from vibemate.router.models import RoutingRule


@runtime_checkable
class RuleBackend(Protocol):
    """Calls the rule store makes against persistence."""

    async def list_rules(self) -> list["RoutingRule"]:
        """Return every persisted rule."""
        ...

    async def create_rule(self, rule: "RoutingRule") -> "RoutingRule":
        """Persist a new rule and return it as stored."""
        ...

    async def update_rule(self, rule_id: str, rule: "RoutingRule") -> "RoutingRule":
        """Replace a persisted rule and return it as stored."""
        ...

    async def delete_rule(self, rule_id: str) -> None:
        """Remove a persisted rule."""
        ...

    async def reorder_rules(self, priorities: Mapping[str, int]) -> None:
        """Write new priorities for the given rule ids in one step."""
        ...

    async def replace_rules(self, rules: Sequence["RoutingRule"]) -> None:
        """Overwrite the whole rule set."""
        ...
