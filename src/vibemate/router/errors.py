"""
Errors raised by the rule configuration engine.

Every error is scoped to the single operation that raised it; none of them
leave the rule store partially modified.
"""


class RoutingError(Exception):
    """Base class for rule configuration errors."""

    code = "routing_error"


class NotFound(RoutingError):
    """Raised when a rule id is unknown."""

    code = "not_found"

    def __init__(self, rule_id: str):
        self.rule_id = rule_id
        super().__init__(f"Rule not found: {rule_id}")


class LockedRuleViolation(RoutingError):
    """Raised when an operation would alter a protected default rule."""

    code = "locked_rule_violation"

    def __init__(self, rule_id: str | None, action: str, pattern: str):
        self.rule_id = rule_id
        self.action = action
        self.pattern = pattern
        super().__init__(f"Cannot {action} protected default rule '{pattern}'")


class NamespaceCollision(RoutingError):
    """Raised when a generic path rule would shadow an OpenAI/Anthropic prefix."""

    code = "namespace_collision"

    def __init__(self, pattern: str, prefix: str):
        self.pattern = pattern
        self.prefix = prefix
        super().__init__(f"Generic path rules cannot start with {prefix}: '{pattern}'")


class InvalidPattern(RoutingError):
    """Raised for an empty or whitespace-only match pattern."""

    code = "invalid_pattern"

    def __init__(self, pattern: str):
        self.pattern = pattern
        super().__init__(f"Invalid pattern: {pattern!r}")


class UnknownProvider(RoutingError):
    """Raised when a rule references a provider the registry does not know."""

    code = "unknown_provider"

    def __init__(self, provider_id: str):
        self.provider_id = provider_id
        super().__init__(f"Unknown provider: {provider_id}")


class NoProviderAvailable(RoutingError):
    """Raised by bootstrap when no provider is configured yet."""

    code = "no_provider_available"

    def __init__(self) -> None:
        super().__init__("No provider available to assign default rules to")


class InvalidReorder(RoutingError):
    """Raised when a reorder request mixes rules from different partitions."""

    code = "invalid_reorder"


class StorageError(RoutingError):
    """Raised when the persistence backend fails."""

    code = "storage_error"
