"""
vibemate.router - Routing rule configuration engine.

Keeps the rule set consistent and defines the matching contract the
dispatcher applies to live requests.
"""

from vibemate.router.bootstrap import BootstrapProvisioner
from vibemate.router.config import (
    ConfigValidationError,
    check_rule_set,
    load_rules_file,
    save_rules_file,
    validate_rules_config,
)
from vibemate.router.errors import (
    InvalidPattern,
    InvalidReorder,
    LockedRuleViolation,
    NamespaceCollision,
    NoProviderAvailable,
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
    UpdateRuleInput,
)
from vibemate.router.patterns import (
    ANTHROPIC_CATCH_ALL,
    GENERIC_CATCH_ALL,
    OPENAI_CATCH_ALL,
    is_protected,
    matches,
)
from vibemate.router.resolver import Resolution, resolve
from vibemate.router.store import RuleStore

__all__ = [
    # Models
    "ApiGroup",
    "CreateRuleInput",
    "RoutingRule",
    "RuleType",
    "UpdateRuleInput",
    # Patterns
    "ANTHROPIC_CATCH_ALL",
    "GENERIC_CATCH_ALL",
    "OPENAI_CATCH_ALL",
    "is_protected",
    "matches",
    # Store
    "BootstrapProvisioner",
    "RuleStore",
    # Resolution
    "Resolution",
    "resolve",
    # Config
    "ConfigValidationError",
    "check_rule_set",
    "load_rules_file",
    "save_rules_file",
    "validate_rules_config",
    # Errors
    "InvalidPattern",
    "InvalidReorder",
    "LockedRuleViolation",
    "NamespaceCollision",
    "NoProviderAvailable",
    "NotFound",
    "RoutingError",
    "StorageError",
    "UnknownProvider",
]
