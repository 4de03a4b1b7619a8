"""
Glob pattern matching and protected rule patterns.

The matcher is the contract every dispatcher must implement exactly:

- ``*`` matches zero or more of any character
- every other character matches itself, case-sensitively
- no path-segment semantics, ``/api/*`` matches ``/api/a/b/c``
"""

import re
from functools import lru_cache

from vibemate.router.models import ApiGroup, RuleType

OPENAI_CATCH_ALL = "/api/openai/*"
ANTHROPIC_CATCH_ALL = "/api/anthropic/*"
GENERIC_CATCH_ALL = "/api/*"

PROTECTED_PATH_PATTERNS = frozenset({OPENAI_CATCH_ALL, ANTHROPIC_CATCH_ALL, GENERIC_CATCH_ALL})

# Generic path rules may not claim these prefixes
RESERVED_GENERIC_PREFIXES = ("/api/openai", "/api/anthropic")

DEFAULT_PATH_PATTERNS: dict[ApiGroup, str] = {
    ApiGroup.OPENAI: OPENAI_CATCH_ALL,
    ApiGroup.ANTHROPIC: ANTHROPIC_CATCH_ALL,
    ApiGroup.GENERIC: GENERIC_CATCH_ALL,
}

WILDCARD = "*"


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate a glob pattern into an anchored regular expression."""
    literal_parts = (re.escape(part) for part in pattern.split(WILDCARD))
    return re.compile(".*".join(literal_parts), re.DOTALL)


def matches(pattern: str, value: str) -> bool:
    """
    Check whether a request attribute matches a glob pattern.

    Args:
        pattern: Rule pattern, e.g. ``gpt-4*`` or ``/api/*``
        value: URL path or model name

    Returns:
        True if the whole value matches
    """
    return compile_pattern(pattern).fullmatch(value) is not None


def is_protected(
    rule_type: RuleType,
    match_pattern: str,
    api_group: ApiGroup | None = None,
) -> bool:
    """
    Check whether a rule is a protected default (locked) rule.

    A rule is locked when it is a path rule whose pattern is one of the
    reserved catch-alls. The catch-alls are protected in whichever group
    holds them, so ``api_group`` never changes the answer.
    """
    return rule_type == RuleType.PATH and match_pattern in PROTECTED_PATH_PATTERNS


def reserved_prefix(match_pattern: str) -> str | None:
    """Return the reserved prefix a pattern starts with, if any."""
    for prefix in RESERVED_GENERIC_PREFIXES:
        if match_pattern.startswith(prefix):
            return prefix
    return None
