"""
vibemate.storage - Persistence backends for routing rules.
"""

from vibemate.storage.base import RuleBackend
from vibemate.storage.memory import MemoryRuleBackend
from vibemate.storage.yaml_file import YamlRuleBackend

__all__ = [
    "RuleBackend",
    "MemoryRuleBackend",
    "YamlRuleBackend",
]
