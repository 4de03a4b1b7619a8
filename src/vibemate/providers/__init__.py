"""
vibemate.providers - Provider records and registry.
"""

from vibemate.providers.base import Provider
from vibemate.providers.registry import ProviderRegistry, load_providers

__all__ = [
    "Provider",
    "ProviderRegistry",
    "load_providers",
]
