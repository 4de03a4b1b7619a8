"""
Backend selection from settings.
"""

import logging

from vibemate.server.config import Settings
from vibemate.storage.base import RuleBackend
from vibemate.storage.database import close_database, init_database
from vibemate.storage.memory import MemoryRuleBackend
from vibemate.storage.sql import SqlRuleBackend
from vibemate.storage.yaml_file import YamlRuleBackend

logger = logging.getLogger(__name__)


async def open_backend(settings: Settings) -> RuleBackend:
    """
    Build the configured rule backend.

    The database backend initializes the engine; pair with close_backend().
    """
    kind = settings.storage.backend
    if kind == "memory":
        backend: RuleBackend = MemoryRuleBackend()
    elif kind == "yaml":
        backend = YamlRuleBackend(settings.storage.rules_path)
    else:
        await init_database(settings.storage.database_url)
        backend = SqlRuleBackend()

    logger.info(f"Using '{kind}' rule storage")
    return backend


async def close_backend(backend: RuleBackend) -> None:
    if isinstance(backend, SqlRuleBackend):
        await close_database()
