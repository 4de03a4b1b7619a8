"""
Health check endpoints.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, Response, status

from vibemate.router.bootstrap import BOOTSTRAP_GROUPS
from vibemate.server.context import AppContext, get_context
from vibemate.storage.database import check_database_health
from vibemate.storage.sql import SqlRuleBackend

router = APIRouter()


@router.get("/live")
async def liveness() -> dict[str, str]:
    """
    Liveness probe.

    Returns 200 if the server is running.
    """
    return {"status": "alive", "timestamp": datetime.now(UTC).isoformat()}


@router.get("/ready")
async def readiness(
    response: Response,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """
    Readiness probe.

    Ready once every bootstrapped group has its default rule, which also
    implies at least one provider is registered.
    """
    defaults = {
        group.value: context.store.default_rule(group) is not None for group in BOOTSTRAP_GROUPS
    }
    is_ready = all(defaults.values())

    result: dict[str, Any] = {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": datetime.now(UTC).isoformat(),
        "providers": {"total": len(context.registry)},
        "rules": {"total": len(context.store), "defaults": defaults},
    }

    if isinstance(context.backend, SqlRuleBackend):
        database = await check_database_health()
        result["database"] = database
        is_ready = is_ready and bool(database["connected"])
        result["status"] = "ready" if is_ready else "not_ready"

    if not is_ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return result
