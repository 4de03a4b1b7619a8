"""
Admin API endpoints.

Provides configuration, provider management, and route previews.
"""

from typing import Any

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from vibemate.providers import Provider
from vibemate.router.models import ApiGroup
from vibemate.router.resolver import group_for_path, resolve
from vibemate.server.config import get_settings_dict
from vibemate.server.context import AppContext, get_context

router = APIRouter()


class ProviderCreateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    api_url: str = ""
    is_default: bool = False


@router.get("/config")
async def get_config() -> dict[str, Any]:
    """
    Get current server configuration.

    Returns non-sensitive configuration values.
    """
    return get_settings_dict()


@router.get("/providers")
async def list_providers(context: AppContext = Depends(get_context)) -> dict[str, Any]:
    """
    List all registered providers.
    """
    return context.registry.to_dict()


@router.post("/providers", status_code=status.HTTP_201_CREATED)
async def add_provider(
    req: ProviderCreateRequest,
    response: Response,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """
    Register a provider.

    Default routing rules deferred for lack of a provider are created now.
    """
    provider = Provider(id=req.id, name=req.name, api_url=req.api_url, is_default=req.is_default)
    try:
        provisioned = await context.add_provider(provider)
    except ValueError as e:
        response.status_code = status.HTTP_409_CONFLICT
        return {"error": {"type": "duplicate_provider", "message": str(e)}}

    return {
        "provider": provider.to_dict(),
        "provisioned": [r.to_dict() for r in provisioned],
    }


@router.delete("/providers/{provider_id}")
async def remove_provider(
    provider_id: str,
    response: Response,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """
    Remove a provider and every routing rule that references it.
    """
    dropped = await context.remove_provider(provider_id)
    if dropped is None:
        response.status_code = status.HTTP_404_NOT_FOUND
        return {"error": {"type": "not_found", "message": f"Provider '{provider_id}' not found"}}

    return {"provider": provider_id, "droppedRules": [r.id for r in dropped]}


@router.get("/routing/test")
async def preview_routing(
    path: str = "/api/openai/v1/chat/completions",
    model: str | None = None,
    api_group: ApiGroup | None = None,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """
    Preview routing for a hypothetical request.

    Args:
        path: Request path
        model: Model named in the request body
        api_group: Group the request arrives on, derived from the path if omitted
    """
    group = api_group or group_for_path(path)
    resolution = resolve(
        context.store.list_rules(),
        context.registry,
        group,
        path,
        model,
    )

    return {
        "input": {"path": path, "model": model, "apiGroup": group.value},
        "result": resolution.to_dict() if resolution else None,
    }
