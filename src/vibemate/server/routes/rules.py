"""
Routing rule endpoints.

Thin HTTP layer over the rule store. Validation and policy errors are
raised by the store and translated by the application's error handler.
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from vibemate.router.models import ApiGroup, CreateRuleInput, RuleType, UpdateRuleInput
from vibemate.server.context import AppContext, get_context

router = APIRouter()


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateRuleRequest(CreateRuleInput):
    position: int | None = None


class ReorderRequest(_CamelModel):
    rule_ids: list[str]


class DefaultProviderRequest(_CamelModel):
    provider_id: str
    enabled: bool | None = None


@router.get("")
async def list_rules(
    api_group: ApiGroup | None = None,
    rule_type: RuleType | None = None,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """
    List rules in evaluation order, optionally narrowed to a group/type.
    """
    rules = context.store.list_rules()
    if api_group is not None:
        rules = [r for r in rules if r.api_group == api_group]
    if rule_type is not None:
        rules = [r for r in rules if r.rule_type == rule_type]

    return {
        "items": [{**r.to_dict(), "locked": r.is_locked} for r in rules],
        "total": len(rules),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_rule(
    req: CreateRuleRequest,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Create a rule, appended to its partition unless a position is given."""
    data = CreateRuleInput(**req.model_dump(exclude={"position"}))
    rule = await context.store.create(data, position=req.position)
    return rule.to_dict()


@router.post("/reorder")
async def reorder_rules(
    req: ReorderRequest,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """
    Reorder one partition. Locked rules in the list are ignored.
    """
    rules = await context.store.reorder(req.rule_ids)
    return {"items": [r.to_dict() for r in rules], "total": len(rules)}


@router.post("/bootstrap")
async def bootstrap_rules(context: AppContext = Depends(get_context)) -> dict[str, Any]:
    """
    Provision missing default rules now.

    Responds 503 when no provider is registered yet.
    """
    created = await context.provisioner.run()
    return {"created": [r.to_dict() for r in created]}


@router.put("/defaults/{api_group}")
async def set_default_provider(
    api_group: ApiGroup,
    req: DefaultProviderRequest,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Change the provider (and optionally the enabled flag) of a default rule."""
    rule = await context.store.set_default_provider(api_group, req.provider_id, req.enabled)
    return rule.to_dict()


@router.get("/{rule_id}")
async def get_rule(rule_id: str, context: AppContext = Depends(get_context)) -> dict[str, Any]:
    rule = context.store.get(rule_id)
    return {**rule.to_dict(), "locked": rule.is_locked}


@router.patch("/{rule_id}")
async def update_rule(
    rule_id: str,
    req: UpdateRuleInput,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Apply a partial update; only fields present in the body change."""
    rule = await context.store.update(rule_id, req)
    return rule.to_dict()


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(rule_id: str, context: AppContext = Depends(get_context)) -> None:
    await context.store.delete(rule_id)


@router.post("/{rule_id}/duplicate", status_code=status.HTTP_201_CREATED)
async def duplicate_rule(
    rule_id: str,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Copy a rule to the end of its partition, enabled."""
    rule = await context.store.duplicate(rule_id)
    return rule.to_dict()
