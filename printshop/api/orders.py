# printshop/api/orders.py

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from printshop.api.deps import (
    ActorContext,
    get_actor_context,
    get_inflight,
    get_orders_client,
    get_task_actions,
)
from printshop.api.errors import api_error_to_http
from printshop.core.rbac import Forbidden, ensure_allowed
from printshop.fsm.item_workflow import StageNotAllowed
from printshop.schemas.item_actions import (
    SelfAssignRequest,
    SelfAssignResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from printshop.schemas.order import Order
from printshop.services.assignment_resolver import OrderValidationError, build_order_payload
from printshop.services.inflight import AlreadyInFlight, InFlightRegistry, item_key
from printshop.services.orders_client import ApiError, OrdersClient
from printshop.services.task_actions_service import ItemNotFound, TaskActionsService


router = APIRouter(prefix="/orders", tags=["orders"])


def _ensure(permission: str, ctx: ActorContext) -> None:
    try:
        ensure_allowed(permission, ctx.role)
    except Forbidden as e:
        raise HTTPException(status_code=403, detail=str(e))


# ---------------------------------------------------------------------------
# Order form
# ---------------------------------------------------------------------------


@router.post("/preview-assignments")
def preview_assignments(
    order: Order,
    ctx: ActorContext = Depends(get_actor_context),
) -> dict[str, Any]:
    """Payload the form would submit: resolved assignments, bare references. Nothing is sent upstream."""
    _ensure("order.create", ctx)
    try:
        return build_order_payload(order, ctx.actor_user_id)
    except OrderValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("", response_model=Order, response_model_exclude_none=True, status_code=status.HTTP_201_CREATED)
async def create_order(
    order: Order,
    ctx: ActorContext = Depends(get_actor_context),
    orders: OrdersClient = Depends(get_orders_client),
):
    _ensure("order.create", ctx)
    try:
        payload = build_order_payload(order, ctx.actor_user_id)
    except OrderValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        return await orders.create_order(payload)
    except ApiError as e:
        raise api_error_to_http(e)


@router.put("/{order_id}")
async def update_order(
    order_id: str,
    order: Order,
    ctx: ActorContext = Depends(get_actor_context),
    orders: OrdersClient = Depends(get_orders_client),
) -> Any:
    _ensure("order.update", ctx)
    try:
        payload = build_order_payload(order, ctx.actor_user_id)
    except OrderValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        return await orders.replace_order(order_id, payload)
    except ApiError as e:
        raise api_error_to_http(e)


# ---------------------------------------------------------------------------
# Dashboard item actions
# ---------------------------------------------------------------------------


@router.post("/{order_id}/items/{item_id}/status", response_model=StatusUpdateResponse)
async def update_item_status(
    order_id: str,
    item_id: str,
    body: StatusUpdateRequest,
    ctx: ActorContext = Depends(get_actor_context),
    actions: TaskActionsService = Depends(get_task_actions),
    inflight: InFlightRegistry = Depends(get_inflight),
):
    _ensure("item.update_status", ctx)
    try:
        async with inflight.claim(item_key(order_id, item_id)):
            await actions.update_status(order_id, item_id, body.item_status)
    except AlreadyInFlight as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ApiError as e:
        raise api_error_to_http(e)

    return StatusUpdateResponse(order_id=order_id, item_id=item_id, item_status=body.item_status)


@router.post("/{order_id}/items/{item_id}/self-assign", response_model=SelfAssignResponse)
async def self_assign_item(
    order_id: str,
    item_id: str,
    body: SelfAssignRequest,
    ctx: ActorContext = Depends(get_actor_context),
    actions: TaskActionsService = Depends(get_task_actions),
    inflight: InFlightRegistry = Depends(get_inflight),
):
    _ensure("item.self_assign", ctx)
    try:
        async with inflight.claim(item_key(order_id, item_id)):
            await actions.self_assign(order_id, item_id, body.stage, ctx.actor_user_id)
    except AlreadyInFlight as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ItemNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StageNotAllowed as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ApiError as e:
        raise api_error_to_http(e)

    return SelfAssignResponse(
        order_id=order_id,
        item_id=item_id,
        stage=body.stage,
        assigned_to=ctx.actor_user_id,
    )
