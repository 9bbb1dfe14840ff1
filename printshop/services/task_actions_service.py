# printshop/services/task_actions_service.py
from __future__ import annotations

import logging
from typing import Any, Protocol

from printshop.fsm.item_workflow import StageNotAllowed, assignable_stages
from printshop.models.stage import Stage, parse_stage
from printshop.schemas.order import Assignment, IdRef, Order, resolve_id
from printshop.schemas.task import Task
from printshop.services.orders_client import ApiError

logger = logging.getLogger(__name__)


class ItemNotFound(Exception):
    pass


class OrderStore(Protocol):
    """What the task actions need from the Orders API.

    NOTE: replace_order is a full-document PUT without a version check
    (last write wins). A version/ETag argument belongs here once upstream
    supports it.
    """

    async def get_order(self, order_id: str) -> Order: ...

    async def replace_order(self, order_id: str, payload: dict[str, Any]) -> Any: ...

    async def update_item_status(self, order_id: str, item_id: str, body: dict[str, Any]) -> Any: ...


def normalize_order_refs(order: Order) -> dict[str, Any]:
    """Full order body with every reference reduced to its bare identifier."""
    for item in order.items:
        if item.product is not None:
            item.product = IdRef(item.product_id)
        for a in item.assignments:
            if a.assigned_to is not None:
                a.assigned_to = IdRef(a.assigned_to_id)

    payload = order.to_api()
    for key, ref in (("customer", order.customer), ("customerCompany", order.customer_company)):
        if ref is not None:
            payload[key] = resolve_id(ref)
    return payload


class TaskActionsService:
    def __init__(self, orders: OrderStore):
        self.orders = orders

    async def update_status(
        self,
        order_id: str,
        item_id: str,
        new_stage: Stage | str,
        *,
        task: Task | None = None,
    ) -> Task | None:
        """PATCH the item stage; one retry with the legacy `{stage}` body.

        The local task is patched only after upstream accepted the change.
        """
        new_stage = parse_stage(new_stage)

        try:
            await self.orders.update_item_status(order_id, item_id, {"itemStatus": new_stage.value})
        except ApiError as first:
            logger.info(
                "Status update %s/%s rejected (%s), retrying with legacy body",
                order_id, item_id, first.message,
            )
            await self.orders.update_item_status(order_id, item_id, {"stage": new_stage.value})

        logger.info("Item %s/%s moved to %s", order_id, item_id, new_stage.value)

        if task is not None:
            task.current_stage = new_stage
        return task

    async def self_assign(
        self,
        order_id: str,
        item_id: str,
        stage: Stage | str,
        acting_user: str,
        *,
        task: Task | None = None,
    ) -> Task | None:
        """Claim `stage` of an item for `acting_user` (read-modify-write of the whole order)."""
        stage = parse_stage(stage)
        if not acting_user or not acting_user.strip():
            raise ValueError("acting_user is required")

        order = await self.orders.get_order(order_id)
        item = order.find_item(item_id)
        if item is None:
            raise ItemNotFound(f"Item {item_id} not found in order {order_id}")

        # only work stages the item still goes through can be claimed;
        # TO_DO and the other control stages never take an assignee
        if item.item_status is Stage.CANCELLED:
            raise StageNotAllowed(f"Item {item_id} is cancelled")
        if stage not in assignable_stages(item):
            raise StageNotAllowed(f"Stage '{stage.value}' does not take an assignment on item {item_id}")

        existing = next((a for a in item.assignments if a.stage == stage), None)
        if existing is not None:
            existing.assigned_to = IdRef(acting_user)
            existing.is_active = True
        else:
            item.assignments.append(Assignment(stage=stage, assigned_to=IdRef(acting_user), is_active=True))

        await self.orders.replace_order(order_id, normalize_order_refs(order))

        logger.info("Item %s/%s stage %s claimed by %s", order_id, item_id, stage.value, acting_user)

        if task is not None:
            task.assigned_to = acting_user
            task.is_unassigned = False
        return task
