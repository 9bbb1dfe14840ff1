# printshop/services/assignment_resolver.py
from __future__ import annotations

from typing import Any

from printshop.fsm.item_workflow import assignable_stages
from printshop.models.stage import STAGES, Stage
from printshop.schemas.order import Assignment, IdRef, Order, OrderItem, resolve_id


class OrderValidationError(Exception):
    """Order form rejected locally; nothing is sent upstream."""
    pass


def _has_assignee(a: Assignment) -> bool:
    assigned = a.assigned_to_id
    return bool(assigned and assigned.strip())


def resolve_assignments(item: OrderItem, current_user: str | None) -> list[Assignment]:
    """Final assignment list of one item, as sent on order create/update.

    - cancelled item -> []
    - keeps assignments of required stages that name an employee
    - a required stage left without assignee defaults to `current_user`
      (skipped when no current user is known)
    - one entry per stage, catalog order
    """
    if item.item_status is Stage.CANCELLED:
        return []

    required = set(assignable_stages(item))

    by_stage: dict[Stage, Assignment] = {}
    for a in item.assignments:
        if a.stage in required and _has_assignee(a):
            by_stage[a.stage] = Assignment(
                stage=a.stage,
                assigned_to=IdRef(a.assigned_to_id),
                stage_notes=a.stage_notes,
            )

    me = (current_user or "").strip()
    if me:
        for stage in required:
            if stage not in by_stage:
                by_stage[stage] = Assignment(stage=stage, assigned_to=IdRef(me), stage_notes="")

    return [by_stage[s] for s in STAGES if s in by_stage]


def build_item_payload(item: OrderItem, current_user: str | None) -> dict[str, Any]:
    payload = item.to_api()
    payload["product"] = item.product_id
    payload["assignments"] = [a.to_api() for a in resolve_assignments(item, current_user)]
    if not item.disabled_stages:
        payload.pop("disabledStages", None)
    return payload


def build_order_payload(order: Order, current_user: str | None) -> dict[str, Any]:
    """Body for POST /orders and PUT /orders/{id} from an order being edited."""
    if not order.items:
        raise OrderValidationError("Add at least one product")

    for idx, item in enumerate(order.items):
        if not item.product_id:
            raise OrderValidationError(f"items[{idx}]: product is required")

    payload = order.to_api()
    payload["customer"] = resolve_id(order.customer)
    if order.customer_company is not None:
        payload["customerCompany"] = resolve_id(order.customer_company)
    if payload["customer"] is None:
        raise OrderValidationError("Select a client")

    payload["items"] = [build_item_payload(item, current_user) for item in order.items]
    return payload
