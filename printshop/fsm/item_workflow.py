# printshop/fsm/item_workflow.py

from __future__ import annotations

from typing import Mapping, Protocol

from printshop.models.stage import STAGES, WORK_STAGES, Stage, parse_stage
from printshop.schemas.order import Assignment, OrderItem, as_ref

"""Order item workflow: production stages of one item.

  TO_DO -> GRAPHICS -> PRINTING -> CUTTING -> FINISHING -> PACKING -> DONE
  STANDBY / CANCELLED reachable from anywhere

- Work stages can be skipped per item (disabled_stages); a skipped stage
  never keeps an assignment.
- CANCELLED clears every assignment of the item.
- By default any stage is settable directly (manual override in the shop).
  A guarded transition table can be plugged in via StatusPolicy.
"""


class StageNotAllowed(Exception):
    pass


# ---------------------------------------------------------------------------
# Status policies
# ---------------------------------------------------------------------------


class StatusPolicy(Protocol):
    def check(self, current: Stage, target: Stage) -> None:
        """Raise StageNotAllowed if `current -> target` is not permitted."""


class UnguardedStatusPolicy:
    def check(self, current: Stage, target: Stage) -> None:
        return None


class GuardedStatusPolicy:
    def __init__(self, transitions: Mapping[Stage, set[Stage]]):
        self.transitions = transitions

    def check(self, current: Stage, target: Stage) -> None:
        if current == target:
            return
        allowed = self.transitions.get(current, set())
        if target not in allowed:
            allowed_str = ", ".join(s.value for s in STAGES if s in allowed) or "-"
            raise StageNotAllowed(
                f"Stage '{target.value}' not reachable from '{current.value}'. "
                f"Allowed: {allowed_str}."
            )


# forward through the catalog, plus STANDBY/CANCELLED from any non-terminal stage
LINEAR_TRANSITIONS: dict[Stage, set[Stage]] = {
    Stage.TO_DO: {Stage.GRAPHICS, Stage.STANDBY, Stage.CANCELLED},
    Stage.GRAPHICS: {Stage.PRINTING, Stage.STANDBY, Stage.CANCELLED},
    Stage.PRINTING: {Stage.CUTTING, Stage.STANDBY, Stage.CANCELLED},
    Stage.CUTTING: {Stage.FINISHING, Stage.STANDBY, Stage.CANCELLED},
    Stage.FINISHING: {Stage.PACKING, Stage.STANDBY, Stage.CANCELLED},
    Stage.PACKING: {Stage.DONE, Stage.STANDBY, Stage.CANCELLED},
    Stage.STANDBY: {
        Stage.TO_DO,
        Stage.GRAPHICS,
        Stage.PRINTING,
        Stage.CUTTING,
        Stage.FINISHING,
        Stage.PACKING,
        Stage.CANCELLED,
    },
    Stage.DONE: set(),
    Stage.CANCELLED: set(),
}

DEFAULT_POLICY: StatusPolicy = UnguardedStatusPolicy()


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def available_stages(item: OrderItem) -> list[Stage]:
    """Catalog minus the item's skipped stages, catalog order."""
    disabled = set(item.disabled_stages)
    return [s for s in STAGES if s not in disabled]


def assignable_stages(item: OrderItem) -> list[Stage]:
    """Work stages of the item that need an assignee."""
    return [s for s in available_stages(item) if s in WORK_STAGES]


def find_assignment(item: OrderItem, stage: Stage) -> Assignment | None:
    for a in item.assignments:
        if a.stage == stage:
            return a
    return None


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def toggle_disabled_stage(item: OrderItem, stage: Stage | str, disabled: bool) -> OrderItem:
    stage = parse_stage(stage)
    if stage not in WORK_STAGES:
        raise StageNotAllowed(f"Stage '{stage.value}' is a control stage and cannot be skipped")

    current = set(item.disabled_stages)
    if disabled:
        current.add(stage)
        item.assignments = [a for a in item.assignments if a.stage != stage]
    else:
        current.discard(stage)

    item.disabled_stages = [s for s in STAGES if s in current]
    return item


def set_item_status(
    item: OrderItem,
    stage: Stage | str,
    *,
    policy: StatusPolicy = DEFAULT_POLICY,
) -> OrderItem:
    stage = parse_stage(stage)
    policy.check(item.item_status, stage)

    item.item_status = stage
    if stage is Stage.CANCELLED:
        item.assignments = []
    return item


def ensure_assignment(item: OrderItem, stage: Stage | str) -> Assignment:
    """Return the item's assignment for `stage`, creating an empty one if missing."""
    stage = parse_stage(stage)
    if stage not in assignable_stages(item):
        raise StageNotAllowed(f"Stage '{stage.value}' does not take an assignment on this item")

    existing = find_assignment(item, stage)
    if existing is not None:
        return existing

    a = Assignment(stage=stage, assigned_to=None, stage_notes="")
    item.assignments.append(a)
    return a


def set_assignment(
    item: OrderItem,
    stage: Stage | str,
    *,
    assigned_to: str | None = None,
    stage_notes: str | None = None,
) -> Assignment:
    a = ensure_assignment(item, stage)
    if assigned_to is not None:
        a.assigned_to = as_ref(assigned_to) if assigned_to.strip() else None
    if stage_notes is not None:
        a.stage_notes = stage_notes
    return a


def default_assignments(item: OrderItem, current_user: str | None) -> list[Assignment]:
    """Every assignable stage of the item assigned to `current_user`."""
    me = (current_user or "").strip()
    return [
        Assignment(stage=s, assigned_to=as_ref(me) if me else None, stage_notes="")
        for s in assignable_stages(item)
    ]


def new_item(
    product_id: str,
    product_name: str,
    *,
    description: str | None = None,
    price: float | None = None,
) -> OrderItem:
    """Fresh item for a product just added to an order being composed."""
    return OrderItem(
        product=as_ref(product_id),
        product_name_snapshot=product_name,
        description_snapshot=description or "",
        price_snapshot=price,
        quantity=1,
        item_status=Stage.TO_DO,
        disabled_stages=[],
        assignments=[],
        text_to_print="",
        editable_file_path="",
        printing_file_path="",
    )
