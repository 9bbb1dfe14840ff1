# tests/test_item_workflow.py
"""
Item workflow invariants.

- disabling a stage drops its assignment
- cancelling an item drops every assignment
- control stages can never be skipped
- default policy: any stage settable; guarded policy: transition table
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from printshop.fsm.item_workflow import (
    GuardedStatusPolicy,
    LINEAR_TRANSITIONS,
    StageNotAllowed,
    assignable_stages,
    available_stages,
    default_assignments,
    ensure_assignment,
    find_assignment,
    new_item,
    set_assignment,
    set_item_status,
    toggle_disabled_stage,
)
from printshop.models.stage import STAGES, WORK_STAGES, Stage
from printshop.schemas.order import OrderItem

from tests.factories import make_assignment, make_item


# ============================================================================
# Helpers
# ============================================================================

def _item(**kw) -> OrderItem:
    return OrderItem.model_validate(make_item(**kw))


def _fully_assigned(user: str = "u1", **kw) -> OrderItem:
    return _item(assignments=[make_assignment(s.value, user) for s in STAGES if s in WORK_STAGES], **kw)


# ============================================================================
# Queries
# ============================================================================

def test_available_stages_is_catalog_minus_disabled():
    item = _item(disabled_stages=["CUTTING", "GRAPHICS"])
    assert available_stages(item) == [
        Stage.TO_DO,
        Stage.PRINTING,
        Stage.FINISHING,
        Stage.PACKING,
        Stage.DONE,
        Stage.STANDBY,
        Stage.CANCELLED,
    ]


def test_assignable_stages_only_work_stages():
    assert assignable_stages(_item()) == [
        Stage.GRAPHICS,
        Stage.PRINTING,
        Stage.CUTTING,
        Stage.FINISHING,
        Stage.PACKING,
    ]
    assert assignable_stages(_item(disabled_stages=["PACKING"])) == [
        Stage.GRAPHICS,
        Stage.PRINTING,
        Stage.CUTTING,
        Stage.FINISHING,
    ]


def test_item_rejects_control_stage_in_disabled_stages():
    with pytest.raises(ValidationError):
        _item(disabled_stages=["DONE"])


def test_item_rejects_zero_quantity():
    with pytest.raises(ValidationError):
        _item(quantity=0)


# ============================================================================
# toggle_disabled_stage
# ============================================================================

@pytest.mark.parametrize("stage", sorted(WORK_STAGES, key=STAGES.index))
def test_disable_clears_assignment_for_stage(stage):
    item = _fully_assigned()
    toggle_disabled_stage(item, stage, True)

    assert stage in item.disabled_stages
    assert find_assignment(item, stage) is None
    # other stages untouched
    assert len(item.assignments) == len(WORK_STAGES) - 1


def test_disable_is_idempotent():
    item = _fully_assigned()
    toggle_disabled_stage(item, "CUTTING", True)
    toggle_disabled_stage(item, "CUTTING", True)

    assert item.disabled_stages == [Stage.CUTTING]
    assert find_assignment(item, Stage.CUTTING) is None


def test_enable_removes_from_disabled_set_and_keeps_catalog_order():
    item = _item(disabled_stages=["PACKING", "GRAPHICS"])
    assert item.disabled_stages == [Stage.GRAPHICS, Stage.PACKING]

    toggle_disabled_stage(item, "GRAPHICS", False)
    toggle_disabled_stage(item, "GRAPHICS", False)
    assert item.disabled_stages == [Stage.PACKING]


@pytest.mark.parametrize("stage", ["TO_DO", "DONE", "STANDBY", "CANCELLED"])
def test_control_stage_cannot_be_disabled(stage):
    item = _item()
    with pytest.raises(StageNotAllowed):
        toggle_disabled_stage(item, stage, True)
    assert item.disabled_stages == []


# ============================================================================
# set_item_status
# ============================================================================

def test_cancel_clears_all_assignments():
    item = _fully_assigned(status="PRINTING")
    set_item_status(item, Stage.CANCELLED)

    assert item.item_status is Stage.CANCELLED
    assert item.assignments == []


def test_default_policy_allows_any_jump():
    item = _item(status="TO_DO", assignments=[make_assignment("GRAPHICS", "u1")])
    set_item_status(item, "PACKING")
    assert item.item_status is Stage.PACKING

    set_item_status(item, "GRAPHICS")
    assert item.item_status is Stage.GRAPHICS
    # non-cancel moves keep assignments
    assert len(item.assignments) == 1


def test_guarded_policy_rejects_transition_outside_table():
    policy = GuardedStatusPolicy(LINEAR_TRANSITIONS)
    item = _item(status="TO_DO")

    with pytest.raises(StageNotAllowed):
        set_item_status(item, Stage.PACKING, policy=policy)
    assert item.item_status is Stage.TO_DO

    set_item_status(item, Stage.GRAPHICS, policy=policy)
    assert item.item_status is Stage.GRAPHICS


def test_guarded_policy_terminal_stages_are_final():
    policy = GuardedStatusPolicy(LINEAR_TRANSITIONS)
    item = _item(status="DONE")
    with pytest.raises(StageNotAllowed):
        set_item_status(item, Stage.PACKING, policy=policy)


def test_toggle_then_cancel_leaves_no_assignments():
    item = _fully_assigned(status="GRAPHICS")
    toggle_disabled_stage(item, "CUTTING", True)
    set_item_status(item, Stage.CANCELLED)

    assert item.assignments == []
    assert item.disabled_stages == [Stage.CUTTING]


# ============================================================================
# Assignment grid helpers
# ============================================================================

def test_ensure_assignment_creates_once():
    item = _item(assignments=[])
    a1 = ensure_assignment(item, "PRINTING")
    a2 = ensure_assignment(item, Stage.PRINTING)

    assert a1 is a2
    assert len(item.assignments) == 1
    assert a1.assigned_to is None
    assert a1.stage_notes == ""


def test_ensure_assignment_rejects_skipped_or_control_stage():
    item = _item(disabled_stages=["CUTTING"])
    with pytest.raises(StageNotAllowed):
        ensure_assignment(item, "CUTTING")
    with pytest.raises(StageNotAllowed):
        ensure_assignment(item, "DONE")


def test_set_assignment_updates_employee_and_notes():
    item = _item()
    set_assignment(item, "GRAPHICS", assigned_to="emp-7", stage_notes="logo in vector")

    a = find_assignment(item, Stage.GRAPHICS)
    assert a.assigned_to_id == "emp-7"
    assert a.stage_notes == "logo in vector"

    set_assignment(item, "GRAPHICS", assigned_to="  ")
    assert a.assigned_to is None
    assert a.stage_notes == "logo in vector"


def test_default_assignments_cover_assignable_stages():
    item = _item(disabled_stages=["FINISHING"])
    out = default_assignments(item, "u1")

    assert [a.stage for a in out] == [Stage.GRAPHICS, Stage.PRINTING, Stage.CUTTING, Stage.PACKING]
    assert {a.assigned_to_id for a in out} == {"u1"}


def test_new_item_starts_in_to_do():
    item = new_item("prod-1", "Canvas Print", price=120.0)

    assert item.item_status is Stage.TO_DO
    assert item.quantity == 1
    assert item.product_id == "prod-1"
    assert item.disabled_stages == []
    assert item.assignments == []
