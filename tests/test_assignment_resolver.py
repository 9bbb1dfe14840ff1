# tests/test_assignment_resolver.py
from __future__ import annotations

import itertools

import pytest

from printshop.fsm.item_workflow import assignable_stages, set_item_status
from printshop.models.stage import STAGES, WORK_STAGES, Stage
from printshop.schemas.order import Order, OrderItem
from printshop.services.assignment_resolver import (
    OrderValidationError,
    build_order_payload,
    resolve_assignments,
)

from tests.factories import make_assignment, make_item, make_order


WORK = [s for s in STAGES if s in WORK_STAGES]


def _item(**kw) -> OrderItem:
    return OrderItem.model_validate(make_item(**kw))


def _stages(out) -> list[Stage]:
    return [a.stage for a in out]


# ============================================================================
# Scenarios
# ============================================================================

def test_empty_item_defaults_every_work_stage_to_current_user():
    out = resolve_assignments(_item(status="TO_DO", assignments=[]), "u1")

    assert _stages(out) == WORK
    for a in out:
        assert a.assigned_to_id == "u1"
        assert a.stage_notes == ""


def test_disabled_stage_is_left_out():
    out = resolve_assignments(_item(disabled_stages=["CUTTING"], assignments=[]), "u1")

    assert _stages(out) == [Stage.GRAPHICS, Stage.PRINTING, Stage.FINISHING, Stage.PACKING]


def test_cancelled_item_resolves_to_nothing():
    item = _item(
        status="PRINTING",
        assignments=[
            make_assignment("GRAPHICS", "u1"),
            make_assignment("PRINTING", "u2"),
            make_assignment("CUTTING", "u3"),
        ],
    )
    set_item_status(item, Stage.CANCELLED)

    assert item.assignments == []
    assert resolve_assignments(item, "u1") == []


def test_cancelled_item_with_stale_assignments_still_resolves_to_nothing():
    # item arrives already cancelled, assignments never cleared upstream
    item = _item(status="CANCELLED", assignments=[make_assignment("GRAPHICS", "u1")])
    assert resolve_assignments(item, "u9") == []


# ============================================================================
# Existing assignments
# ============================================================================

def test_explicit_assignee_wins_over_default():
    item = _item(assignments=[make_assignment("PRINTING", "emp-2", stage_notes="matte")])
    out = {a.stage: a for a in resolve_assignments(item, "u1")}

    assert out[Stage.PRINTING].assigned_to_id == "emp-2"
    assert out[Stage.PRINTING].stage_notes == "matte"
    assert out[Stage.GRAPHICS].assigned_to_id == "u1"


def test_embedded_employee_is_reduced_to_identifier():
    employee = {"_id": "emp-3", "firstName": "Ion", "lastName": "Pop"}
    item = _item(assignments=[make_assignment("GRAPHICS", employee)])
    out = resolve_assignments(item, None)

    assert len(out) == 1
    assert out[0].to_api() == {"stage": "GRAPHICS", "assignedTo": "emp-3"}


@pytest.mark.parametrize("blank", ["", "   "])
def test_blank_assignee_is_treated_as_missing(blank):
    item = _item(assignments=[make_assignment("GRAPHICS", blank)])

    assert resolve_assignments(item, None) == []
    out = resolve_assignments(item, "u1")
    assert out[0].stage is Stage.GRAPHICS
    assert out[0].assigned_to_id == "u1"


def test_assignment_for_disabled_or_control_stage_is_dropped():
    item = _item(
        disabled_stages=["CUTTING"],
        assignments=[
            make_assignment("CUTTING", "emp-1"),
            make_assignment("DONE", "emp-1"),
            make_assignment("STANDBY", "emp-1"),
        ],
    )
    out = resolve_assignments(item, "u1")

    assert Stage.CUTTING not in _stages(out)
    assert Stage.DONE not in _stages(out)
    assert Stage.STANDBY not in _stages(out)


def test_duplicate_stage_entries_collapse_to_one():
    item = _item(
        assignments=[
            make_assignment("PRINTING", "emp-1"),
            make_assignment("PRINTING", "emp-2"),
        ]
    )
    out = resolve_assignments(item, "u1")

    assert _stages(out).count(Stage.PRINTING) == 1


def test_no_current_user_leaves_stages_unassigned():
    item = _item(assignments=[make_assignment("FINISHING", "emp-5")])
    out = resolve_assignments(item, "  ")

    assert _stages(out) == [Stage.FINISHING]


# ============================================================================
# Properties over every skip set
# ============================================================================

SKIP_SETS = [list(c) for r in range(len(WORK) + 1) for c in itertools.combinations([s.value for s in WORK], r)]


@pytest.mark.parametrize("disabled", SKIP_SETS)
def test_output_stage_set_equals_assignable_stages(disabled):
    item = _item(disabled_stages=disabled, assignments=[make_assignment("GRAPHICS", "emp-1")])
    out = resolve_assignments(item, "u1")

    assert _stages(out) == assignable_stages(item)
    assert len(set(_stages(out))) == len(out)


# ============================================================================
# Order payload
# ============================================================================

def test_order_payload_reduces_references_and_resolves_items():
    order = Order.model_validate(
        make_order(
            order_id="o1",
            customer={"_id": "c1", "firstName": "Maria", "lastName": "Popescu"},
            customer_company={"_id": "co1", "name": "Tech Solutions SRL"},
            items=[
                make_item(item_id="i1", product={"_id": "p1", "productName": "Flyer"}, disabled_stages=["CUTTING"]),
                make_item(item_id="i2", product="p2", status="CANCELLED", assignments=[make_assignment("GRAPHICS", "u2")]),
            ],
        )
    )
    payload = build_order_payload(order, "u1")

    assert payload["customer"] == "c1"
    assert payload["customerCompany"] == "co1"
    assert payload["items"][0]["product"] == "p1"
    assert payload["items"][0]["disabledStages"] == ["CUTTING"]
    assert [a["stage"] for a in payload["items"][0]["assignments"]] == ["GRAPHICS", "PRINTING", "FINISHING", "PACKING"]
    assert payload["items"][1]["product"] == "p2"
    assert payload["items"][1]["assignments"] == []
    assert "disabledStages" not in payload["items"][1]


def test_order_payload_requires_items():
    order = Order.model_validate(make_order(items=[]))
    with pytest.raises(OrderValidationError, match="at least one product"):
        build_order_payload(order, "u1")


def test_order_payload_requires_customer():
    order = Order.model_validate(make_order(customer=None))
    with pytest.raises(OrderValidationError, match="client"):
        build_order_payload(order, "u1")
