# printshop/services/task_aggregator.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from printshop.core.config import settings
from printshop.models.stage import BOARD_STAGES, PRIORITY_RANK, Priority, Stage
from printshop.schemas.order import Assignment, EmbeddedRef, Order, OrderItem
from printshop.schemas.task import ALL_USERS, NOT_ASSIGNED, Task, TaskSummary, Viewer


DUE_FILTERS = ("all", "overdue", "due_soon")
PRIORITY_FILTERS = ("all", "urgent", "high")


def current_assignment(item: OrderItem) -> Assignment | None:
    """Assignment of the stage the item is currently in, if any."""
    for a in item.assignments:
        if a.stage == item.item_status:
            return a
    return None


def is_unassigned(item: OrderItem) -> bool:
    # no assignment for the current stage => anyone may pick it up
    return current_assignment(item) is None


def client_name(order: Order) -> str:
    customer = order.customer
    if isinstance(customer, EmbeddedRef):
        first = (customer.data.get("firstName") or "").strip()
        last = (customer.data.get("lastName") or "").strip()
        full = f"{first} {last}".strip()
        if full:
            return full

    company = order.customer_company
    if isinstance(company, EmbeddedRef):
        name = (company.data.get("name") or "").strip()
        if name:
            return name

    return ""


def _make_task(
    order: Order,
    item: OrderItem,
    *,
    assignment: Assignment | None,
    assigned_to: str,
    unassigned: bool,
) -> Task:
    return Task(
        order_id=order.id or "",
        item_id=item.id,
        assignment_id=assignment.id if assignment is not None else None,
        order_number=order.order_number,
        product_name=item.product_name_snapshot,
        quantity=item.quantity,
        client=client_name(order),
        due_date=order.due_date,
        current_stage=item.item_status,
        priority=order.priority,
        assigned_to=assigned_to,
        is_unassigned=unassigned,
    )


def aggregate_tasks(orders: Iterable[Order], viewer: Viewer) -> list[Task]:
    """Flatten orders into dashboard tasks visible to `viewer`.

    Admins get one task per item. Everybody else gets the items whose current
    stage is assigned to them plus the items nobody holds for that stage.
    """
    tasks: list[Task] = []

    for order in orders:
        for item in order.items:
            a = current_assignment(item)

            if viewer.is_admin:
                tasks.append(_make_task(order, item, assignment=a, assigned_to=ALL_USERS, unassigned=False))
                continue

            if a is None:
                tasks.append(_make_task(order, item, assignment=None, assigned_to=NOT_ASSIGNED, unassigned=True))
                continue

            if a.assigned_to_id != viewer.id:
                continue

            tasks.append(_make_task(order, item, assignment=a, assigned_to=viewer.id, unassigned=False))

    return tasks


# ---------------------------------------------------------------------------
# Board helpers
# ---------------------------------------------------------------------------


def group_by_stage(tasks: Iterable[Task]) -> dict[Stage, list[Task]]:
    """Board columns in catalog order. Tasks outside the board stages are left out."""
    columns: dict[Stage, list[Task]] = {s: [] for s in BOARD_STAGES}
    for t in tasks:
        if t.current_stage in columns:
            columns[t.current_stage].append(t)
    return columns


def _is_overdue(t: Task, today: date) -> bool:
    return t.due_date is not None and t.due_date < today


def _is_due_soon(t: Task, today: date, days: int) -> bool:
    if t.due_date is None or _is_overdue(t, today):
        return False
    return t.due_date <= today + timedelta(days=days)


def filter_tasks(
    tasks: Iterable[Task],
    *,
    due: str = "all",
    priority: str = "all",
    today: date | None = None,
    due_soon_days: int | None = None,
) -> list[Task]:
    if due not in DUE_FILTERS:
        raise ValueError(f"Unknown due filter: '{due}'. Allowed: {', '.join(DUE_FILTERS)}")
    if priority not in PRIORITY_FILTERS:
        raise ValueError(f"Unknown priority filter: '{priority}'. Allowed: {', '.join(PRIORITY_FILTERS)}")

    today = today or date.today()
    days = settings.due_soon_days if due_soon_days is None else due_soon_days

    out: list[Task] = []
    for t in tasks:
        if due == "overdue" and not _is_overdue(t, today):
            continue
        if due == "due_soon" and not _is_due_soon(t, today, days):
            continue
        if priority == "urgent" and t.priority is not Priority.URGENT:
            continue
        if priority == "high" and t.priority is not Priority.HIGH:
            continue
        out.append(t)
    return out


def sort_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Most urgent first, then earliest due date; undated tasks last."""
    return sorted(
        tasks,
        key=lambda t: (
            PRIORITY_RANK[t.priority],
            t.due_date is None,
            t.due_date or date.max,
        ),
    )


def summarize(tasks: Iterable[Task], today: date | None = None) -> TaskSummary:
    today = today or date.today()
    tasks = list(tasks)
    return TaskSummary(
        total=len(tasks),
        overdue=sum(1 for t in tasks if _is_overdue(t, today) and t.current_stage not in (Stage.DONE, Stage.CANCELLED)),
        urgent=sum(1 for t in tasks if t.priority in (Priority.URGENT, Priority.HIGH)),
        unassigned=sum(1 for t in tasks if t.is_unassigned),
        done=sum(1 for t in tasks if t.current_stage is Stage.DONE),
    )
