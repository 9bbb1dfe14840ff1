# printshop/schemas/task.py

from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from printshop.models.stage import Priority, Stage


ALL_USERS = "All Users"
NOT_ASSIGNED = "Not assigned to anyone"


@dataclass(frozen=True)
class Viewer:
    """Who is looking at the dashboard."""

    id: str
    is_admin: bool = False


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(CamelModel):
    """Dashboard row: one order item in its current stage. Derived, never stored."""

    order_id: str
    item_id: str | None = None
    assignment_id: str | None = None
    order_number: str | None = None
    product_name: str
    quantity: int
    client: str
    due_date: date | None = None
    current_stage: Stage
    priority: Priority
    assigned_to: str
    is_unassigned: bool


class TaskSummary(CamelModel):
    total: int
    overdue: int
    urgent: int
    unassigned: int
    done: int


class DashboardTasks(CamelModel):
    tasks: list[Task]
    summary: TaskSummary


class BoardColumn(CamelModel):
    stage: Stage
    label: str
    tasks: list[Task]


class DashboardBoard(CamelModel):
    columns: list[BoardColumn]
