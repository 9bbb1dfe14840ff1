# printshop/api/dashboard.py

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from printshop.api.deps import ActorContext, get_actor_context, get_orders_client
from printshop.api.errors import api_error_to_http
from printshop.core.rbac import Forbidden, ensure_allowed
from printshop.models.stage import stage_label
from printshop.schemas.task import BoardColumn, DashboardBoard, DashboardTasks, Task
from printshop.services.orders_client import ApiError, OrdersClient
from printshop.services.task_aggregator import (
    aggregate_tasks,
    filter_tasks,
    group_by_stage,
    sort_tasks,
    summarize,
)


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


async def _load_tasks(ctx: ActorContext, orders: OrdersClient) -> list[Task]:
    try:
        ensure_allowed("dashboard.view", ctx.role)
    except Forbidden as e:
        raise HTTPException(status_code=403, detail=str(e))

    try:
        fetched = await orders.iter_orders()
    except ApiError as e:
        raise api_error_to_http(e)

    return aggregate_tasks(fetched, ctx.viewer)


@router.get("/tasks", response_model=DashboardTasks)
async def list_my_tasks(
    due: str = Query("all", pattern="^(all|overdue|due_soon)$"),
    priority: str = Query("all", pattern="^(all|urgent|high)$"),
    ctx: ActorContext = Depends(get_actor_context),
    orders: OrdersClient = Depends(get_orders_client),
):
    """Tasks of the actor (admins: every item), filtered and most urgent first.

    The summary counts are computed before filtering.
    """
    tasks = await _load_tasks(ctx, orders)
    visible = sort_tasks(filter_tasks(tasks, due=due, priority=priority))
    return DashboardTasks(tasks=visible, summary=summarize(tasks))


@router.get("/board", response_model=DashboardBoard)
async def task_board(
    ctx: ActorContext = Depends(get_actor_context),
    orders: OrdersClient = Depends(get_orders_client),
):
    tasks = await _load_tasks(ctx, orders)
    columns = group_by_stage(sort_tasks(tasks))
    return DashboardBoard(
        columns=[
            BoardColumn(stage=stage, label=stage_label(stage), tasks=stage_tasks)
            for stage, stage_tasks in columns.items()
        ]
    )
