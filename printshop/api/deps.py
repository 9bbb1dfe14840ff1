# printshop/api/deps.py
from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator

import httpx
from fastapi import Depends, Header, HTTPException

from printshop.core.config import settings
from printshop.core.rbac import ROLES, is_admin, normalize_role
from printshop.schemas.task import Viewer
from printshop.services.inflight import InFlightRegistry
from printshop.services.orders_client import OrdersClient
from printshop.services.task_actions_service import TaskActionsService


# -----------------------------------------------------------------------------
# Actor headers
# -----------------------------------------------------------------------------


def get_current_user_id(
    x_actor_user_id: str | None = Header(
        default=None,
        alias="X-Actor-User-Id",
        description="Employee id of the user performing the request.",
        examples=["65f1c0d2a1b2c3d4e5f60718"],
    ),
) -> str:
    if not x_actor_user_id or not x_actor_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-Actor-User-Id header")
    return x_actor_user_id.strip()


def get_actor_role(
    x_role: str = Header(
        "EMPLOYEE",
        alias="X-Role",
        description="Console role of the user: ADMIN or EMPLOYEE.",
        examples=["ADMIN", "EMPLOYEE"],
    )
) -> str:
    role = normalize_role(x_role)
    if role not in ROLES:
        raise HTTPException(status_code=400, detail=f"Unknown role '{x_role.strip()}'")
    return role


def get_bearer_token(
    authorization: str | None = Header(
        default=None,
        alias="Authorization",
        description="Upstream access token, forwarded as is.",
    ),
) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


@dataclass(frozen=True)
class ActorContext:
    actor_user_id: str
    role: str

    @property
    def viewer(self) -> Viewer:
        return Viewer(id=self.actor_user_id, is_admin=is_admin(self.role))


def get_actor_context(
    actor_user_id: str = Depends(get_current_user_id),
    role: str = Depends(get_actor_role),
) -> ActorContext:
    return ActorContext(actor_user_id=actor_user_id, role=role)


# -----------------------------------------------------------------------------
# Upstream clients
# -----------------------------------------------------------------------------


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=settings.request_timeout,
    ) as client:
        yield client


def get_orders_client(
    http: httpx.AsyncClient = Depends(get_http_client),
    token: str | None = Depends(get_bearer_token),
) -> OrdersClient:
    return OrdersClient(http, token=token)


def get_task_actions(orders: OrdersClient = Depends(get_orders_client)) -> TaskActionsService:
    return TaskActionsService(orders)


_inflight = InFlightRegistry()


def get_inflight() -> InFlightRegistry:
    return _inflight
