# printshop/services/orders_client.py
from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from printshop.core.config import settings
from printshop.schemas.order import UPSTREAM_READ, Order, OrderPage

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
DEFAULT_ERROR_MESSAGE = "An error occurred"

# GET /orders answers with one of these envelopes
LIST_ENVELOPE_KEYS = ("data", "orders", "items")


class ApiError(Exception):
    """Upstream call failed: transport error (status 0) or non-2xx response."""

    def __init__(self, message: str, status: int = 0, data: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data

    @classmethod
    def from_response(cls, resp: httpx.Response) -> "ApiError":
        try:
            data = resp.json()
        except ValueError:
            data = None

        message = None
        if isinstance(data, dict):
            message = data.get("message") or data.get("error")
        return cls(message or DEFAULT_ERROR_MESSAGE, status=resp.status_code, data=data)


def _unwrap_list(body: Any) -> list[dict]:
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        for key in LIST_ENVELOPE_KEYS:
            if isinstance(body.get(key), list):
                return body[key]
    raise ApiError("Unexpected orders list response shape", status=502, data=body)


def _unwrap_one(body: Any) -> dict:
    # single-document endpoints answer either the order itself or {"data": order}
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    if isinstance(body, dict):
        return body
    raise ApiError("Unexpected order response shape", status=502, data=body)


def _parse_order(data: Any) -> Order:
    try:
        return Order.model_validate(data, context=UPSTREAM_READ)
    except ValidationError as e:
        order_id = data.get("_id") if isinstance(data, dict) else None
        logger.warning("Malformed order %s from upstream: %s", order_id, e)
        raise ApiError("Upstream returned a malformed order", status=502, data=data) from e


class OrdersClient:
    """Adapter over the external Orders API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        token: str | None = None,
        page_size: int | None = None,
        max_pages: int | None = None,
    ):
        self.http = http
        self.token = token
        self.page_size = page_size or settings.orders_page_size
        self.max_pages = max_pages or settings.orders_max_pages

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            resp = await self.http.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise ApiError(NETWORK_ERROR_MESSAGE, status=0) from e

        if resp.is_error:
            err = ApiError.from_response(resp)
            logger.warning("%s %s -> %s: %s", method, url, err.status, err.message)
            raise err

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError("Upstream returned a non-JSON body", status=502) from e

    # ------------------------------------------------------------------
    # orders
    # ------------------------------------------------------------------

    async def list_orders(
        self,
        *,
        page: int = 1,
        limit: int | None = None,
        sort_by: str = "createdAt",
        order: str = "desc",
    ) -> OrderPage:
        limit = limit or self.page_size
        body = await self._request(
            "GET",
            "/orders",
            params={"page": page, "limit": limit, "sortBy": sort_by, "order": order},
        )
        total = body.get("total") if isinstance(body, dict) else None
        raw = _unwrap_list(body)

        # one malformed order must not hide the others
        orders: list[Order] = []
        for data in raw:
            try:
                orders.append(_parse_order(data))
            except ApiError:
                continue

        return OrderPage(
            orders=orders,
            total=total,
            page=page,
            limit=limit,
            received=len(raw),
        )

    async def iter_orders(
        self,
        *,
        page_size: int | None = None,
        max_pages: int | None = None,
    ) -> list[Order]:
        """All orders, page by page, up to `max_pages` requests."""
        page_size = page_size or self.page_size
        max_pages = max_pages or self.max_pages

        orders: list[Order] = []
        received = 0
        for page in range(1, max_pages + 1):
            chunk = await self.list_orders(page=page, limit=page_size)
            orders.extend(chunk.orders)
            received += chunk.received

            if chunk.received < page_size:
                break
            if chunk.total is not None and received >= chunk.total:
                break
        else:
            logger.warning("Stopped paging orders after %s pages (%s orders)", max_pages, len(orders))

        return orders

    async def get_order(self, order_id: str) -> Order:
        body = await self._request("GET", f"/orders/{order_id}")
        return _parse_order(_unwrap_one(body))

    async def create_order(self, payload: dict[str, Any]) -> Order:
        body = await self._request("POST", "/orders", json=payload)
        return _parse_order(_unwrap_one(body))

    async def replace_order(self, order_id: str, payload: dict[str, Any]) -> Any:
        return await self._request("PUT", f"/orders/{order_id}", json=payload)

    async def update_item_status(self, order_id: str, item_id: str, body: dict[str, Any]) -> Any:
        return await self._request("PATCH", f"/orders/{order_id}/items/{item_id}/status", json=body)
