# printshop/services/inflight.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator


class AlreadyInFlight(Exception):
    """Same item is already being processed by another request."""
    pass


class InFlightRegistry:
    """Keys (order:item) with a mutation request in progress.

    Rejects, does not queue: a second "Assign to me" click while the first is
    still running gets AlreadyInFlight. Check-and-add has no await in between,
    so it is atomic on the event loop.
    """

    def __init__(self) -> None:
        self._keys: set[str] = set()

    def __contains__(self, key: str) -> bool:
        return key in self._keys

    @asynccontextmanager
    async def claim(self, key: str) -> AsyncIterator[str]:
        if key in self._keys:
            raise AlreadyInFlight(f"Request for '{key}' is already in progress")
        self._keys.add(key)
        try:
            yield key
        finally:
            self._keys.discard(key)


def item_key(order_id: str, item_id: str) -> str:
    return f"{order_id}:{item_id}"
