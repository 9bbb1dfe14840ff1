# printshop/core/rbac.py
from __future__ import annotations

from typing import Mapping, Set


class Forbidden(Exception):
    """Raised when actor role is not allowed for an operation."""
    pass


ADMIN = "ADMIN"
EMPLOYEE = "EMPLOYEE"

ROLES = {ADMIN, EMPLOYEE}


ALLOW: Mapping[str, Set[str]] = {
    # ---- Dashboard ----
    "dashboard.view": {ADMIN, EMPLOYEE},

    # ---- Order items ----
    "item.update_status": {ADMIN, EMPLOYEE},
    "item.self_assign": {ADMIN, EMPLOYEE},

    # ---- Orders (create / edit form) ----
    "order.create": {ADMIN, EMPLOYEE},
    "order.update": {ADMIN},
}


def normalize_role(role: str | None) -> str:
    return (role or "").strip().upper()


def is_admin(role: str | None) -> bool:
    return normalize_role(role) == ADMIN


def ensure_allowed(permission: str, role: str) -> None:
    allowed = ALLOW.get(permission, set())
    if normalize_role(role) not in allowed:
        raise Forbidden(f"Role '{role}' is not allowed for '{permission}'")
