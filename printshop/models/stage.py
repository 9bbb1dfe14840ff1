# printshop/models/stage.py
from __future__ import annotations

import enum


class Stage(str, enum.Enum):
    """Production stage of an order item.

    Member order IS the catalog order: every list of stages produced by the
    workflow code keeps this order.
    """

    TO_DO = "TO_DO"
    GRAPHICS = "GRAPHICS"
    PRINTING = "PRINTING"
    CUTTING = "CUTTING"
    FINISHING = "FINISHING"
    PACKING = "PACKING"
    DONE = "DONE"
    STANDBY = "STANDBY"
    CANCELLED = "CANCELLED"


class Priority(str, enum.Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class OrderStatus(str, enum.Enum):
    """Order-level status. Independent from the per-item stage."""

    TO_DO = "TO_DO"
    READY_TO_BE_TAKEN = "READY_TO_BE_TAKEN"
    IN_EXECUTION = "IN_EXECUTION"
    IN_PAUSE = "IN_PAUSE"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


class ReceivedThrough(str, enum.Enum):
    FACEBOOK = "FACEBOOK"
    WHATSAPP = "WHATSAPP"
    PHONE = "PHONE"
    IN_PERSON = "IN_PERSON"
    EMAIL = "EMAIL"


STAGES: tuple[Stage, ...] = tuple(Stage)

CONTROL_STAGES = frozenset({
    Stage.TO_DO,
    Stage.DONE,
    Stage.STANDBY,
    Stage.CANCELLED,
})

# stages that represent actual production work and may need an assignee
WORK_STAGES = frozenset(s for s in STAGES if s not in CONTROL_STAGES)

# dashboard task board columns
BOARD_STAGES: tuple[Stage, ...] = (
    Stage.TO_DO,
    Stage.GRAPHICS,
    Stage.PRINTING,
    Stage.CUTTING,
    Stage.FINISHING,
    Stage.PACKING,
)

# lower rank sorts first on the dashboard
PRIORITY_RANK: dict[Priority, int] = {
    Priority.URGENT: 0,
    Priority.HIGH: 1,
    Priority.NORMAL: 2,
    Priority.LOW: 3,
}


def parse_stage(raw: Stage | str) -> Stage:
    if isinstance(raw, Stage):
        return raw
    value = str(raw).strip()
    try:
        return Stage(value)
    except ValueError:
        allowed = ", ".join(s.value for s in STAGES)
        raise ValueError(f"Unknown stage: '{value}'. Allowed stages: {allowed}")


def is_work_stage(stage: Stage | str) -> bool:
    return parse_stage(stage) in WORK_STAGES


def stage_label(stage: Stage | str) -> str:
    """Human readable label: TO_DO -> "To do", GRAPHICS -> "Graphics"."""
    value = parse_stage(stage).value
    return value[0] + value[1:].lower().replace("_", " ")
