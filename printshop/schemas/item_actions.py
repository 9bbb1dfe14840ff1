# printshop/schemas/item_actions.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from printshop.models.stage import Stage


class StrictBaseModel(BaseModel):
    """Request models: unknown keys are rejected with 422."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class StatusUpdateRequest(StrictBaseModel):
    item_status: Stage = Field(
        ...,
        description="Target stage of the item",
        examples=["PRINTING"],
    )
    assignment_id: str | None = Field(
        None,
        description="Assignment the dashboard row was built from (informational)",
    )


class StatusUpdateResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_id: str
    item_id: str
    item_status: Stage


class SelfAssignRequest(StrictBaseModel):
    stage: Stage = Field(
        ...,
        description="Stage to claim. Usually the item's current stage.",
        examples=["GRAPHICS"],
    )


class SelfAssignResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_id: str
    item_id: str
    stage: Stage
    assigned_to: str


class StageRead(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    stage: Stage
    label: str
    is_work_stage: bool
