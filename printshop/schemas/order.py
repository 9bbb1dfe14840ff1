# printshop/schemas/order.py
"""Order shapes exchanged with the external Orders API.

Field names on the wire are camelCase with Mongo-style `_id`; Python code uses
snake_case. Unknown upstream fields are kept (extra="allow") so that a full
order read from the API can be PUT back without losing data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Annotated, Any, Optional, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    ValidationInfo,
    WithJsonSchema,
    field_validator,
)
from pydantic.alias_generators import to_camel

from printshop.models.stage import (
    OrderStatus,
    Priority,
    ReceivedThrough,
    Stage,
    WORK_STAGES,
    STAGES,
)


# ============================================================================
# Polymorphic references (bare identifier | embedded document)
# ============================================================================


@dataclass(frozen=True)
class IdRef:
    """Reference sent as a bare identifier string."""

    id: str

    def resolve_id(self) -> str:
        return self.id


@dataclass(frozen=True)
class EmbeddedRef:
    """Reference sent as a populated document (`{"_id": ..., ...}`)."""

    id: str
    data: dict[str, Any] = field(default_factory=dict, compare=False)

    def resolve_id(self) -> str:
        return self.id


Reference = Union[IdRef, EmbeddedRef]


def as_ref(value: Any) -> Reference | None:
    if value is None:
        return None
    if isinstance(value, (IdRef, EmbeddedRef)):
        return value
    if isinstance(value, dict):
        ref_id = value.get("_id") or value.get("id")
        if ref_id is None:
            raise ValueError("Embedded reference has no '_id'")
        return EmbeddedRef(id=str(ref_id), data=dict(value))
    if isinstance(value, str):
        return IdRef(id=value)
    raise ValueError(f"Unsupported reference value: {value!r}")


def resolve_id(value: Any) -> str | None:
    """Identifier of a reference, whatever shape it arrived in."""
    ref = as_ref(value)
    return ref.resolve_id() if ref is not None else None


def _dump_ref(ref: Reference | None) -> Any:
    if ref is None:
        return None
    if isinstance(ref, EmbeddedRef):
        return dict(ref.data)
    return ref.id


Ref = Annotated[
    Optional[Reference],
    PlainValidator(as_ref),
    PlainSerializer(_dump_ref),
    WithJsonSchema({"anyOf": [{"type": "string"}, {"type": "object"}, {"type": "null"}]}),
]


def _none_as_empty_list(value: Any) -> Any:
    return [] if value is None else value


def _default_if_blank(default: Any):
    # upstream sends null or "" for fields the UI treats as "use the default"
    def _coalesce(value: Any) -> Any:
        return default if value is None or value == "" else value

    return _coalesce


# Validation context for documents read back from the Orders API: tolerate
# what the form would reject instead of failing the whole read.
UPSTREAM_READ = {"upstream": True}


def is_upstream_read(info: ValidationInfo) -> bool:
    return bool(info.context and info.context.get("upstream"))


def _date_only(value: Any) -> Any:
    # upstream sends either "2024-12-15", a full ISO timestamp or ""
    if value == "":
        return None
    if isinstance(value, str) and len(value) > 10:
        return value[:10]
    return value


# ============================================================================
# Models
# ============================================================================


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Assignment(ApiModel):
    id: str | None = Field(default=None, alias="_id")
    stage: Stage
    assigned_to: Ref = None
    stage_notes: str | None = None
    is_active: bool | None = None

    @property
    def assigned_to_id(self) -> str | None:
        return resolve_id(self.assigned_to)


class OrderItem(ApiModel):
    id: str | None = Field(default=None, alias="_id")
    product: Ref = None
    product_name_snapshot: str = ""
    description_snapshot: str | None = None
    price_snapshot: float | None = None
    quantity: int = Field(default=1, ge=1)

    item_status: Annotated[Stage, BeforeValidator(_default_if_blank(Stage.TO_DO))] = Stage.TO_DO
    disabled_stages: Annotated[list[Stage], BeforeValidator(_none_as_empty_list)] = Field(default_factory=list)
    assignments: Annotated[list[Assignment], BeforeValidator(_none_as_empty_list)] = Field(default_factory=list)

    attachments: Annotated[list[str], BeforeValidator(_none_as_empty_list)] = Field(default_factory=list)
    text_to_print: str | None = None
    editable_file_path: str | None = None
    printing_file_path: str | None = None

    @field_validator("disabled_stages")
    @classmethod
    def validate_disabled_stages(cls, value: list[Stage], info: ValidationInfo) -> list[Stage]:
        control = [s.value for s in value if s not in WORK_STAGES]
        if control and not is_upstream_read(info):
            raise ValueError(f"Control stages cannot be disabled: {', '.join(control)}")
        # upstream reads drop control stages; dedupe, catalog order
        present = set(value) & WORK_STAGES
        return [s for s in STAGES if s in present]

    @property
    def product_id(self) -> str | None:
        return resolve_id(self.product)


class Order(ApiModel):
    id: str | None = Field(default=None, alias="_id")
    order_number: str | None = None
    due_date: Annotated[date | None, BeforeValidator(_date_only)] = None
    priority: Annotated[Priority, BeforeValidator(_default_if_blank(Priority.NORMAL))] = Priority.NORMAL
    status: Annotated[OrderStatus, BeforeValidator(_default_if_blank(OrderStatus.TO_DO))] = OrderStatus.TO_DO
    received_through: Annotated[ReceivedThrough | None, BeforeValidator(_default_if_blank(None))] = None
    description: str | None = None

    customer: Ref = None
    customer_company: Ref = None

    items: Annotated[list[OrderItem], BeforeValidator(_none_as_empty_list)] = Field(default_factory=list)

    def find_item(self, item_id: str) -> OrderItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


class OrderPage(BaseModel):
    """One page of GET /orders."""

    orders: list[Order]
    total: int | None = None
    page: int = 1
    limit: int | None = None
    # documents in the response, malformed ones included
    received: int = 0
