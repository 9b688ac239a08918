from __future__ import annotations
import math
from datetime import datetime, timezone
from typing import Any, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationInfo, field_validator

# Records are stored and served with camelCase keys; attributes stay snake_case.

Number = Union[int, float]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_finite_number(value: Any) -> bool:
    return is_number(value) and math.isfinite(value)


def coerce_quantity(value: Any) -> Optional[int]:
    """Return a positive whole quantity, or None when the value can't be one.

    Numeric strings are accepted; booleans, fractions and non-finite values are not.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        try:
            value = int(text)
        except ValueError:
            try:
                value = float(text)
            except ValueError:
                return None
    if not is_number(value):
        return None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        value = int(value)
    return value if value > 0 else None


class ProductDraft(BaseModel):
    """Body of a product creation request. Empty optional fields take their defaults."""

    model_config = ConfigDict(populate_by_name=True)

    name: StrictStr = Field(min_length=1)
    price: float = Field(strict=True, ge=0, allow_inf_nan=False)
    unit: str = "unit"
    stock: Number = 100
    image_url: str = Field(default="", alias="imageUrl")
    description: str = ""
    category: str = "General"

    @field_validator("unit", "image_url", "description", "category", mode="before")
    @classmethod
    def _empty_is_default(cls, value: Any, info: ValidationInfo) -> Any:
        if not value:
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("stock", mode="before")
    @classmethod
    def _stock_default(cls, value: Any) -> Any:
        return value if is_finite_number(value) else 100


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = Field(min_length=1)
    price: float = Field(ge=0, allow_inf_nan=False)
    unit: str = "unit"
    stock: Number = 100
    image_url: str = Field(default="", alias="imageUrl")
    description: str = ""
    category: str = "General"
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")


class OrderItemRequest(BaseModel):
    """One requested cart line, as sent by the browser."""

    model_config = ConfigDict(populate_by_name=True)

    product_id: StrictStr = Field(alias="productId")
    quantity: int = Field(ge=1)

    @field_validator("quantity", mode="before")
    @classmethod
    def _whole_quantity(cls, value: Any) -> Optional[int]:
        return coerce_quantity(value)


class OrderLineItem(BaseModel):
    """Price and name are copied from the catalog when the order is placed."""

    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    name: str
    price: float
    quantity: int = Field(ge=1)
    line_total: Number = Field(alias="lineTotal")


class Order(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    items: list[OrderLineItem] = Field(min_length=1)
    total: Number
    customer: Any = Field(default_factory=dict)
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")
    status: Literal["received"] = "received"


class RejectedLine(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    index: int
    product_id: Optional[Any] = Field(default=None, alias="productId")
    quantity: Optional[Any] = None
    reason: str


class OrderSubmission(BaseModel):
    order: Order
    rejected: list[RejectedLine] = Field(default_factory=list)
