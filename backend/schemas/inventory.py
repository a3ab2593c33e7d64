import math
from typing import Optional, Union

from pydantic import BaseModel, field_validator


def _strip_nullable(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


def _number_or_none(v, field: str) -> Optional[float]:
    """Form inputs arrive as text; blank means 'not entered'."""
    if v is None:
        return None
    if isinstance(v, bool):
        raise ValueError(f"{field} must be a number")
    if isinstance(v, str):
        v = v.strip()
        if not v:
            return None
    try:
        v = float(v)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a number")
    if not math.isfinite(v):
        raise ValueError(f"{field} must be a finite number")
    return v


class TrackingCreate(BaseModel):
    category_id: str
    unit_type: str
    low_stock_threshold: float = 5

    @field_validator("category_id", "unit_type")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v


class CategoryThresholdUpdate(BaseModel):
    low_stock_threshold: float


class ItemThresholdUpdate(BaseModel):
    # null: follow the category threshold
    low_stock_threshold: Optional[float] = None


class PortionCreate(BaseModel):
    name: str
    size: float
    price_multiplier: float
    sort_order: Optional[int] = None
    fixed_price: Optional[float] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v


class PortionUpdate(BaseModel):
    name: Optional[str] = None
    size: Optional[float] = None
    price_multiplier: Optional[float] = None
    sort_order: Optional[int] = None

    @field_validator("name")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v


class FixedPriceUpdate(BaseModel):
    fixed_price: Optional[float] = None


class ItemPortionPriceSet(BaseModel):
    price: Union[float, str]

    @field_validator("price")
    @classmethod
    def _price(cls, v) -> float:
        out = _number_or_none(v, "price")
        if out is None:
            raise ValueError("price is required")
        if out < 0:
            raise ValueError("price cannot be negative")
        return out


class StockEntryCreate(BaseModel):
    """The "Add Stock" form. Bottle fields win over the direct quantity."""

    menu_item_id: str
    bottle_count: Optional[Union[float, str]] = None
    # one of the common sizes ("750"), "custom", or blank for the item default
    bottle_size: Optional[str] = None
    custom_bottle_size: Optional[Union[float, str]] = None
    quantity: Optional[Union[float, str]] = None
    notes: Optional[str] = None

    @field_validator("bottle_count", "custom_bottle_size", "quantity")
    @classmethod
    def _numeric_text(cls, v, info):
        return _number_or_none(v, info.field_name)

    @field_validator("bottle_size", mode="before")
    @classmethod
    def _bottle_size(cls, v):
        if v is None:
            return None
        v = str(v).strip().lower()
        if not v:
            return None
        if v != "custom":
            _number_or_none(v, "bottle_size")
        return v

    @field_validator("notes")
    @classmethod
    def _strip_notes(cls, v: Optional[str]) -> Optional[str]:
        return _strip_nullable(v)


class StockAdjustmentCreate(BaseModel):
    """Signed correction (spoilage, recount); no lower bound is enforced on the resulting stock."""

    menu_item_id: str
    quantity: float
    unit: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("quantity must be a finite number")
        return v

    @field_validator("unit", "notes")
    @classmethod
    def _strip(cls, v: Optional[str]) -> Optional[str]:
        return _strip_nullable(v)


class DefaultBottleSizeUpdate(BaseModel):
    default_bottle_size: float
