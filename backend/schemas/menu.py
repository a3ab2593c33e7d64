from typing import Optional

from pydantic import BaseModel, field_validator


class CategoryCreate(BaseModel):
    name: str
    sort_order: int = 0
    id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v


class MenuItemCreate(BaseModel):
    name: str
    category_id: str
    price: float
    available: bool = True
    id: Optional[str] = None

    @field_validator("name", "category_id")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("price")
    @classmethod
    def _price(cls, v: float) -> float:
        if v < 0:
            raise ValueError("price cannot be negative")
        return v


class BasePricePortionUpdate(BaseModel):
    # null: the price is quoted at the cheapest portion
    portion_option_id: Optional[str] = None
