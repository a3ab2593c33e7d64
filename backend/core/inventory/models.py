"""
Plain data objects the inventory engine works on.

Stores (in-memory or SQL) hand these out and take them back; the engine never
touches ORM rows directly.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from .units import UnitType


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Category:
    name: str
    sort_order: int = 0
    id: str = field(default_factory=new_id)


@dataclass
class MenuItem:
    name: str
    category_id: str
    price: Decimal
    available: bool = True
    # Portion the base price is quoted at; None means the cheapest portion.
    price_portion_id: Optional[str] = None
    id: str = field(default_factory=new_id)


@dataclass
class InventoryCategory:
    category_id: str
    unit_type: UnitType
    low_stock_threshold: Decimal
    id: str = field(default_factory=new_id)


@dataclass
class PortionOption:
    inventory_category_id: str
    name: str
    size: Decimal
    price_multiplier: Decimal
    sort_order: int = 0
    fixed_price: Optional[Decimal] = None
    id: str = field(default_factory=new_id)


@dataclass
class InventoryItem:
    menu_item_id: str
    unit: UnitType
    current_stock: Decimal = Decimal("0")
    low_stock_threshold: Optional[Decimal] = None
    default_bottle_size: Optional[Decimal] = None
    id: str = field(default_factory=new_id)


@dataclass
class ItemPortionPrice:
    menu_item_id: str
    portion_option_id: str
    price: Decimal


@dataclass
class StockMovement:
    inventory_item_id: str
    change: Decimal
    unit: UnitType
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class UpdatedStock:
    inventory_item_id: str
    menu_item_id: str
    current_stock: Decimal
    unit: UnitType
    movement_id: str
    is_low_stock: bool
    is_negative: bool


@dataclass(frozen=True)
class LowStockEntry:
    menu_item_name: str
    current_stock: Decimal
    unit: UnitType
    inventory_item_id: str
    threshold: Decimal


@dataclass(frozen=True)
class PortionPrice:
    portion_option_id: str
    name: str
    size: Decimal
    price_multiplier: Decimal
    price: Decimal
    # 'override' | 'fixed' | 'computed'
    source: str
