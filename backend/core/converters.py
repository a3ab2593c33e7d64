from decimal import Decimal
from typing import Optional

from core.inventory.models import (
    Category,
    InventoryCategory,
    InventoryItem,
    ItemPortionPrice,
    MenuItem,
    PortionOption,
    StockMovement,
)
from core.inventory.units import UnitType


def _dec(v) -> Optional[Decimal]:
    if v is None:
        return None
    return v if isinstance(v, Decimal) else Decimal(str(v))


def category_to_domain(row) -> Category:
    return Category(id=row.id, name=row.name, sort_order=row.sort_order or 0)


def menu_item_to_domain(row) -> MenuItem:
    return MenuItem(
        id=row.id,
        name=row.name,
        category_id=row.category_id,
        price=_dec(row.price),
        available=bool(row.available),
        price_portion_id=row.price_portion_id,
    )


def inventory_category_to_domain(row) -> InventoryCategory:
    return InventoryCategory(
        id=row.id,
        category_id=row.category_id,
        unit_type=UnitType.parse(row.unit_type),
        low_stock_threshold=_dec(row.low_stock_threshold),
    )


def portion_to_domain(row) -> PortionOption:
    return PortionOption(
        id=row.id,
        inventory_category_id=row.inventory_category_id,
        name=row.name,
        size=_dec(row.size),
        price_multiplier=_dec(row.price_multiplier),
        sort_order=row.sort_order or 0,
        fixed_price=_dec(row.fixed_price),
    )


def inventory_item_to_domain(row) -> InventoryItem:
    return InventoryItem(
        id=row.id,
        menu_item_id=row.menu_item_id,
        unit=UnitType.parse(row.unit),
        current_stock=_dec(row.current_stock) or Decimal("0"),
        low_stock_threshold=_dec(row.low_stock_threshold),
        default_bottle_size=_dec(row.default_bottle_size),
    )


def item_portion_price_to_domain(row) -> ItemPortionPrice:
    return ItemPortionPrice(
        menu_item_id=row.menu_item_id,
        portion_option_id=row.portion_option_id,
        price=_dec(row.price),
    )


def movement_to_domain(row) -> StockMovement:
    return StockMovement(
        id=row.id,
        inventory_item_id=row.inventory_item_id,
        change=_dec(row.change),
        unit=UnitType.parse(row.unit),
        notes=row.notes,
        created_at=row.created_at,
    )


def decimal_out(x: Optional[Decimal]):
    """JSON-friendly number: whole amounts as int (prices are whole currency units), else float."""
    if x is None:
        return None
    return int(x) if x == x.to_integral_value() else float(x)
