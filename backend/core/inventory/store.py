"""
In-memory store for the inventory engine.

``db.store.SqlStore`` implements the same methods on top of a SQLAlchemy
session. Both hand out copies, so callers must write changes back through the
``update_*`` methods.
"""

import copy
import dataclasses
from contextlib import contextmanager
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from .models import (
    Category,
    InventoryCategory,
    InventoryItem,
    ItemPortionPrice,
    MenuItem,
    PortionOption,
    StockMovement,
)

_MISSING = object()


class MemoryStore:
    def __init__(self):
        self.categories: Dict[str, Category] = {}
        self.menu_items: Dict[str, MenuItem] = {}
        self.inventory_categories: Dict[str, InventoryCategory] = {}
        self.portions: Dict[str, PortionOption] = {}
        self.inventory_items: Dict[str, InventoryItem] = {}
        self.prices: Dict[Tuple[str, str], ItemPortionPrice] = {}
        self.movements: Dict[str, StockMovement] = {}
        # (table, key, previous value) for every write in the open transaction
        self._undo: Optional[list] = None

    @contextmanager
    def transaction(self):
        if self._undo is not None:
            # nested block: the outermost transaction owns the rollback
            yield self
            return
        self._undo = []
        try:
            yield self
        except BaseException:
            for table, key, previous in reversed(self._undo):
                if previous is _MISSING:
                    table.pop(key, None)
                else:
                    table[key] = previous
            raise
        finally:
            self._undo = None

    # Stored rows are never mutated in place, so the undo log can keep
    # references instead of copies.

    def _remember(self, table: dict, key) -> None:
        if self._undo is not None:
            self._undo.append((table, key, table.get(key, _MISSING)))

    def _put(self, table: dict, key, value) -> None:
        self._remember(table, key)
        table[key] = copy.copy(value)

    def _pop(self, table: dict, key) -> None:
        if key in table:
            self._remember(table, key)
            del table[key]

    # categories / menu items

    def add_category(self, category: Category) -> Category:
        self._put(self.categories, category.id, category)
        return category

    def get_category(self, category_id: str) -> Optional[Category]:
        c = self.categories.get(category_id)
        return copy.copy(c) if c else None

    def get_category_by_name(self, name: str) -> Optional[Category]:
        wanted = name.strip().lower()
        for c in self.categories.values():
            if c.name.strip().lower() == wanted:
                return copy.copy(c)
        return None

    def list_categories(self) -> List[Category]:
        return sorted((copy.copy(c) for c in self.categories.values()), key=lambda c: c.sort_order)

    def add_menu_item(self, item: MenuItem) -> MenuItem:
        self._put(self.menu_items, item.id, item)
        return item

    def get_menu_item(self, menu_item_id: str) -> Optional[MenuItem]:
        m = self.menu_items.get(menu_item_id)
        return copy.copy(m) if m else None

    def list_menu_items(self, category_id: Optional[str] = None) -> List[MenuItem]:
        return [
            copy.copy(m) for m in self.menu_items.values()
            if category_id is None or m.category_id == category_id
        ]

    def update_menu_item(self, item: MenuItem) -> None:
        self._put(self.menu_items, item.id, item)

    def delete_menu_item(self, menu_item_id: str) -> None:
        self._pop(self.menu_items, menu_item_id)

    # inventory categories / portions

    def add_inventory_category(self, inv_cat: InventoryCategory) -> InventoryCategory:
        self._put(self.inventory_categories, inv_cat.id, inv_cat)
        return inv_cat

    def get_inventory_category(self, category_id: str) -> Optional[InventoryCategory]:
        for ic in self.inventory_categories.values():
            if ic.category_id == category_id:
                return copy.copy(ic)
        return None

    def get_inventory_category_by_id(self, inventory_category_id: str) -> Optional[InventoryCategory]:
        ic = self.inventory_categories.get(inventory_category_id)
        return copy.copy(ic) if ic else None

    def list_inventory_categories(self) -> List[InventoryCategory]:
        return [copy.copy(ic) for ic in self.inventory_categories.values()]

    def update_inventory_category(self, inv_cat: InventoryCategory) -> None:
        self._put(self.inventory_categories, inv_cat.id, inv_cat)

    def delete_inventory_category(self, inventory_category_id: str) -> None:
        self._pop(self.inventory_categories, inventory_category_id)

    def add_portion(self, portion: PortionOption) -> PortionOption:
        self._put(self.portions, portion.id, portion)
        return portion

    def get_portion(self, portion_option_id: str) -> Optional[PortionOption]:
        p = self.portions.get(portion_option_id)
        return copy.copy(p) if p else None

    def list_portions(self, inventory_category_id: str) -> List[PortionOption]:
        return [
            copy.copy(p) for p in self.portions.values()
            if p.inventory_category_id == inventory_category_id
        ]

    def update_portion(self, portion: PortionOption) -> None:
        self._put(self.portions, portion.id, portion)

    def delete_portion(self, portion_option_id: str) -> None:
        self._pop(self.portions, portion_option_id)

    # inventory items / stock

    def add_inventory_item(self, item: InventoryItem) -> InventoryItem:
        self._put(self.inventory_items, item.id, item)
        return item

    def get_inventory_item(self, menu_item_id: str, for_update: bool = False) -> Optional[InventoryItem]:
        for it in self.inventory_items.values():
            if it.menu_item_id == menu_item_id:
                return copy.copy(it)
        return None

    def list_inventory_items(self) -> List[InventoryItem]:
        return [copy.copy(it) for it in self.inventory_items.values()]

    def update_inventory_item(self, item: InventoryItem) -> None:
        current = self.inventory_items.get(item.id)
        # current_stock only moves through apply_stock_delta
        if current is not None:
            item = dataclasses.replace(item, current_stock=current.current_stock)
        self._put(self.inventory_items, item.id, item)

    def delete_inventory_item(self, inventory_item_id: str) -> None:
        self._pop(self.inventory_items, inventory_item_id)

    def apply_stock_delta(self, inventory_item_id: str, delta: Decimal) -> Decimal:
        it = self.inventory_items[inventory_item_id]
        updated = dataclasses.replace(it, current_stock=it.current_stock + delta)
        self._put(self.inventory_items, inventory_item_id, updated)
        return updated.current_stock

    def add_movement(self, movement: StockMovement) -> StockMovement:
        self._put(self.movements, movement.id, movement)
        return movement

    def list_movements(self, inventory_item_id: str) -> List[StockMovement]:
        return [copy.copy(m) for m in self.movements.values() if m.inventory_item_id == inventory_item_id]

    def delete_movements(self, inventory_item_id: str) -> None:
        for mid in [m.id for m in self.movements.values() if m.inventory_item_id == inventory_item_id]:
            self._pop(self.movements, mid)

    # per-item portion prices

    def get_item_portion_price(self, menu_item_id: str, portion_option_id: str) -> Optional[ItemPortionPrice]:
        p = self.prices.get((menu_item_id, portion_option_id))
        return copy.copy(p) if p else None

    def set_item_portion_price(self, price: ItemPortionPrice) -> None:
        self._put(self.prices, (price.menu_item_id, price.portion_option_id), price)

    def delete_item_portion_price(self, menu_item_id: str, portion_option_id: str) -> None:
        self._pop(self.prices, (menu_item_id, portion_option_id))

    def delete_prices_for_portion(self, portion_option_id: str) -> None:
        for key in [k for k in self.prices if k[1] == portion_option_id]:
            self._pop(self.prices, key)

    def delete_prices_for_menu_item(self, menu_item_id: str) -> None:
        for key in [k for k in self.prices if k[0] == menu_item_id]:
            self._pop(self.prices, key)
