import logging
import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Dict, List, Optional

from .errors import ConfigurationError, NotFoundError, NotTrackedError, ValidationError
from .ledger import clean_notes, parse_quantity, resolve_stock_entry, validate_bottle_size
from .low_stock import FALLBACK_THRESHOLD, is_low, resolve_threshold, scan_low_stock
from .models import (
    Category,
    InventoryCategory,
    InventoryItem,
    ItemPortionPrice,
    LowStockEntry,
    MenuItem,
    PortionOption,
    PortionPrice,
    StockMovement,
    UpdatedStock,
)
from .numbers import to_decimal, to_optional_decimal
from .pricing import resolve_portion_price, sort_portions
from .units import UnitType, default_bottle_size_for, default_portions

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Inventory & tiered-portion pricing operations over one store.

    Every mutating call runs under a re-entrant ledger lock and inside a store
    transaction, so concurrent callers sharing a lock cannot interleave their
    read-modify-write of the same stock row. Pass the same ``lock`` to every
    service built over the same data.
    """

    def __init__(self, store, lock=None, default_threshold: Decimal = FALLBACK_THRESHOLD):
        self.store = store
        self._lock = lock if lock is not None else threading.RLock()
        self.default_threshold = Decimal(str(default_threshold))

    @contextmanager
    def _write(self):
        with self._lock:
            with self.store.transaction():
                yield

    # ------------------------------------------------------------------
    # lookups

    def _menu_item(self, menu_item_id: str) -> MenuItem:
        m = self.store.get_menu_item(menu_item_id)
        if not m:
            raise NotFoundError(f"Menu item {menu_item_id} not found")
        return m

    def _category(self, category_id: str) -> Category:
        c = self.store.get_category(category_id)
        if not c:
            raise NotFoundError(f"Category {category_id} not found")
        return c

    def _portion(self, portion_option_id: str) -> PortionOption:
        p = self.store.get_portion(portion_option_id)
        if not p:
            raise NotFoundError(f"Portion option {portion_option_id} not found")
        return p

    def _tracked_category(self, category_id: str) -> InventoryCategory:
        ic = self.store.get_inventory_category(category_id)
        if not ic:
            raise NotTrackedError(f"Category {category_id} is not tracked in inventory")
        return ic

    def _tracked_item(self, menu_item_id: str, for_update: bool = False) -> InventoryItem:
        it = self.store.get_inventory_item(menu_item_id, for_update=for_update)
        if not it:
            raise NotTrackedError("Item not tracked in inventory")
        return it

    def _category_threshold(self, menu_item_id: str) -> Optional[Decimal]:
        m = self.store.get_menu_item(menu_item_id)
        if not m:
            return None
        ic = self.store.get_inventory_category(m.category_id)
        return ic.low_stock_threshold if ic else None

    def threshold_for(self, item: InventoryItem) -> Decimal:
        with self._lock:
            category_threshold = self._category_threshold(item.menu_item_id)
        return resolve_threshold(item.low_stock_threshold, category_threshold, self.default_threshold)

    # ------------------------------------------------------------------
    # menu data (owned by the menu screens, mirrored here)

    def list_categories(self) -> List[Category]:
        with self._lock:
            return self.store.list_categories()

    def list_menu_items(self, category_id: Optional[str] = None) -> List[MenuItem]:
        with self._lock:
            return self.store.list_menu_items(category_id)

    def is_item_tracked(self, menu_item_id: str) -> bool:
        with self._lock:
            return self.store.get_inventory_item(menu_item_id) is not None

    def add_category(self, name: str, sort_order: int = 0, category_id: Optional[str] = None) -> Category:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required")
        category = Category(name=name, sort_order=sort_order)
        if category_id:
            category.id = category_id
        with self._write():
            if self.store.get_category(category.id):
                raise ValidationError(f"Category {category.id} already exists")
            if self.store.get_category_by_name(name):
                raise ValidationError(f"A category named {name!r} already exists")
            self.store.add_category(category)
        return category

    def add_menu_item(
        self,
        name: str,
        category_id: str,
        price,
        available: bool = True,
        menu_item_id: Optional[str] = None,
    ) -> MenuItem:
        """Add a menu item; items added to a tracked category get a zero-stock inventory row."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Menu item name is required")
        base_price = to_decimal(price, "price")
        if base_price < 0:
            raise ValidationError("price cannot be negative")

        item = MenuItem(name=name, category_id=category_id, price=base_price, available=available)
        if menu_item_id:
            item.id = menu_item_id

        with self._write():
            self._category(category_id)
            if self.store.get_menu_item(item.id):
                raise ValidationError(f"Menu item {item.id} already exists")
            self.store.add_menu_item(item)
            ic = self.store.get_inventory_category(category_id)
            if ic:
                self._seed_inventory_item(item, ic)
        return item

    def remove_menu_item(self, menu_item_id: str) -> None:
        with self._write():
            self._menu_item(menu_item_id)
            it = self.store.get_inventory_item(menu_item_id)
            if it:
                self.store.delete_movements(it.id)
                self.store.delete_inventory_item(it.id)
            self.store.delete_prices_for_menu_item(menu_item_id)
            self.store.delete_menu_item(menu_item_id)

    def set_base_price_portion(self, menu_item_id: str, portion_option_id: Optional[str]) -> MenuItem:
        """Declare which portion the item's stored base price is quoted at (None: the cheapest)."""
        with self._write():
            m = self._menu_item(menu_item_id)
            if portion_option_id is not None:
                self._check_portion_belongs(m, self._portion(portion_option_id))
            m.price_portion_id = portion_option_id
            self.store.update_menu_item(m)
        return m

    # ------------------------------------------------------------------
    # category registry

    def is_tracked(self, category_id: str) -> bool:
        with self._lock:
            return self.store.get_inventory_category(category_id) is not None

    def list_tracked_categories(self) -> List[InventoryCategory]:
        with self._lock:
            return self.store.list_inventory_categories()

    def register_category_for_tracking(self, category_id: str, unit_type, threshold) -> InventoryCategory:
        if not category_id:
            raise ValidationError("Select a category")
        if unit_type is None or (isinstance(unit_type, str) and not unit_type.strip()):
            raise ValidationError("Select a unit type")
        unit = UnitType.parse(unit_type)
        limit = to_decimal(threshold, "low stock threshold")
        if limit < 0:
            raise ValidationError("low stock threshold cannot be negative")

        with self._write():
            category = self._category(category_id)
            if self.store.get_inventory_category(category_id):
                raise ConfigurationError(f"{category.name} is already tracked in inventory")

            ic = InventoryCategory(category_id=category_id, unit_type=unit, low_stock_threshold=limit)
            self.store.add_inventory_category(ic)

            for i, tpl in enumerate(default_portions(unit)):
                self.store.add_portion(
                    PortionOption(
                        inventory_category_id=ic.id,
                        name=tpl.name,
                        size=tpl.size,
                        price_multiplier=tpl.multiplier,
                        sort_order=i,
                    )
                )

            seeded = 0
            for m in self.store.list_menu_items(category_id):
                if self._seed_inventory_item(m, ic):
                    seeded += 1

        logger.info("%s added to inventory tracking (unit=%s, threshold=%s, items=%d)", category.name, unit.value, limit, seeded)
        return ic

    def _seed_inventory_item(self, menu_item: MenuItem, ic: InventoryCategory) -> Optional[InventoryItem]:
        if self.store.get_inventory_item(menu_item.id):
            return None
        # Threshold stays None so the item follows the category default.
        it = InventoryItem(
            menu_item_id=menu_item.id,
            unit=ic.unit_type,
            current_stock=Decimal("0"),
            default_bottle_size=default_bottle_size_for(ic.unit_type),
        )
        self.store.add_inventory_item(it)
        return it

    def unregister_category(self, category_id: str, confirm: bool = False) -> None:
        """
        Stop tracking a category. Destructive: portions, per-item prices, stock
        and movement history for the category's items are deleted, so the
        caller has to pass ``confirm=True`` after asking the user.
        """
        if not confirm:
            raise ValidationError(
                "Removing a category from inventory tracking deletes all of its stock data; confirmation is required"
            )
        with self._write():
            category = self._category(category_id)
            ic = self._tracked_category(category_id)

            for p in self.store.list_portions(ic.id):
                self.store.delete_prices_for_portion(p.id)
                self.store.delete_portion(p.id)

            for m in self.store.list_menu_items(category_id):
                if m.price_portion_id is not None:
                    m.price_portion_id = None
                    self.store.update_menu_item(m)
                it = self.store.get_inventory_item(m.id)
                if it:
                    self.store.delete_movements(it.id)
                    self.store.delete_inventory_item(it.id)

            self.store.delete_inventory_category(ic.id)

        logger.info("%s removed from inventory tracking", category.name)

    def set_category_threshold(self, category_id: str, threshold) -> InventoryCategory:
        limit = to_decimal(threshold, "low stock threshold")
        if limit < 0:
            raise ValidationError("low stock threshold cannot be negative")
        with self._write():
            ic = self._tracked_category(category_id)
            ic.low_stock_threshold = limit
            self.store.update_inventory_category(ic)
        return ic

    # ------------------------------------------------------------------
    # portions

    def list_portions(self, category_id: str) -> List[PortionOption]:
        with self._lock:
            ic = self.store.get_inventory_category(category_id)
            if not ic:
                return []
            return sort_portions(self.store.list_portions(ic.id))

    @staticmethod
    def _positive(value, what: str) -> Decimal:
        d = to_decimal(value, what)
        if d <= 0:
            raise ValidationError(f"{what} must be greater than 0")
        return d

    @staticmethod
    def _price(value, what: str = "price") -> Decimal:
        d = to_decimal(value, what)
        if d < 0:
            raise ValidationError(f"{what} cannot be negative")
        # Prices are whole currency units.
        if d != d.to_integral_value():
            raise ValidationError(f"{what} must be a whole amount, got {d}")
        return d

    def add_portion_option(
        self,
        category_id: str,
        name: str,
        size,
        price_multiplier,
        sort_order: Optional[int] = None,
        fixed_price=None,
    ) -> PortionOption:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Portion name is required")
        portion = PortionOption(
            inventory_category_id="",
            name=name,
            size=self._positive(size, "size"),
            price_multiplier=self._positive(price_multiplier, "price multiplier"),
            fixed_price=self._price(fixed_price, "fixed price") if fixed_price is not None else None,
        )
        with self._write():
            ic = self._tracked_category(category_id)
            portion.inventory_category_id = ic.id
            portion.sort_order = sort_order if sort_order is not None else len(self.store.list_portions(ic.id))
            self.store.add_portion(portion)
        return portion

    def update_portion_option(
        self,
        portion_option_id: str,
        name: Optional[str] = None,
        size=None,
        price_multiplier=None,
        sort_order: Optional[int] = None,
    ) -> PortionOption:
        with self._write():
            p = self._portion(portion_option_id)
            if name is not None:
                name = name.strip()
                if not name:
                    raise ValidationError("Portion name cannot be empty")
                p.name = name
            if size is not None:
                p.size = self._positive(size, "size")
            if price_multiplier is not None:
                p.price_multiplier = self._positive(price_multiplier, "price multiplier")
            if sort_order is not None:
                p.sort_order = sort_order
            self.store.update_portion(p)
        return p

    def set_portion_fixed_price(self, portion_option_id: str, price) -> PortionOption:
        """Category-wide default price for one portion; None goes back to computed prices."""
        fixed = self._price(price, "fixed price") if price is not None else None
        with self._write():
            p = self._portion(portion_option_id)
            p.fixed_price = fixed
            self.store.update_portion(p)
        return p

    def delete_portion_option(self, portion_option_id: str) -> None:
        with self._write():
            p = self._portion(portion_option_id)
            ic = self.store.get_inventory_category_by_id(p.inventory_category_id)
            if ic:
                for m in self.store.list_menu_items(ic.category_id):
                    if m.price_portion_id == p.id:
                        m.price_portion_id = None
                        self.store.update_menu_item(m)
            self.store.delete_prices_for_portion(p.id)
            self.store.delete_portion(p.id)

    # ------------------------------------------------------------------
    # pricing

    def _check_portion_belongs(self, menu_item: MenuItem, portion: PortionOption) -> InventoryCategory:
        ic = self.store.get_inventory_category(menu_item.category_id)
        if not ic:
            raise ConfigurationError(f"{menu_item.name} has no portion options; tiered pricing is not available")
        if portion.inventory_category_id != ic.id:
            raise ConfigurationError(f"Portion {portion.name!r} does not belong to the category of {menu_item.name}")
        return ic

    def _resolve(self, menu_item: MenuItem, portion: PortionOption) -> PortionPrice:
        ic = self._check_portion_belongs(menu_item, portion)
        portions = self.store.list_portions(ic.id)
        override = self.store.get_item_portion_price(menu_item.id, portion.id)
        return resolve_portion_price(menu_item, portion, portions, override)

    def get_portion_price(self, menu_item_id: str, portion_option_id: str) -> Decimal:
        with self._lock:
            m = self._menu_item(menu_item_id)
            return self._resolve(m, self._portion(portion_option_id)).price

    def list_portion_prices(self, menu_item_id: str) -> List[PortionPrice]:
        """Portion selector rows for one item; empty when the category has no tiered pricing."""
        with self._lock:
            m = self._menu_item(menu_item_id)
            ic = self.store.get_inventory_category(m.category_id)
            if not ic:
                return []
            portions = self.store.list_portions(ic.id)
            out = []
            for p in sort_portions(portions):
                override = self.store.get_item_portion_price(m.id, p.id)
                out.append(resolve_portion_price(m, p, portions, override))
            return out

    def get_display_price(self, menu_item_id: str, portion_option_id: Optional[str] = None) -> Decimal:
        if portion_option_id is None:
            with self._lock:
                return self._menu_item(menu_item_id).price
        return self.get_portion_price(menu_item_id, portion_option_id)

    def set_item_portion_price(self, menu_item_id: str, portion_option_id: str, price) -> ItemPortionPrice:
        value = self._price(price)
        with self._write():
            m = self._menu_item(menu_item_id)
            self._check_portion_belongs(m, self._portion(portion_option_id))
            ipp = ItemPortionPrice(menu_item_id=menu_item_id, portion_option_id=portion_option_id, price=value)
            self.store.set_item_portion_price(ipp)
        logger.info("Price for %s / portion %s set to %s", m.name, portion_option_id, value)
        return ipp

    def clear_item_portion_price(self, menu_item_id: str, portion_option_id: str) -> None:
        with self._write():
            self._menu_item(menu_item_id)
            self.store.delete_item_portion_price(menu_item_id, portion_option_id)

    # ------------------------------------------------------------------
    # stock ledger

    def _apply_stock(self, item: InventoryItem, delta: Decimal, notes: Optional[str]) -> UpdatedStock:
        threshold = self.threshold_for(item)
        was_low = is_low(item.current_stock, threshold)

        movement = StockMovement(inventory_item_id=item.id, change=delta, unit=item.unit, notes=notes)
        self.store.add_movement(movement)
        new_stock = self.store.apply_stock_delta(item.id, delta)

        low = is_low(new_stock, threshold)
        negative = new_stock < 0
        logger.info("Stock %s%s %s for menu item %s -> %s", "+" if delta >= 0 else "", delta, item.unit.value, item.menu_item_id, new_stock)
        if negative:
            logger.warning("Stock for menu item %s is negative (%s %s)", item.menu_item_id, new_stock, item.unit.value)
        elif low and not was_low:
            logger.warning("Menu item %s is low on stock (%s %s, threshold %s)", item.menu_item_id, new_stock, item.unit.value, threshold)

        return UpdatedStock(
            inventory_item_id=item.id,
            menu_item_id=item.menu_item_id,
            current_stock=new_stock,
            unit=item.unit,
            movement_id=movement.id,
            is_low_stock=low,
            is_negative=negative,
        )

    @staticmethod
    def _stock_unit(unit) -> UnitType:
        try:
            return UnitType.parse(unit)
        except ConfigurationError as e:
            raise ValidationError(e.message) from e

    def add_stock(self, menu_item_id: str, quantity, unit=None, notes: Optional[str] = None) -> UpdatedStock:
        """
        Append a signed stock movement and update the running total.

        No sign check: negative quantities are corrections (spoilage, recount)
        and are allowed to take the stock below zero.
        """
        delta = parse_quantity(quantity)
        with self._write():
            item = self._tracked_item(menu_item_id, for_update=True)
            if unit is not None and self._stock_unit(unit) is not item.unit:
                raise ValidationError(f"Unit mismatch: item is tracked in {item.unit.value}, got {unit}")
            return self._apply_stock(item, delta, clean_notes(notes))

    def enter_stock(
        self,
        menu_item_id: str,
        bottle_count=None,
        bottle_size=None,
        custom_bottle_size=None,
        quantity=None,
        notes: Optional[str] = None,
    ) -> UpdatedStock:
        """The "Add Stock" action: bottle quick-entry or a direct, strictly positive quantity."""
        if not menu_item_id:
            raise ValidationError("Select item and enter quantity")
        with self._write():
            item = self._tracked_item(menu_item_id, for_update=True)
            has_bottles = to_optional_decimal(bottle_count, "bottle count") is not None
            if has_bottles and item.unit is not UnitType.ML:
                raise ValidationError("Bottle quick-entry is only available for items tracked in ml")
            entry = resolve_stock_entry(
                bottle_count=bottle_count,
                bottle_size=bottle_size,
                custom_bottle_size=custom_bottle_size,
                quantity=quantity,
                notes=notes,
                default_bottle_size=item.default_bottle_size,
            )
            return self._apply_stock(item, entry.quantity, entry.notes)

    def set_default_bottle_size(self, menu_item_id: str, size_ml) -> InventoryItem:
        size = validate_bottle_size(size_ml, "default bottle size")
        with self._write():
            item = self._tracked_item(menu_item_id)
            if item.unit is not UnitType.ML:
                raise ValidationError("Default bottle size only applies to items tracked in ml")
            item.default_bottle_size = size
            self.store.update_inventory_item(item)
        return item

    def set_item_low_stock_threshold(self, menu_item_id: str, threshold) -> InventoryItem:
        """Per-item threshold; None falls back to the category default."""
        limit = to_optional_decimal(threshold, "low stock threshold")
        if limit is not None and limit < 0:
            raise ValidationError("low stock threshold cannot be negative")
        with self._write():
            item = self._tracked_item(menu_item_id)
            item.low_stock_threshold = limit
            self.store.update_inventory_item(item)
        return item

    def get_stock(self, menu_item_id: str) -> InventoryItem:
        with self._lock:
            return self._tracked_item(menu_item_id)

    def list_stock(self) -> List[InventoryItem]:
        with self._lock:
            return self.store.list_inventory_items()

    def list_movements(self, menu_item_id: str) -> List[StockMovement]:
        with self._lock:
            item = self._tracked_item(menu_item_id)
            return sorted(self.store.list_movements(item.id), key=lambda mv: mv.created_at)

    # ------------------------------------------------------------------
    # low stock

    def list_low_stock_items(self, sort_by_deficit: bool = False) -> List[LowStockEntry]:
        with self._lock:
            menu: Dict[str, MenuItem] = {m.id: m for m in self.store.list_menu_items()}
            category_thresholds = {ic.category_id: ic.low_stock_threshold for ic in self.store.list_inventory_categories()}

            def name_of(it: InventoryItem) -> str:
                m = menu.get(it.menu_item_id)
                return m.name if m else it.menu_item_id

            def threshold_of(it: InventoryItem) -> Decimal:
                m = menu.get(it.menu_item_id)
                category_threshold = category_thresholds.get(m.category_id) if m else None
                return resolve_threshold(it.low_stock_threshold, category_threshold, self.default_threshold)

            return scan_low_stock(self.store.list_inventory_items(), name_of, threshold_of, sort_by_deficit)
