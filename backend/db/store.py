"""
SQL-backed store for core.inventory.InventoryService.

Mirrors core.inventory.store.MemoryStore method for method. Writes are flushed
immediately (the session is created with autoflush=False) and committed or
rolled back by ``transaction()``.
"""

from contextlib import contextmanager
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from core.converters import (
    category_to_domain,
    inventory_category_to_domain,
    inventory_item_to_domain,
    item_portion_price_to_domain,
    menu_item_to_domain,
    movement_to_domain,
    portion_to_domain,
)
from core.inventory import models as domain

from .category import Category as CategoryModel
from .inventory.category import InventoryCategory as InventoryCategoryModel
from .inventory.item import InventoryItem as InventoryItemModel
from .inventory.movement import StockMovement as StockMovementModel
from .inventory.portion import PortionOption as PortionOptionModel
from .inventory.price import ItemPortionPrice as ItemPortionPriceModel
from .menu_item import MenuItem as MenuItemModel


class SqlStore:
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def transaction(self):
        # The session may already have autobegun (earlier reads in the same
        # request), so commit/rollback explicitly instead of session.begin().
        try:
            yield self
            self.session.commit()
        except BaseException:
            self.session.rollback()
            raise

    def _one(self, model, **where):
        stmt = select(model)
        for k, v in where.items():
            stmt = stmt.where(getattr(model, k) == v)
        return self.session.execute(stmt).scalar_one_or_none()

    def _set(self, row, obj, *fields):
        for f in fields:
            v = getattr(obj, f)
            setattr(row, f, v.value if hasattr(v, "value") else v)
        self.session.flush()

    # categories / menu items

    def add_category(self, category: domain.Category) -> domain.Category:
        self.session.add(CategoryModel(id=category.id, name=category.name, sort_order=category.sort_order))
        self.session.flush()
        return category

    def get_category(self, category_id: str) -> Optional[domain.Category]:
        row = self._one(CategoryModel, id=category_id)
        return category_to_domain(row) if row else None

    def get_category_by_name(self, name: str) -> Optional[domain.Category]:
        stmt = select(CategoryModel).where(func.lower(CategoryModel.name) == name.strip().lower())
        row = self.session.execute(stmt).scalars().first()
        return category_to_domain(row) if row else None

    def list_categories(self) -> List[domain.Category]:
        res = self.session.execute(select(CategoryModel).order_by(CategoryModel.sort_order, func.lower(CategoryModel.name)))
        return [category_to_domain(c) for c in res.scalars().all()]

    def add_menu_item(self, item: domain.MenuItem) -> domain.MenuItem:
        self.session.add(
            MenuItemModel(
                id=item.id,
                category_id=item.category_id,
                name=item.name,
                price=item.price,
                available=item.available,
                price_portion_id=item.price_portion_id,
            )
        )
        self.session.flush()
        return item

    def get_menu_item(self, menu_item_id: str) -> Optional[domain.MenuItem]:
        row = self._one(MenuItemModel, id=menu_item_id)
        return menu_item_to_domain(row) if row else None

    def list_menu_items(self, category_id: Optional[str] = None) -> List[domain.MenuItem]:
        stmt = select(MenuItemModel)
        if category_id is not None:
            stmt = stmt.where(MenuItemModel.category_id == category_id)
        res = self.session.execute(stmt.order_by(func.lower(MenuItemModel.name).asc()))
        return [menu_item_to_domain(m) for m in res.scalars().all()]

    def update_menu_item(self, item: domain.MenuItem) -> None:
        row = self._one(MenuItemModel, id=item.id)
        self._set(row, item, "name", "price", "available", "price_portion_id")

    def delete_menu_item(self, menu_item_id: str) -> None:
        self.session.execute(delete(MenuItemModel).where(MenuItemModel.id == menu_item_id))

    # inventory categories / portions

    def add_inventory_category(self, inv_cat: domain.InventoryCategory) -> domain.InventoryCategory:
        self.session.add(
            InventoryCategoryModel(
                id=inv_cat.id,
                category_id=inv_cat.category_id,
                unit_type=inv_cat.unit_type.value,
                low_stock_threshold=inv_cat.low_stock_threshold,
            )
        )
        self.session.flush()
        return inv_cat

    def get_inventory_category(self, category_id: str) -> Optional[domain.InventoryCategory]:
        row = self._one(InventoryCategoryModel, category_id=category_id)
        return inventory_category_to_domain(row) if row else None

    def get_inventory_category_by_id(self, inventory_category_id: str) -> Optional[domain.InventoryCategory]:
        row = self._one(InventoryCategoryModel, id=inventory_category_id)
        return inventory_category_to_domain(row) if row else None

    def list_inventory_categories(self) -> List[domain.InventoryCategory]:
        res = self.session.execute(select(InventoryCategoryModel))
        return [inventory_category_to_domain(ic) for ic in res.scalars().all()]

    def update_inventory_category(self, inv_cat: domain.InventoryCategory) -> None:
        row = self._one(InventoryCategoryModel, id=inv_cat.id)
        self._set(row, inv_cat, "unit_type", "low_stock_threshold")

    def delete_inventory_category(self, inventory_category_id: str) -> None:
        self.session.execute(delete(InventoryCategoryModel).where(InventoryCategoryModel.id == inventory_category_id))

    def add_portion(self, portion: domain.PortionOption) -> domain.PortionOption:
        self.session.add(
            PortionOptionModel(
                id=portion.id,
                inventory_category_id=portion.inventory_category_id,
                name=portion.name,
                size=portion.size,
                price_multiplier=portion.price_multiplier,
                sort_order=portion.sort_order,
                fixed_price=portion.fixed_price,
            )
        )
        self.session.flush()
        return portion

    def get_portion(self, portion_option_id: str) -> Optional[domain.PortionOption]:
        row = self._one(PortionOptionModel, id=portion_option_id)
        return portion_to_domain(row) if row else None

    def list_portions(self, inventory_category_id: str) -> List[domain.PortionOption]:
        res = self.session.execute(
            select(PortionOptionModel)
            .where(PortionOptionModel.inventory_category_id == inventory_category_id)
            .order_by(PortionOptionModel.sort_order.asc())
        )
        return [portion_to_domain(p) for p in res.scalars().all()]

    def update_portion(self, portion: domain.PortionOption) -> None:
        row = self._one(PortionOptionModel, id=portion.id)
        self._set(row, portion, "name", "size", "price_multiplier", "sort_order", "fixed_price")

    def delete_portion(self, portion_option_id: str) -> None:
        self.session.execute(delete(PortionOptionModel).where(PortionOptionModel.id == portion_option_id))

    # inventory items / stock

    def add_inventory_item(self, item: domain.InventoryItem) -> domain.InventoryItem:
        seq = self.session.execute(select(func.coalesce(func.max(InventoryItemModel.seq), 0))).scalar_one()
        self.session.add(
            InventoryItemModel(
                id=item.id,
                menu_item_id=item.menu_item_id,
                seq=int(seq) + 1,
                unit=item.unit.value,
                current_stock=item.current_stock,
                low_stock_threshold=item.low_stock_threshold,
                default_bottle_size=item.default_bottle_size,
            )
        )
        self.session.flush()
        return item

    def get_inventory_item(self, menu_item_id: str, for_update: bool = False) -> Optional[domain.InventoryItem]:
        stmt = select(InventoryItemModel).where(InventoryItemModel.menu_item_id == menu_item_id)
        if for_update:
            # no-op on SQLite; row lock on Postgres
            stmt = stmt.with_for_update()
        row = self.session.execute(stmt).scalar_one_or_none()
        return inventory_item_to_domain(row) if row else None

    def list_inventory_items(self) -> List[domain.InventoryItem]:
        res = self.session.execute(select(InventoryItemModel).order_by(InventoryItemModel.seq.asc()))
        return [inventory_item_to_domain(it) for it in res.scalars().all()]

    def update_inventory_item(self, item: domain.InventoryItem) -> None:
        row = self._one(InventoryItemModel, id=item.id)
        self._set(row, item, "unit", "low_stock_threshold", "default_bottle_size")

    def delete_inventory_item(self, inventory_item_id: str) -> None:
        self.session.execute(delete(InventoryItemModel).where(InventoryItemModel.id == inventory_item_id))

    def apply_stock_delta(self, inventory_item_id: str, delta: Decimal) -> Decimal:
        # Increment in SQL so the running total never depends on a stale read.
        self.session.execute(
            update(InventoryItemModel)
            .where(InventoryItemModel.id == inventory_item_id)
            .values(current_stock=InventoryItemModel.current_stock + delta)
            .execution_options(synchronize_session=False)
        )
        # Loaded rows still hold the old total.
        self.session.expire_all()
        value = self.session.execute(
            select(InventoryItemModel.current_stock).where(InventoryItemModel.id == inventory_item_id)
        ).scalar_one()
        return value if isinstance(value, Decimal) else Decimal(str(value))

    def add_movement(self, movement: domain.StockMovement) -> domain.StockMovement:
        seq = self.session.execute(
            select(func.coalesce(func.max(StockMovementModel.seq), 0)).where(
                StockMovementModel.inventory_item_id == movement.inventory_item_id
            )
        ).scalar_one()
        self.session.add(
            StockMovementModel(
                id=movement.id,
                inventory_item_id=movement.inventory_item_id,
                seq=int(seq) + 1,
                change=movement.change,
                unit=movement.unit.value,
                notes=movement.notes,
                created_at=movement.created_at,
            )
        )
        self.session.flush()
        return movement

    def list_movements(self, inventory_item_id: str) -> List[domain.StockMovement]:
        res = self.session.execute(
            select(StockMovementModel)
            .where(StockMovementModel.inventory_item_id == inventory_item_id)
            .order_by(StockMovementModel.created_at.asc(), StockMovementModel.seq.asc())
        )
        return [movement_to_domain(m) for m in res.scalars().all()]

    def delete_movements(self, inventory_item_id: str) -> None:
        self.session.execute(delete(StockMovementModel).where(StockMovementModel.inventory_item_id == inventory_item_id))

    # per-item portion prices

    def get_item_portion_price(self, menu_item_id: str, portion_option_id: str) -> Optional[domain.ItemPortionPrice]:
        row = self._one(ItemPortionPriceModel, menu_item_id=menu_item_id, portion_option_id=portion_option_id)
        return item_portion_price_to_domain(row) if row else None

    def set_item_portion_price(self, price: domain.ItemPortionPrice) -> None:
        row = self._one(ItemPortionPriceModel, menu_item_id=price.menu_item_id, portion_option_id=price.portion_option_id)
        if row:
            row.price = price.price
        else:
            self.session.add(
                ItemPortionPriceModel(
                    menu_item_id=price.menu_item_id,
                    portion_option_id=price.portion_option_id,
                    price=price.price,
                )
            )
        self.session.flush()

    def delete_item_portion_price(self, menu_item_id: str, portion_option_id: str) -> None:
        self.session.execute(
            delete(ItemPortionPriceModel)
            .where(ItemPortionPriceModel.menu_item_id == menu_item_id)
            .where(ItemPortionPriceModel.portion_option_id == portion_option_id)
        )

    def delete_prices_for_portion(self, portion_option_id: str) -> None:
        self.session.execute(delete(ItemPortionPriceModel).where(ItemPortionPriceModel.portion_option_id == portion_option_id))

    def delete_prices_for_menu_item(self, menu_item_id: str) -> None:
        self.session.execute(delete(ItemPortionPriceModel).where(ItemPortionPriceModel.menu_item_id == menu_item_id))
