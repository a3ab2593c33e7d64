from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from core.config import settings
from core.converters import decimal_out
from core.inventory import (
    COMMON_BOTTLE_SIZES,
    InventoryService,
    UnitType,
)
from core.inventory.models import (
    InventoryCategory,
    InventoryItem,
    LowStockEntry,
    PortionOption,
    PortionPrice,
    StockMovement,
    UpdatedStock,
)
from routers.deps import get_inventory_service
from schemas.inventory import (
    CategoryThresholdUpdate,
    DefaultBottleSizeUpdate,
    FixedPriceUpdate,
    ItemPortionPriceSet,
    ItemThresholdUpdate,
    PortionCreate,
    PortionUpdate,
    StockAdjustmentCreate,
    StockEntryCreate,
    TrackingCreate,
)

router = APIRouter()


def _portion_out(p: PortionOption) -> dict:
    return {
        "id": p.id,
        "inventory_category_id": p.inventory_category_id,
        "name": p.name,
        "size": decimal_out(p.size),
        "price_multiplier": float(p.price_multiplier),
        "sort_order": p.sort_order,
        "fixed_price": decimal_out(p.fixed_price),
    }


def _category_out(ic: InventoryCategory, portions: List[PortionOption]) -> dict:
    return {
        "id": ic.id,
        "category_id": ic.category_id,
        "unit_type": ic.unit_type.value,
        "low_stock_threshold": decimal_out(ic.low_stock_threshold),
        "portions": [_portion_out(p) for p in portions],
    }


def _item_out(it: InventoryItem, svc: InventoryService) -> dict:
    threshold = svc.threshold_for(it)
    return {
        "id": it.id,
        "menu_item_id": it.menu_item_id,
        "unit": it.unit.value,
        "current_stock": decimal_out(it.current_stock),
        "low_stock_threshold": decimal_out(it.low_stock_threshold),
        "effective_threshold": decimal_out(threshold),
        "default_bottle_size": decimal_out(it.default_bottle_size),
        "is_low_stock": it.current_stock <= threshold,
    }


def _movement_out(m: StockMovement) -> dict:
    return {
        "id": m.id,
        "inventory_item_id": m.inventory_item_id,
        "change": decimal_out(m.change),
        "unit": m.unit.value,
        "notes": m.notes,
        "created_at": m.created_at,
    }


def _updated_out(u: UpdatedStock) -> dict:
    return {
        "inventory_item_id": u.inventory_item_id,
        "menu_item_id": u.menu_item_id,
        "current_stock": decimal_out(u.current_stock),
        "unit": u.unit.value,
        "movement_id": u.movement_id,
        "is_low_stock": u.is_low_stock,
        "is_negative": u.is_negative,
    }


def _price_out(p: PortionPrice) -> dict:
    return {
        "portion_option_id": p.portion_option_id,
        "name": p.name,
        "size": decimal_out(p.size),
        "price_multiplier": float(p.price_multiplier),
        "price": decimal_out(p.price),
        "source": p.source,
    }


def _low_stock_out(e: LowStockEntry) -> dict:
    return {
        "inventory_item_id": e.inventory_item_id,
        "menu_item_name": e.menu_item_name,
        "current_stock": decimal_out(e.current_stock),
        "unit": e.unit.value,
        "threshold": decimal_out(e.threshold),
    }


@router.get("/units", response_model=Dict)
def list_units():
    return {
        "units": [{"value": u.value, "label": u.label} for u in UnitType],
        "bottle_sizes": list(COMMON_BOTTLE_SIZES),
        "currency": settings.currency,
    }


# ---------------------------------------------------------------------------
# tracked categories


@router.get("/categories", response_model=List[Dict])
def list_tracked_categories(svc: InventoryService = Depends(get_inventory_service)):
    return [
        _category_out(ic, svc.list_portions(ic.category_id))
        for ic in svc.list_tracked_categories()
    ]


@router.post("/categories", response_model=Dict, status_code=status.HTTP_201_CREATED)
def register_category(
    payload: TrackingCreate,
    svc: InventoryService = Depends(get_inventory_service),
):
    ic = svc.register_category_for_tracking(payload.category_id, payload.unit_type, payload.low_stock_threshold)
    return _category_out(ic, svc.list_portions(ic.category_id))


@router.delete("/categories/{category_id}", response_model=Dict)
def unregister_category(
    category_id: str,
    confirm: bool = Query(False, description="Must be true; all stock data for the category is deleted"),
    svc: InventoryService = Depends(get_inventory_service),
):
    svc.unregister_category(category_id, confirm=confirm)
    return {"ok": True}


@router.patch("/categories/{category_id}", response_model=Dict)
def update_category_threshold(
    category_id: str,
    payload: CategoryThresholdUpdate,
    svc: InventoryService = Depends(get_inventory_service),
):
    ic = svc.set_category_threshold(category_id, payload.low_stock_threshold)
    return _category_out(ic, svc.list_portions(category_id))


# ---------------------------------------------------------------------------
# portions


@router.get("/categories/{category_id}/portions", response_model=List[Dict])
def list_portions(category_id: str, svc: InventoryService = Depends(get_inventory_service)):
    return [_portion_out(p) for p in svc.list_portions(category_id)]


@router.post("/categories/{category_id}/portions", response_model=Dict, status_code=status.HTTP_201_CREATED)
def create_portion(
    category_id: str,
    payload: PortionCreate,
    svc: InventoryService = Depends(get_inventory_service),
):
    p = svc.add_portion_option(
        category_id,
        name=payload.name,
        size=payload.size,
        price_multiplier=payload.price_multiplier,
        sort_order=payload.sort_order,
        fixed_price=payload.fixed_price,
    )
    return _portion_out(p)


@router.patch("/portions/{portion_id}", response_model=Dict)
def update_portion(
    portion_id: str,
    payload: PortionUpdate,
    svc: InventoryService = Depends(get_inventory_service),
):
    data = payload.model_dump(exclude_unset=True)
    p = svc.update_portion_option(portion_id, **data)
    return _portion_out(p)


@router.put("/portions/{portion_id}/fixed-price", response_model=Dict)
def set_fixed_price(
    portion_id: str,
    payload: FixedPriceUpdate,
    svc: InventoryService = Depends(get_inventory_service),
):
    return _portion_out(svc.set_portion_fixed_price(portion_id, payload.fixed_price))


@router.delete("/portions/{portion_id}", response_model=Dict)
def delete_portion(portion_id: str, svc: InventoryService = Depends(get_inventory_service)):
    svc.delete_portion_option(portion_id)
    return {"ok": True}


# ---------------------------------------------------------------------------
# prices


@router.get("/items/{menu_item_id}/prices", response_model=List[Dict])
def list_portion_prices(menu_item_id: str, svc: InventoryService = Depends(get_inventory_service)):
    """Portion selector rows; empty when the item's category has no tiered pricing."""
    return [_price_out(p) for p in svc.list_portion_prices(menu_item_id)]


@router.get("/items/{menu_item_id}/prices/{portion_id}", response_model=Dict)
def get_portion_price(menu_item_id: str, portion_id: str, svc: InventoryService = Depends(get_inventory_service)):
    return {
        "menu_item_id": menu_item_id,
        "portion_option_id": portion_id,
        "price": decimal_out(svc.get_portion_price(menu_item_id, portion_id)),
        "currency": settings.currency,
    }


@router.put("/items/{menu_item_id}/prices/{portion_id}", response_model=Dict)
def set_portion_price(
    menu_item_id: str,
    portion_id: str,
    payload: ItemPortionPriceSet,
    svc: InventoryService = Depends(get_inventory_service),
):
    ipp = svc.set_item_portion_price(menu_item_id, portion_id, payload.price)
    return {
        "menu_item_id": ipp.menu_item_id,
        "portion_option_id": ipp.portion_option_id,
        "price": decimal_out(ipp.price),
    }


@router.delete("/items/{menu_item_id}/prices/{portion_id}", response_model=Dict)
def clear_portion_price(menu_item_id: str, portion_id: str, svc: InventoryService = Depends(get_inventory_service)):
    svc.clear_item_portion_price(menu_item_id, portion_id)
    return {"ok": True}


# ---------------------------------------------------------------------------
# stock


@router.get("/stock", response_model=List[Dict])
def list_stock(svc: InventoryService = Depends(get_inventory_service)):
    return [_item_out(it, svc) for it in svc.list_stock()]


@router.get("/stock/{menu_item_id}", response_model=Dict)
def get_stock(menu_item_id: str, svc: InventoryService = Depends(get_inventory_service)):
    return _item_out(svc.get_stock(menu_item_id), svc)


@router.post("/stock", response_model=Dict, status_code=status.HTTP_201_CREATED)
def add_stock(payload: StockEntryCreate, svc: InventoryService = Depends(get_inventory_service)):
    updated = svc.enter_stock(
        payload.menu_item_id,
        bottle_count=payload.bottle_count,
        bottle_size=payload.bottle_size,
        custom_bottle_size=payload.custom_bottle_size,
        quantity=payload.quantity,
        notes=payload.notes,
    )
    return _updated_out(updated)


@router.post("/adjustments", response_model=Dict, status_code=status.HTTP_201_CREATED)
def adjust_stock(payload: StockAdjustmentCreate, svc: InventoryService = Depends(get_inventory_service)):
    updated = svc.add_stock(payload.menu_item_id, payload.quantity, payload.unit, payload.notes)
    return _updated_out(updated)


@router.get("/movements/{menu_item_id}", response_model=List[Dict])
def list_movements(menu_item_id: str, svc: InventoryService = Depends(get_inventory_service)):
    return [_movement_out(m) for m in svc.list_movements(menu_item_id)]


@router.put("/items/{menu_item_id}/bottle-size", response_model=Dict)
def set_default_bottle_size(
    menu_item_id: str,
    payload: DefaultBottleSizeUpdate,
    svc: InventoryService = Depends(get_inventory_service),
):
    return _item_out(svc.set_default_bottle_size(menu_item_id, payload.default_bottle_size), svc)


@router.put("/items/{menu_item_id}/threshold", response_model=Dict)
def set_item_threshold(
    menu_item_id: str,
    payload: ItemThresholdUpdate,
    svc: InventoryService = Depends(get_inventory_service),
):
    return _item_out(svc.set_item_low_stock_threshold(menu_item_id, payload.low_stock_threshold), svc)


@router.get("/low-stock", response_model=List[Dict])
def list_low_stock(
    sort: Optional[str] = Query(None, pattern="^deficit$"),
    svc: InventoryService = Depends(get_inventory_service),
):
    return [_low_stock_out(e) for e in svc.list_low_stock_items(sort_by_deficit=sort == "deficit")]
