from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, status

from core.converters import decimal_out
from core.inventory import InventoryService
from core.inventory.models import MenuItem
from routers.deps import get_inventory_service
from schemas.menu import BasePricePortionUpdate, CategoryCreate, MenuItemCreate

router = APIRouter()


def _menu_item_out(m: MenuItem, svc: InventoryService) -> dict:
    return {
        "id": m.id,
        "name": m.name,
        "category_id": m.category_id,
        "price": decimal_out(m.price),
        "available": m.available,
        "price_portion_id": m.price_portion_id,
        "tracked": svc.is_item_tracked(m.id),
    }


@router.get("/categories", response_model=List[Dict])
def list_categories(svc: InventoryService = Depends(get_inventory_service)):
    return [
        {"id": c.id, "name": c.name, "sort_order": c.sort_order, "tracked": svc.is_tracked(c.id)}
        for c in svc.list_categories()
    ]


@router.post("/categories", response_model=Dict, status_code=status.HTTP_201_CREATED)
def create_category(payload: CategoryCreate, svc: InventoryService = Depends(get_inventory_service)):
    c = svc.add_category(payload.name, sort_order=payload.sort_order, category_id=payload.id)
    return {"id": c.id, "name": c.name, "sort_order": c.sort_order, "tracked": False}


@router.get("/items", response_model=List[Dict])
def list_menu_items(
    category_id: Optional[str] = None,
    svc: InventoryService = Depends(get_inventory_service),
):
    return [_menu_item_out(m, svc) for m in svc.list_menu_items(category_id)]


@router.post("/items", response_model=Dict, status_code=status.HTTP_201_CREATED)
def create_menu_item(payload: MenuItemCreate, svc: InventoryService = Depends(get_inventory_service)):
    m = svc.add_menu_item(
        payload.name,
        payload.category_id,
        payload.price,
        available=payload.available,
        menu_item_id=payload.id,
    )
    return _menu_item_out(m, svc)


@router.put("/items/{menu_item_id}/base-portion", response_model=Dict)
def set_base_price_portion(
    menu_item_id: str,
    payload: BasePricePortionUpdate,
    svc: InventoryService = Depends(get_inventory_service),
):
    return _menu_item_out(svc.set_base_price_portion(menu_item_id, payload.portion_option_id), svc)


@router.delete("/items/{menu_item_id}", response_model=Dict)
def delete_menu_item(menu_item_id: str, svc: InventoryService = Depends(get_inventory_service)):
    svc.remove_menu_item(menu_item_id)
    return {"ok": True}
