from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from .models import InventoryItem, LowStockEntry

FALLBACK_THRESHOLD = Decimal("5")


def resolve_threshold(
    item_threshold: Optional[Decimal],
    category_threshold: Optional[Decimal] = None,
    default: Decimal = FALLBACK_THRESHOLD,
) -> Decimal:
    """
    Low-stock threshold for one item.

    Precedence: item override, then the category default, then ``default``.
    Only ``None`` falls through; an explicit 0 is a real threshold.
    """
    if item_threshold is not None:
        return item_threshold
    if category_threshold is not None:
        return category_threshold
    return default


def is_low(current_stock: Decimal, threshold: Decimal) -> bool:
    return current_stock <= threshold


def scan_low_stock(
    items: Iterable[InventoryItem],
    name_of: Callable[[InventoryItem], str],
    threshold_of: Callable[[InventoryItem], Decimal],
    sort_by_deficit: bool = False,
) -> List[LowStockEntry]:
    """
    Items at or below their threshold, in the order ``items`` yields them.

    With ``sort_by_deficit`` the furthest-below items come first; ties keep
    their original order.
    """
    out: List[LowStockEntry] = []
    for it in items:
        threshold = threshold_of(it)
        if not is_low(it.current_stock, threshold):
            continue
        out.append(
            LowStockEntry(
                menu_item_name=name_of(it),
                current_stock=it.current_stock,
                unit=it.unit,
                inventory_item_id=it.id,
                threshold=threshold,
            )
        )
    if sort_by_deficit:
        out.sort(key=lambda e: e.threshold - e.current_stock, reverse=True)
    return out
