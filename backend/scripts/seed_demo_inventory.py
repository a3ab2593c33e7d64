import argparse
import sys
from pathlib import Path

"""
Seed a small demo menu with inventory tracking.

- Drinks (ml): Whisky, Vodka, Rum; Whisky's base price is quoted at the 60ml peg.
- Cigarettes (pcs): two brands, sold per piece or per pack.
- Snacks: left untracked.

Run:
- inside backend/: `python scripts/seed_demo_inventory.py`
- from repo root: `python backend/scripts/seed_demo_inventory.py --dry-run`
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from core.inventory import InventoryService, MemoryStore  # noqa: E402
from db.database import create_db_and_tables, session_maker  # noqa: E402
from db.store import SqlStore  # noqa: E402


MENU = {
    "Drinks": [("Whisky", 150), ("Vodka", 120), ("Rum", 100)],
    "Cigarettes": [("Surya Red", 25), ("Shikhar", 20)],
    "Snacks": [("Chips", 80), ("Peanuts", 60)],
}

TRACKING = {
    "Drinks": ("ml", 750),
    "Cigarettes": ("pcs", 20),
}

OPENING_BOTTLES = {
    "Whisky": (3, 750),
    "Vodka": (2, 1000),
    "Rum": (1, 375),
}


def seed(svc: InventoryService, threshold_override=None) -> dict:
    existing = {c.name for c in svc.list_categories()}
    counts = {"categories": 0, "items": 0, "tracked": 0, "stock_entries": 0}

    items_by_name = {}
    for i, (cat_name, items) in enumerate(MENU.items()):
        if cat_name in existing:
            print(f"[seed_demo_inventory] {cat_name} already exists, skipping")
            continue
        cat = svc.add_category(cat_name, sort_order=i)
        counts["categories"] += 1
        for name, price in items:
            items_by_name[name] = svc.add_menu_item(name, cat.id, price)
            counts["items"] += 1

        if cat_name in TRACKING:
            unit, threshold = TRACKING[cat_name]
            svc.register_category_for_tracking(cat.id, unit, threshold_override if threshold_override is not None else threshold)
            counts["tracked"] += 1

    drinks = next((c for c in svc.list_categories() if c.name == "Drinks"), None)
    whisky = items_by_name.get("Whisky")
    if drinks and whisky:
        peg = next((p for p in svc.list_portions(drinks.id) if p.size == 60), None)
        if peg:
            svc.set_base_price_portion(whisky.id, peg.id)

    for name, (count, size) in OPENING_BOTTLES.items():
        item = items_by_name.get(name)
        if not item:
            continue
        svc.enter_stock(item.id, bottle_count=count, bottle_size=size, notes="Opening stock")
        counts["stock_entries"] += 1

    return counts


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--threshold", type=float, default=None, help="Override the low stock threshold of every tracked category")
    p.add_argument("--dry-run", action="store_true", help="Seed an in-memory store and print what would be created")
    args = p.parse_args()

    if args.dry_run:
        counts = seed(InventoryService(MemoryStore()), args.threshold)
        print(f"[seed_demo_inventory] DRY RUN: would create {counts}")
        return

    create_db_and_tables()
    with session_maker() as session:
        counts = seed(InventoryService(SqlStore(session)), args.threshold)
    print(f"[seed_demo_inventory] Created {counts}")


if __name__ == "__main__":
    main()
