import threading
from decimal import Decimal

import pytest

from core.inventory import (
    Category,
    ConfigurationError,
    NotFoundError,
    NotTrackedError,
    StockMovement,
    UnitType,
    ValidationError,
)


def _portion(svc, category_id, size):
    return next(p for p in svc.list_portions(category_id) if p.size == size)


# ---------------------------------------------------------------------------
# registry


def test_register_seeds_portions_and_items(svc, drinks):
    ic = svc.register_category_for_tracking(drinks, "ml", 500)

    assert svc.is_tracked(drinks)
    assert ic.unit_type is UnitType.ML
    portions = svc.list_portions(drinks)
    assert [p.sort_order for p in portions] == list(range(7))
    assert [int(p.size) for p in portions] == [30, 60, 90, 180, 375, 750, 1000]

    whisky = svc.get_stock("whisky-id")
    assert whisky.current_stock == 0
    assert whisky.unit is UnitType.ML
    assert whisky.default_bottle_size == 750
    assert whisky.low_stock_threshold is None
    assert svc.threshold_for(whisky) == 500
    assert len(svc.list_stock()) == 2


def test_register_piece_category(svc):
    svc.add_category("Cigarettes", category_id="cigs")
    svc.add_menu_item("Surya", "cigs", 25, menu_item_id="surya")
    svc.register_category_for_tracking("cigs", UnitType.PCS, 20)

    assert [p.name for p in svc.list_portions("cigs")] == ["1 Piece", "Pack (20)"]
    assert svc.get_stock("surya").default_bottle_size is None


def test_register_twice_is_rejected(svc, tracked_drinks):
    with pytest.raises(ConfigurationError):
        svc.register_category_for_tracking(tracked_drinks, "ml", 100)
    assert len(svc.list_portions(tracked_drinks)) == 7


@pytest.mark.parametrize(
    "category_id, unit, threshold, error",
    [
        ("", "ml", 5, ValidationError),
        ("drinks", "", 5, ValidationError),
        ("drinks", None, 5, ValidationError),
        ("drinks", "ml", None, ValidationError),
        ("drinks", "ml", -1, ValidationError),
        ("drinks", "litres", 5, ConfigurationError),
        ("nope", "ml", 5, NotFoundError),
    ],
)
def test_register_validation(svc, drinks, category_id, unit, threshold, error):
    with pytest.raises(error):
        svc.register_category_for_tracking(category_id, unit, threshold)
    assert not svc.is_tracked(drinks)


def test_item_added_later_is_seeded(svc, tracked_drinks):
    svc.add_menu_item("Gin", tracked_drinks, 130, menu_item_id="gin")
    assert svc.get_stock("gin").current_stock == 0


@pytest.mark.parametrize("name", ["Drinks", " drinks ", "DRINKS"])
def test_category_names_are_unique(svc, drinks, name):
    with pytest.raises(ValidationError, match="already exists"):
        svc.add_category(name)
    assert [c.name for c in svc.list_categories()] == ["Drinks"]


def test_unregister_needs_confirmation(svc, tracked_drinks):
    with pytest.raises(ValidationError):
        svc.unregister_category(tracked_drinks)
    assert svc.is_tracked(tracked_drinks)


def test_unregister_removes_everything(svc, tracked_drinks):
    full = _portion(svc, tracked_drinks, 750)
    peg = _portion(svc, tracked_drinks, 60)
    svc.set_item_portion_price("whisky-id", full.id, 1400)
    svc.set_base_price_portion("whisky-id", peg.id)
    svc.add_stock("whisky-id", 750)

    svc.unregister_category(tracked_drinks, confirm=True)

    assert not svc.is_tracked(tracked_drinks)
    assert svc.list_portions(tracked_drinks) == []
    assert svc.list_stock() == []
    assert svc.store.movements == {}
    assert svc.store.prices == {}
    assert svc.store.get_menu_item("whisky-id").price_portion_id is None
    with pytest.raises(NotTrackedError):
        svc.get_stock("whisky-id")
    # menu data survives
    assert svc.get_display_price("whisky-id") == 150


def test_unregister_untracked(svc, drinks):
    with pytest.raises(NotTrackedError):
        svc.unregister_category(drinks, confirm=True)


def test_track_untrack_track(svc, tracked_drinks):
    svc.add_stock("whisky-id", 300)
    svc.unregister_category(tracked_drinks, confirm=True)
    svc.register_category_for_tracking(tracked_drinks, "ml", 500)
    assert svc.get_stock("whisky-id").current_stock == 0
    assert len(svc.list_portions(tracked_drinks)) == 7


# ---------------------------------------------------------------------------
# pricing


def test_computed_prices(svc, tracked_drinks):
    prices = svc.list_portion_prices("whisky-id")
    assert [p.price for p in prices] == [150, 300, 450, 840, 1650, 3000, 3990]
    assert {p.source for p in prices} == {"computed"}


def test_price_quoted_at_large_peg(svc, tracked_drinks):
    peg = _portion(svc, tracked_drinks, 60)
    svc.set_base_price_portion("whisky-id", peg.id)

    assert svc.get_portion_price("whisky-id", _portion(svc, tracked_drinks, 30).id) == 75
    assert svc.get_portion_price("whisky-id", peg.id) == 150
    assert svc.get_portion_price("whisky-id", _portion(svc, tracked_drinks, 750).id) == 1500


def test_override_wins_and_survives_multiplier_change(svc, tracked_drinks):
    full = _portion(svc, tracked_drinks, 750)
    half = _portion(svc, tracked_drinks, 375)
    svc.set_item_portion_price("whisky-id", full.id, 1400)

    svc.update_portion_option(full.id, price_multiplier=12)
    svc.update_portion_option(half.id, price_multiplier=6)

    assert svc.get_portion_price("whisky-id", full.id) == 1400
    assert svc.get_portion_price("whisky-id", half.id) == 1800
    # other items are unaffected by Whisky's override
    assert svc.get_portion_price("vodka-id", full.id) == 2880

    svc.clear_item_portion_price("whisky-id", full.id)
    assert svc.get_portion_price("whisky-id", full.id) == 3600


def test_fixed_price_sits_between_override_and_computed(svc, tracked_drinks):
    full = _portion(svc, tracked_drinks, 750)
    svc.set_portion_fixed_price(full.id, 2500)
    assert svc.get_portion_price("vodka-id", full.id) == 2500

    svc.set_item_portion_price("vodka-id", full.id, 2300)
    assert svc.get_portion_price("vodka-id", full.id) == 2300

    svc.set_portion_fixed_price(full.id, None)
    assert svc.get_portion_price("whisky-id", full.id) == 3000


def test_display_price(svc, tracked_drinks):
    assert svc.get_display_price("whisky-id") == 150
    assert svc.get_display_price("whisky-id", _portion(svc, tracked_drinks, 90).id) == 450


def test_untracked_item_has_no_portions(svc, drinks):
    svc.add_category("Snacks", category_id="snacks")
    svc.add_menu_item("Chips", "snacks", 80, menu_item_id="chips")
    svc.register_category_for_tracking(drinks, "ml", 500)

    assert svc.list_portion_prices("chips") == []
    with pytest.raises(ConfigurationError):
        svc.get_portion_price("chips", _portion(svc, drinks, 30).id)


def test_portion_from_another_category(svc, tracked_drinks):
    svc.add_category("Cigarettes", category_id="cigs")
    svc.register_category_for_tracking("cigs", "pcs", 20)
    piece = svc.list_portions("cigs")[0]
    with pytest.raises(ConfigurationError):
        svc.get_portion_price("whisky-id", piece.id)
    with pytest.raises(ConfigurationError):
        svc.set_item_portion_price("whisky-id", piece.id, 10)


def test_negative_override_rejected(svc, tracked_drinks):
    with pytest.raises(ValidationError):
        svc.set_item_portion_price("whisky-id", _portion(svc, tracked_drinks, 30).id, -1)


def test_prices_are_whole_amounts(svc, tracked_drinks):
    full = _portion(svc, tracked_drinks, 750)
    with pytest.raises(ValidationError):
        svc.set_item_portion_price("whisky-id", full.id, "99.5")
    with pytest.raises(ValidationError):
        svc.set_portion_fixed_price(full.id, 2499.5)
    assert svc.get_portion_price("whisky-id", full.id) == 3000

    svc.set_item_portion_price("whisky-id", full.id, "1400.00")
    assert svc.get_portion_price("whisky-id", full.id) == 1400


def test_unknown_ids(svc, tracked_drinks):
    with pytest.raises(NotFoundError):
        svc.get_portion_price("ghost", _portion(svc, tracked_drinks, 30).id)
    with pytest.raises(NotFoundError):
        svc.get_portion_price("whisky-id", "ghost")


def test_portion_editing(svc, tracked_drinks):
    p = svc.add_portion_option(tracked_drinks, "45ml", 45, "0.75")
    assert p.sort_order == 7
    assert svc.get_portion_price("whisky-id", p.id) == 225

    with pytest.raises(ValidationError):
        svc.add_portion_option(tracked_drinks, "bad", 10, 0)
    with pytest.raises(ValidationError):
        svc.update_portion_option(p.id, price_multiplier=-2)
    with pytest.raises(NotTrackedError):
        svc.add_portion_option("nope", "x", 1, 1)


def test_delete_portion_drops_its_overrides(svc, tracked_drinks):
    peg = _portion(svc, tracked_drinks, 60)
    svc.set_item_portion_price("whisky-id", peg.id, 280)
    svc.set_base_price_portion("whisky-id", peg.id)

    svc.delete_portion_option(peg.id)

    assert svc.store.prices == {}
    assert svc.store.get_menu_item("whisky-id").price_portion_id is None
    assert len(svc.list_portions(tracked_drinks)) == 6


# ---------------------------------------------------------------------------
# stock


def test_additivity(svc, tracked_drinks):
    for q in (750, -60, "30.5", -0.5):
        svc.add_stock("whisky-id", q)
    assert svc.get_stock("whisky-id").current_stock == Decimal("720")
    assert sum(m.change for m in svc.list_movements("whisky-id")) == Decimal("720")


def test_bottles_equal_direct_quantity(svc, tracked_drinks):
    svc.enter_stock("whisky-id", bottle_count=3, bottle_size=750)
    svc.enter_stock("vodka-id", quantity=2250)
    assert svc.get_stock("whisky-id").current_stock == svc.get_stock("vodka-id").current_stock == 2250
    assert svc.list_movements("whisky-id")[0].notes == "3 bottles × 750ml"


def test_bottle_entry_uses_item_default(svc, tracked_drinks):
    svc.set_default_bottle_size("whisky-id", 1000)
    svc.enter_stock("whisky-id", bottle_count=2)
    assert svc.get_stock("whisky-id").current_stock == 2000


def test_empty_entry_changes_nothing(svc, tracked_drinks):
    with pytest.raises(ValidationError, match="Select item and enter quantity"):
        svc.enter_stock("whisky-id")
    with pytest.raises(ValidationError):
        svc.enter_stock("", quantity=10)
    assert svc.get_stock("whisky-id").current_stock == 0
    assert svc.list_movements("whisky-id") == []


def test_enter_stock_rejects_negative(svc, tracked_drinks):
    with pytest.raises(ValidationError, match="Enter a valid quantity"):
        svc.enter_stock("whisky-id", quantity=-5)
    assert svc.list_movements("whisky-id") == []


def test_negative_stock_is_allowed(svc, tracked_drinks):
    updated = svc.add_stock("whisky-id", -90, notes="sold before counting")
    assert updated.current_stock == -90
    assert updated.is_negative
    assert updated.is_low_stock


def test_add_stock_unit_mismatch(svc, tracked_drinks):
    with pytest.raises(ValidationError):
        svc.add_stock("whisky-id", 5, unit="pcs")
    svc.add_stock("whisky-id", 5, unit="ml")
    assert svc.get_stock("whisky-id").current_stock == 5


def test_add_stock_unknown_unit_is_a_validation_error(svc, tracked_drinks):
    with pytest.raises(ValidationError):
        svc.add_stock("whisky-id", 5, unit="litres")
    assert svc.list_movements("whisky-id") == []


def test_untracked_item_stock(svc, drinks):
    with pytest.raises(NotTrackedError, match="Item not tracked in inventory"):
        svc.add_stock("whisky-id", 10)
    with pytest.raises(NotTrackedError):
        svc.enter_stock("whisky-id", quantity=10)


def test_bottles_only_for_volume_items(svc):
    svc.add_category("Cigarettes", category_id="cigs")
    svc.add_menu_item("Surya", "cigs", 25, menu_item_id="surya")
    svc.register_category_for_tracking("cigs", "pcs", 20)
    with pytest.raises(ValidationError):
        svc.enter_stock("surya", bottle_count=2, bottle_size=750)
    with pytest.raises(ValidationError):
        svc.set_default_bottle_size("surya", 750)
    assert svc.enter_stock("surya", quantity=40).current_stock == 40


def test_concurrent_additions_are_not_lost(svc, tracked_drinks):
    def worker():
        for _ in range(50):
            svc.add_stock("whisky-id", 1)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert svc.get_stock("whisky-id").current_stock == 400
    assert len(svc.list_movements("whisky-id")) == 400


def test_reads_during_writes(svc, tracked_drinks):
    errors = []
    done = threading.Event()

    def writer():
        try:
            for i in range(300):
                svc.add_menu_item(f"Gin {i}", tracked_drinks, 130, menu_item_id=f"gin-{i}")
                svc.add_stock("whisky-id", 1)
        finally:
            done.set()

    def reader():
        while not done.is_set():
            try:
                svc.list_stock()
                svc.get_stock("whisky-id")
                svc.list_movements("whisky-id")
                svc.list_low_stock_items()
                svc.list_portions(tracked_drinks)
            except Exception as e:  # noqa: BLE001
                errors.append(e)
                return

    threads = [threading.Thread(target=writer), threading.Thread(target=reader), threading.Thread(target=reader)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(svc.list_stock()) == 302
    assert svc.get_stock("whisky-id").current_stock == 300


def test_memory_transaction_rolls_back(svc, drinks):
    with pytest.raises(RuntimeError):
        with svc.store.transaction():
            svc.store.add_category(Category(name="Temp", id="temp"))
            raise RuntimeError("boom")
    assert svc.store.get_category("temp") is None


def test_memory_rollback_restores_stock_and_movements(svc, tracked_drinks):
    svc.add_stock("whisky-id", 100)
    store = svc.store
    item = store.get_inventory_item("whisky-id")
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.add_movement(StockMovement(inventory_item_id=item.id, change=Decimal("50"), unit=UnitType.ML))
            store.apply_stock_delta(item.id, Decimal("50"))
            store.apply_stock_delta(item.id, Decimal("-500"))
            store.delete_menu_item("vodka-id")
            raise RuntimeError("boom")

    assert svc.get_stock("whisky-id").current_stock == 100
    assert len(svc.list_movements("whisky-id")) == 1
    assert store.get_menu_item("vodka-id") is not None


def test_memory_transaction_only_journals_touched_rows(svc, tracked_drinks):
    for _ in range(200):
        svc.add_stock("whisky-id", 1)
    store = svc.store
    item = store.get_inventory_item("whisky-id")
    with store.transaction():
        store.add_movement(StockMovement(inventory_item_id=item.id, change=Decimal("1"), unit=UnitType.ML))
        store.apply_stock_delta(item.id, Decimal("1"))
        assert len(store._undo) == 2
    assert store._undo is None


def test_threshold_edit_keeps_stock(svc, tracked_drinks):
    svc.add_stock("whisky-id", 120)
    stale = svc.get_stock("whisky-id")
    svc.add_stock("whisky-id", 30)
    stale.low_stock_threshold = Decimal("10")
    svc.store.update_inventory_item(stale)
    assert svc.get_stock("whisky-id").current_stock == 150


# ---------------------------------------------------------------------------
# low stock


def test_low_stock_boundary(svc, tracked_drinks):
    svc.add_stock("whisky-id", 500)
    svc.add_stock("vodka-id", 501)
    low = svc.list_low_stock_items()
    assert [e.menu_item_name for e in low] == ["Whisky"]
    assert low[0].threshold == 500


def test_low_stock_item_threshold(svc, tracked_drinks):
    svc.add_stock("whisky-id", 200)
    svc.add_stock("vodka-id", 200)
    svc.set_item_low_stock_threshold("whisky-id", 100)
    assert [e.menu_item_name for e in svc.list_low_stock_items()] == ["Vodka"]

    svc.set_item_low_stock_threshold("whisky-id", None)
    svc.set_category_threshold(tracked_drinks, 0)
    assert svc.list_low_stock_items() == []


def test_low_stock_sorted_by_deficit(svc, tracked_drinks):
    svc.add_stock("whisky-id", 400)
    svc.add_stock("vodka-id", 100)
    assert [e.menu_item_name for e in svc.list_low_stock_items()] == ["Whisky", "Vodka"]
    assert [e.menu_item_name for e in svc.list_low_stock_items(sort_by_deficit=True)] == ["Vodka", "Whisky"]


def test_crossing_threshold_is_logged(svc, tracked_drinks, caplog):
    svc.add_stock("whisky-id", 600)
    with caplog.at_level("WARNING", logger="core.inventory.service"):
        svc.add_stock("whisky-id", -200)
    assert "low on stock" in caplog.text
