"""
Tiered portion pricing.

A menu item stores one base price. Every portion of its category carries a
multiplier, and the ratio between two multipliers is the ratio between the two
portion prices. The base price is quoted at the base portion, which is the
portion with the smallest multiplier unless the item names another one.

Resolution order for a single (item, portion) pair:
1) explicit per-item override (ItemPortionPrice)
2) category-wide fixed price on the portion
3) base_price / base_multiplier * portion multiplier, rounded half-up
"""

from decimal import Decimal
from typing import Optional, Sequence

from .errors import ConfigurationError
from .models import ItemPortionPrice, MenuItem, PortionOption, PortionPrice
from .numbers import round_currency

SOURCE_OVERRIDE = "override"
SOURCE_FIXED = "fixed"
SOURCE_COMPUTED = "computed"


def _checked_multiplier(portion: PortionOption) -> Decimal:
    m = portion.price_multiplier
    if m is None or not isinstance(m, Decimal) or not m.is_finite() or m <= 0:
        raise ConfigurationError(
            f"Portion {portion.name!r} has an invalid price multiplier ({m}); it must be a positive number"
        )
    return m


def base_multiplier(portions: Sequence[PortionOption], quoted_portion_id: Optional[str] = None) -> Decimal:
    if not portions:
        raise ConfigurationError("Category has no portion options; tiered pricing is not available")

    if quoted_portion_id is not None:
        quoted = next((p for p in portions if p.id == quoted_portion_id), None)
        if quoted is None:
            raise ConfigurationError("The portion the base price is quoted at does not belong to this category")
        return _checked_multiplier(quoted)

    return min(_checked_multiplier(p) for p in portions)


def compute_portion_price(
    base_price: Decimal,
    portion: PortionOption,
    portions: Sequence[PortionOption],
    quoted_portion_id: Optional[str] = None,
) -> Decimal:
    divisor = base_multiplier(portions, quoted_portion_id)
    unit_price = base_price / divisor
    return round_currency(unit_price * _checked_multiplier(portion))


def resolve_portion_price(
    menu_item: MenuItem,
    portion: PortionOption,
    portions: Sequence[PortionOption],
    override: Optional[ItemPortionPrice] = None,
) -> PortionPrice:
    if override is not None:
        price, source = override.price, SOURCE_OVERRIDE
    elif portion.fixed_price is not None:
        price, source = portion.fixed_price, SOURCE_FIXED
    else:
        price = compute_portion_price(menu_item.price, portion, portions, menu_item.price_portion_id)
        source = SOURCE_COMPUTED

    return PortionPrice(
        portion_option_id=portion.id,
        name=portion.name,
        size=portion.size,
        price_multiplier=portion.price_multiplier,
        price=price,
        source=source,
    )


def sort_portions(portions: Sequence[PortionOption]):
    return sorted(portions, key=lambda p: (p.sort_order, p.price_multiplier))
