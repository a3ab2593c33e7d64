"""
Stock entry resolution.

Turns what the "Add Stock" form submits (bottle quick-entry fields and/or a
direct quantity) into one signed delta plus the note stored on the movement.
Applying the delta is the service's job.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .errors import ValidationError
from .numbers import fmt_quantity, to_decimal, to_optional_decimal
from .units import DEFAULT_BOTTLE_SIZE

CUSTOM_BOTTLE_SIZE = "custom"


@dataclass(frozen=True)
class StockEntry:
    quantity: Decimal
    notes: Optional[str]
    bottle_count: Optional[Decimal] = None
    bottle_size: Optional[Decimal] = None

    @property
    def from_bottles(self) -> bool:
        return self.bottle_count is not None


def clean_notes(notes: Optional[str]) -> Optional[str]:
    if notes is None:
        return None
    notes = notes.strip()
    return notes or None


def parse_quantity(value, what: str = "quantity") -> Decimal:
    """Parse a (possibly textual) quantity; blank and non-finite input is rejected."""
    return to_decimal(value, what)


def validate_bottle_size(size, what: str = "bottle size") -> Decimal:
    d = to_decimal(size, what)
    if d <= 0:
        raise ValidationError(f"{what} must be greater than 0")
    return d


def resolve_bottle_size(bottle_size, custom_bottle_size=None, default_bottle_size=None) -> Decimal:
    if isinstance(bottle_size, str):
        bottle_size = bottle_size.strip()
        if bottle_size.lower() == CUSTOM_BOTTLE_SIZE:
            return validate_bottle_size(custom_bottle_size, "custom bottle size")
    if bottle_size is None or bottle_size == "":
        fallback = default_bottle_size if default_bottle_size is not None else DEFAULT_BOTTLE_SIZE
        return validate_bottle_size(fallback)
    return validate_bottle_size(bottle_size)


def bottle_notes(count: Decimal, size: Decimal, notes: Optional[str] = None) -> str:
    text = f"{fmt_quantity(count)} bottles × {fmt_quantity(size)}ml"
    notes = clean_notes(notes)
    if notes:
        text += f" - {notes}"
    return text


def resolve_stock_entry(
    bottle_count=None,
    bottle_size=None,
    custom_bottle_size=None,
    quantity=None,
    notes: Optional[str] = None,
    default_bottle_size=None,
) -> StockEntry:
    """
    Resolve the stock-entry form into a strictly positive quantity.

    Bottle fields take priority; the direct quantity is only read when no
    bottle count was entered.
    """
    count = to_optional_decimal(bottle_count, "bottle count")
    if count is not None:
        size = resolve_bottle_size(bottle_size, custom_bottle_size, default_bottle_size)
        entry = StockEntry(
            quantity=count * size,
            notes=bottle_notes(count, size, notes),
            bottle_count=count,
            bottle_size=size,
        )
    else:
        direct = to_optional_decimal(quantity, "quantity")
        if direct is None:
            raise ValidationError("Select item and enter quantity")
        entry = StockEntry(quantity=direct, notes=clean_notes(notes))

    if entry.quantity <= 0:
        raise ValidationError("Enter a valid quantity")
    return entry
