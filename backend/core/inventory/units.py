from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import List, Tuple

from .errors import ConfigurationError


class UnitType(str, Enum):
    ML = "ml"
    PCS = "pcs"
    GRAMS = "grams"
    BOTTLE = "bottle"
    PACK = "pack"

    @property
    def label(self) -> str:
        return UNIT_LABELS[self]

    @classmethod
    def parse(cls, value) -> "UnitType":
        if isinstance(value, UnitType):
            return value
        v = (value or "").strip().lower() if isinstance(value, str) else value
        try:
            return cls(v)
        except ValueError:
            allowed = ", ".join(u.value for u in cls)
            raise ConfigurationError(f"Unknown unit type {value!r} (expected one of: {allowed})")


UNIT_LABELS = {
    UnitType.ML: "Milliliters (ml)",
    UnitType.PCS: "Pieces (pcs)",
    UnitType.GRAMS: "Grams (g)",
    UnitType.BOTTLE: "Bottles",
    UnitType.PACK: "Packs",
}

# Quick-entry bottle sizes offered for volume items (ml)
COMMON_BOTTLE_SIZES: Tuple[int, ...] = (180, 375, 750, 1000)
DEFAULT_BOTTLE_SIZE = 750


@dataclass(frozen=True)
class PortionTemplate:
    name: str
    size: Decimal
    multiplier: Decimal


def _ladder(*rows) -> List[PortionTemplate]:
    return [PortionTemplate(name=n, size=Decimal(str(s)), multiplier=Decimal(str(m))) for (n, s, m) in rows]


# Cost per ml drops as the pour gets larger.
_VOLUME_LADDER = (
    ("30ml (Peg)", 30, "0.5"),
    ("60ml (Large)", 60, "1"),
    ("90ml", 90, "1.5"),
    ("180ml (QTR)", 180, "2.8"),
    ("375ml (Half)", 375, "5.5"),
    ("750ml (Full)", 750, "10"),
    ("1000ml", 1000, "13.3"),
)

_PIECE_LADDER = (
    ("1 Piece", 1, "1"),
    ("Pack (20)", 20, "18"),
)


def default_portions(unit_type) -> List[PortionTemplate]:
    """Default portion ladder used to seed a newly tracked category.

    Every unit type has its own branch so that adding a member to
    ``UnitType`` without a ladder fails loudly instead of silently
    inheriting the wrong one.
    """
    unit = UnitType.parse(unit_type)
    if unit is UnitType.ML:
        return _ladder(*_VOLUME_LADDER)
    if unit is UnitType.PCS:
        return _ladder(*_PIECE_LADDER)
    if unit is UnitType.GRAMS:
        return _ladder(*_PIECE_LADDER)
    if unit is UnitType.BOTTLE:
        return _ladder(*_PIECE_LADDER)
    if unit is UnitType.PACK:
        return _ladder(*_PIECE_LADDER)
    raise ConfigurationError(f"No default portions defined for unit type {unit.value!r}")


def default_bottle_size_for(unit_type):
    """Seeded quick-entry bottle size; only volume items get one."""
    return Decimal(DEFAULT_BOTTLE_SIZE) if UnitType.parse(unit_type) is UnitType.ML else None
