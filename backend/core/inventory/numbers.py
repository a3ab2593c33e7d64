from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError


def to_decimal(value, what: str = "value") -> Decimal:
    """Convert a number (or numeric string) to a finite Decimal.

    Floats go through ``str`` so 0.1 stays 0.1.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{what} is required")
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, (int, float)):
        d = Decimal(str(value))
    elif isinstance(value, str):
        v = value.strip()
        if not v:
            raise ValidationError(f"{what} is required")
        try:
            d = Decimal(v)
        except InvalidOperation:
            raise ValidationError(f"{what} must be a number, got {value!r}")
    else:
        raise ValidationError(f"{what} must be a number")
    if not d.is_finite():
        raise ValidationError(f"{what} must be a finite number")
    return d


def to_optional_decimal(value, what: str = "value"):
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return to_decimal(value, what)


def round_currency(value: Decimal) -> Decimal:
    # Half-up to whole currency units; there is no fractional currency on the bill.
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def fmt_quantity(value: Decimal) -> str:
    """750 -> '750', 2.50 -> '2.5'."""
    if value == value.to_integral_value():
        return str(value.quantize(Decimal("1")))
    return format(value.normalize(), "f")
