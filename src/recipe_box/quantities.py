from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP, localcontext

TWO_PLACES = Decimal("0.01")


def to_decimal(value: float | int | Decimal) -> Decimal:
    """Convert via ``str`` so 0.1 becomes Decimal('0.1'), not its binary expansion."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value: float | int | Decimal) -> Decimal:
    """Round half away from zero to 2 decimal places (1.005 -> 1.01, -1.005 -> -1.01)."""
    amount = to_decimal(value)
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus two decimals
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_decimal(value: Decimal) -> str:
    """Render without trailing zeros: 4.00 -> '4', 1.50 -> '1.5', 0.67 -> '0.67'."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
