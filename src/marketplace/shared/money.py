"""Currency arithmetic.

Amounts are persisted as floats (Protean ``Float`` fields) but every sum is
carried out in ``Decimal`` and quantized to cents, so ``0.1 + 0.2`` style
drift never reaches a stored total.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_decimal(amount) -> Decimal:
    """Convert a stored amount to a cent-quantized ``Decimal``."""
    if amount is None:
        return Decimal("0.00")
    if isinstance(amount, Decimal):
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    # str() keeps the float's shortest repr instead of its binary expansion
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def to_amount(value: Decimal) -> float:
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def line_total(unit_price, quantity: int) -> Decimal:
    return (to_decimal(unit_price) * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
