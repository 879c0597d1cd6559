"""Order totals.

``subtotal`` is the sum of the line totals, shipping is free from 50.00
upwards and a flat 5.99 below that, and ``total = subtotal + shipping``.
"""

from decimal import Decimal

from marketplace.shared.money import line_total, to_amount

FREE_SHIPPING_THRESHOLD = Decimal("50.00")
FLAT_SHIPPING = Decimal("5.99")


def shipping_for(subtotal: Decimal) -> Decimal:
    return Decimal("0.00") if subtotal >= FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING


def compute_totals(lines) -> dict:
    """Totals for a list of ``{unit_price, quantity}`` mappings, as floats."""
    subtotal = sum((line_total(line["unit_price"], line["quantity"]) for line in lines), Decimal("0.00"))
    shipping = shipping_for(subtotal)
    return {
        "subtotal": to_amount(subtotal),
        "shipping": to_amount(shipping),
        "total": to_amount(subtotal + shipping),
    }
