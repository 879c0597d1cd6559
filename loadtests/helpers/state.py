"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance keeps its own state; nothing is shared between
users except where a scenario says so explicitly.
"""

from dataclasses import dataclass, field


@dataclass
class ShopperState:
    """A shopper who browses as a guest, signs in and checks out."""

    shopper_id: str | None = None
    guest_id: str | None = None
    seen_product_ids: list[str] = field(default_factory=list)
    cart_item_count: int = 0
    order_ids: list[str] = field(default_factory=list)


@dataclass
class SupplierState:
    """A supplier maintaining a small catalogue and working their orders."""

    supplier_id: str | None = None
    product_ids: list[str] = field(default_factory=list)
    advanced_order_ids: list[str] = field(default_factory=list)
