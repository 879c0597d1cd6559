"""Order aggregate — the durable record of a purchase.

An order is created once, by the order-creation transaction, with a frozen
snapshot of every product line (name, selling price, cost, supplier) and
totals computed from that snapshot. Afterwards only ``status`` and
``updated_at`` change.

State Machine:
    PENDING → PROCESSING → SHIPPED → DELIVERED
    PENDING | PROCESSING → CANCELLED
    DELIVERED and CANCELLED are terminal.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from marketplace.domain import marketplace
from marketplace.exceptions import InvalidTransitionError
from marketplace.order.events import OrderPlaced, OrderStatusChanged
from marketplace.shared.money import to_decimal


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value):
        try:
            return value if isinstance(value, cls) else cls(str(value).lower())
        except ValueError as exc:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationError({"status": [f"Unknown order status '{value}'. Expected one of: {allowed}"]}) from exc


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


def allowed_transitions(status) -> set:
    return set(_VALID_TRANSITIONS[OrderStatus.parse(status)])


def can_transition(current, target) -> bool:
    return OrderStatus.parse(target) in allowed_transitions(current)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships to, captured at purchase time and never edited."""

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


@marketplace.value_object(part_of="Order")
class OrderTotals:
    subtotal = Float(required=True, min_value=0.0)
    shipping = Float(required=True, min_value=0.0)
    total = Float(required=True, min_value=0.0)

    @invariant.post
    def total_is_subtotal_plus_shipping(self):
        if to_decimal(self.subtotal) + to_decimal(self.shipping) != to_decimal(self.total):
            raise ValidationError({"total": ["Total must equal subtotal plus shipping"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    """One purchased line, frozen at the moment of purchase.

    Later catalogue edits to name or price never reach an existing order.
    """

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    cost_price = Float(min_value=0.0)
    supplier_id = Identifier(required=True)

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    user_id = Identifier(required=True)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress, required=True)
    totals = ValueObject(OrderTotals, required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    # ",supplier-a,supplier-b," so that membership is a substring match
    supplier_index = Text()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, user_id, lines, shipping_address, totals):
        """Create a pending order from an already-validated snapshot.

        Args:
            user_id: The purchaser (registered or guest identity).
            lines: List of dicts with product_id, product_name, quantity,
                   unit_price, cost_price, supplier_id.
            shipping_address: Dict with street, city, postal_code, country
                              and optionally state.
            totals: Dict with subtotal, shipping, total.
        """
        now = datetime.now(UTC)
        supplier_ids = list(dict.fromkeys(str(line["supplier_id"]) for line in lines))

        order = cls(
            user_id=user_id,
            items=[OrderItem(**line) for line in lines],
            shipping_address=ShippingAddress(**shipping_address),
            totals=OrderTotals(**totals),
            status=OrderStatus.PENDING.value,
            supplier_index=supplier_key(*supplier_ids),
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                items=json.dumps(lines),
                supplier_ids=json.dumps(supplier_ids),
                subtotal=order.totals.subtotal,
                shipping=order.totals.shipping,
                total=order.totals.total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def supplier_ids(self) -> list[str]:
        return [s for s in (self.supplier_index or "").split(",") if s]

    def contains_supplier(self, supplier_id) -> bool:
        return str(supplier_id) in self.supplier_ids

    def items_for_supplier(self, supplier_id) -> list:
        return [i for i in self.items if str(i.supplier_id) == str(supplier_id)]

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def transition_to(self, target_status):
        """Move to ``target_status`` if the state machine allows it."""
        target = OrderStatus.parse(target_status)
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidTransitionError(current.value, target.value)

        self._set_status(current, target, overridden=False)

    def override_status(self, target_status):
        """Set the status directly, without consulting the transition table.

        Callers are responsible for restricting this to privileged actors.
        """
        target = OrderStatus.parse(target_status)
        current = OrderStatus(self.status)
        if target == current:
            return

        self._set_status(current, target, overridden=True)

    def _set_status(self, current, target, overridden):
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                overridden=overridden,
                changed_at=now,
            )
        )


def supplier_key(*supplier_ids) -> str:
    """Delimited membership key, e.g. ``",s1,s2,"``; ``supplier_key("s1")`` is ``",s1,"``."""
    return "," + ",".join(str(s) for s in supplier_ids) + ","
