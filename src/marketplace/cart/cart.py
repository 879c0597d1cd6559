"""Shopping Cart aggregate — one cart per owner, registered or guest.

A cart is created lazily the first time its owner touches it, absorbs a
guest cart when the guest registers, and is emptied (not deleted) when the
owner places an order.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer

from marketplace.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartsMerged,
)
from marketplace.domain import marketplace


@marketplace.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@marketplace.aggregate
class ShoppingCart:
    owner_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def each_product_appears_once(self):
        product_ids = [str(i.product_id) for i in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"items": ["A product can appear only once in a cart"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, owner_id):
        now = datetime.now(UTC)
        return cls(owner_id=owner_id, created_at=now, updated_at=now)

    def _find(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def quantity_of(self, product_id) -> int:
        item = self._find(product_id)
        return item.quantity if item else 0

    def as_lines(self) -> list[dict]:
        return [{"product_id": str(i.product_id), "quantity": i.quantity} for i in self.items]

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity=1):
        """Add a product, or increase its quantity if it is already in the cart."""
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = self._find(product_id)
        if existing:
            existing.quantity += quantity
            new_quantity = existing.quantity
        else:
            self.add_items(CartItem(product_id=product_id, quantity=quantity, added_at=now))
            new_quantity = quantity

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                owner_id=str(self.owner_id),
                product_id=str(product_id),
                quantity=quantity,
                new_quantity=new_quantity,
            )
        )

    def set_quantity(self, product_id, quantity):
        """Set a line to an exact quantity; zero removes the line."""
        if quantity is None or quantity < 0:
            raise ValidationError({"quantity": ["Quantity cannot be negative"]})

        item = self._find(product_id)
        if item is None:
            if quantity == 0:
                return
            raise ValidationError({"product_id": ["Product is not in the cart"]})

        if quantity == 0:
            self.remove_item(product_id)
            return

        previous_quantity = item.quantity
        item.quantity = quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, product_id):
        item = self._find(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), product_id=str(product_id)))

    def clear(self):
        """Empty the cart. Clearing an empty cart does nothing."""
        if not self.items:
            return

        removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)

        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                owner_id=str(self.owner_id),
                items_removed=removed,
                cleared_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Cart merging (guest → registered)
    # -------------------------------------------------------------------
    def absorb(self, guest_cart):
        """Fold a guest cart's lines into this cart.

        Quantities for products already present are summed; new lines are
        stamped with the merge time.
        """
        if not guest_cart.items:
            return

        now = datetime.now(UTC)
        for guest_item in guest_cart.items:
            existing = self._find(guest_item.product_id)
            if existing:
                existing.quantity += guest_item.quantity
            else:
                self.add_items(
                    CartItem(
                        product_id=guest_item.product_id,
                        quantity=guest_item.quantity,
                        added_at=now,
                    )
                )

        self.updated_at = now

        self.raise_(
            CartsMerged(
                cart_id=str(self.id),
                owner_id=str(self.owner_id),
                guest_owner_id=str(guest_cart.owner_id),
                items_merged_count=len(guest_cart.items),
            )
        )
