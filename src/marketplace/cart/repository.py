"""Cart lookups by owner."""

from marketplace.cart.cart import ShoppingCart
from marketplace.domain import marketplace


@marketplace.repository(part_of=ShoppingCart)
class CartRepository:
    def for_owner(self, owner_id) -> ShoppingCart | None:
        return self._dao.query.filter(owner_id=str(owner_id)).all().first

    def get_or_create(self, owner_id) -> ShoppingCart:
        """Return the owner's cart, persisting an empty one on first access."""
        cart = self.for_owner(owner_id)
        if cart is None:
            cart = ShoppingCart.create(owner_id=owner_id)
            self.add(cart)
        return cart

    def discard(self, cart: ShoppingCart) -> None:
        """Delete a cart record together with its line items."""
        for item in list(cart.items):
            cart.remove_items(item)
        self.add(cart)
        self._dao.delete(cart)
