"""Domain events for the ShoppingCart aggregate."""

from protean.fields import DateTime, Identifier, Integer

from marketplace.domain import marketplace


@marketplace.event(part_of="ShoppingCart")
class CartItemAdded:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@marketplace.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@marketplace.event(part_of="ShoppingCart")
class CartItemRemoved:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.event(part_of="ShoppingCart")
class CartCleared:
    """All items were removed, typically because the owner placed an order."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    items_removed = Integer(required=True)
    cleared_at = DateTime(required=True)


@marketplace.event(part_of="ShoppingCart")
class CartsMerged:
    """A guest cart was folded into a registered owner's cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    guest_owner_id = Identifier(required=True)
    items_merged_count = Integer(required=True)
