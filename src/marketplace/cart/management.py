"""Cart management — commands and handler.

Every cart command is addressed by owner id; the cart is created on first
use so callers never need a separate "create cart" step.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.domain import marketplace

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="ShoppingCart")
class OpenCart:
    """Fetch the owner's cart, creating an empty one if none exists."""

    owner_id = Identifier(required=True)


@marketplace.command(part_of="ShoppingCart")
class AddToCart:
    owner_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)


@marketplace.command(part_of="ShoppingCart")
class SetCartQuantity:
    owner_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@marketplace.command(part_of="ShoppingCart")
class RemoveFromCart:
    owner_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.command(part_of="ShoppingCart")
class ClearCart:
    owner_id = Identifier(required=True)


@marketplace.command(part_of="ShoppingCart")
class MergeGuestCart:
    """Fold a guest's cart into a registered owner's cart and delete the guest cart."""

    owner_id = Identifier(required=True)
    guest_owner_id = Identifier(required=True)


@marketplace.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(OpenCart)
    def open_cart(self, command):
        cart = current_domain.repository_for(ShoppingCart).get_or_create(command.owner_id)
        return str(cart.id)

    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get_or_create(command.owner_id)
        cart.add_item(command.product_id, command.quantity)
        repo.add(cart)
        return str(cart.id)

    @handle(SetCartQuantity)
    def set_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get_or_create(command.owner_id)
        cart.set_quantity(command.product_id, command.quantity)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get_or_create(command.owner_id)
        cart.remove_item(command.product_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.for_owner(command.owner_id)
        if cart is None or not cart.items:
            return
        removed = len(cart.items)
        cart.clear()
        repo.add(cart)

        logger.info("cart_cleared", owner_id=str(command.owner_id), items_removed=removed)

    @handle(MergeGuestCart)
    def merge_guest_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        if str(command.owner_id) == str(command.guest_owner_id):
            return

        guest_cart = repo.for_owner(command.guest_owner_id)
        if guest_cart is None or not guest_cart.items:
            return

        cart = repo.get_or_create(command.owner_id)
        merged = len(guest_cart.items)
        cart.absorb(guest_cart)
        repo.add(cart)
        repo.discard(guest_cart)

        logger.info(
            "guest_cart_merged",
            owner_id=str(command.owner_id),
            guest_owner_id=str(command.guest_owner_id),
            items_merged=merged,
        )
