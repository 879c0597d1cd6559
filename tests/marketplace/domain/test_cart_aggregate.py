"""Tests for the ShoppingCart aggregate."""

import pytest
from marketplace.cart.cart import ShoppingCart
from marketplace.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated, CartsMerged
from protean.exceptions import ValidationError


def _make_cart(owner_id="user-001"):
    return ShoppingCart.create(owner_id=owner_id)


class TestAddItem:
    def test_add_item(self):
        cart = _make_cart()
        cart.add_item("prod-001", 2)
        assert cart.quantity_of("prod-001") == 2

    def test_add_same_product_increases_quantity(self):
        cart = _make_cart()
        cart.add_item("prod-001", 1)
        cart.add_item("prod-001", 2)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3

    def test_add_raises_event_with_running_quantity(self):
        cart = _make_cart()
        cart.add_item("prod-001", 1)
        cart.add_item("prod-001", 2)
        events = [e for e in cart._events if isinstance(e, CartItemAdded)]
        assert [e.new_quantity for e in events] == [1, 3]

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_add_requires_positive_quantity(self, quantity):
        with pytest.raises(ValidationError):
            _make_cart().add_item("prod-001", quantity)

    def test_new_items_are_stamped(self):
        cart = _make_cart()
        cart.add_item("prod-001", 1)
        assert cart.items[0].added_at is not None


class TestSetQuantity:
    def test_set_quantity(self):
        cart = _make_cart()
        cart.add_item("prod-001", 1)
        cart.set_quantity("prod-001", 5)
        assert cart.quantity_of("prod-001") == 5
        assert any(isinstance(e, CartQuantityUpdated) for e in cart._events)

    def test_zero_removes_the_line(self):
        cart = _make_cart()
        cart.add_item("prod-001", 1)
        cart.set_quantity("prod-001", 0)
        assert cart.items == []
        assert any(isinstance(e, CartItemRemoved) for e in cart._events)

    def test_zero_for_absent_product_is_noop(self):
        cart = _make_cart()
        cart.set_quantity("prod-404", 0)
        assert cart.items == []

    def test_negative_quantity_rejected(self):
        cart = _make_cart()
        cart.add_item("prod-001", 1)
        with pytest.raises(ValidationError):
            cart.set_quantity("prod-001", -1)
        assert cart.quantity_of("prod-001") == 1

    def test_unknown_product_rejected(self):
        with pytest.raises(ValidationError):
            _make_cart().set_quantity("prod-404", 2)


class TestRemoveItem:
    def test_remove(self):
        cart = _make_cart()
        cart.add_item("prod-001", 1)
        cart.add_item("prod-002", 1)
        cart.remove_item("prod-001")
        assert [str(i.product_id) for i in cart.items] == ["prod-002"]

    def test_remove_unknown_rejected(self):
        with pytest.raises(ValidationError):
            _make_cart().remove_item("prod-404")


class TestClear:
    def test_clear_empties_items(self):
        cart = _make_cart()
        cart.add_item("prod-001", 1)
        cart.add_item("prod-002", 3)
        cart.clear()
        assert cart.items == []
        event = next(e for e in cart._events if isinstance(e, CartCleared))
        assert event.items_removed == 2

    def test_clear_empty_cart_is_noop(self):
        cart = _make_cart()
        cart.clear()
        cart.clear()
        assert cart.items == []
        assert not any(isinstance(e, CartCleared) for e in cart._events)


class TestAbsorb:
    def test_sums_matching_products_and_adds_new_ones(self):
        cart = _make_cart()
        cart.add_item("prod-001", 2)
        guest = _make_cart("guest-001")
        guest.add_item("prod-001", 3)
        guest.add_item("prod-002", 1)

        cart.absorb(guest)

        assert sorted(cart.as_lines(), key=lambda line: line["product_id"]) == [
            {"product_id": "prod-001", "quantity": 5},
            {"product_id": "prod-002", "quantity": 1},
        ]
        event = next(e for e in cart._events if isinstance(e, CartsMerged))
        assert event.guest_owner_id == "guest-001"
        assert event.items_merged_count == 2

    def test_empty_guest_cart_changes_nothing(self):
        cart = _make_cart()
        cart.add_item("prod-001", 2)
        cart._events.clear()

        cart.absorb(_make_cart("guest-001"))

        assert cart.as_lines() == [{"product_id": "prod-001", "quantity": 2}]
        assert cart._events == []
