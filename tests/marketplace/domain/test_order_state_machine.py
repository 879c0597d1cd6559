"""Tests for the Order state machine: every (from, to) pair and the admin override."""

import itertools

import pytest
from marketplace.exceptions import InvalidTransitionError
from marketplace.order.events import OrderStatusChanged
from marketplace.order.order import Order, OrderStatus, allowed_transitions, can_transition

_ALLOWED = {
    (OrderStatus.PENDING, OrderStatus.PROCESSING),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
    (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
}

_ALL_PAIRS = list(itertools.product(OrderStatus, OrderStatus))
_DISALLOWED = [pair for pair in _ALL_PAIRS if pair not in _ALLOWED]


def _make_order():
    return Order.place(
        user_id="user-001",
        lines=[
            {
                "product_id": "prod-001",
                "product_name": "Widget",
                "quantity": 1,
                "unit_price": 20.0,
                "cost_price": 8.0,
                "supplier_id": "supplier-1",
            }
        ],
        shipping_address={"street": "1 St", "city": "C", "postal_code": "00000", "country": "US"},
        totals={"subtotal": 20.0, "shipping": 5.99, "total": 25.99},
    )


def _order_at_state(status):
    """Create an order and put it directly in ``status``."""
    order = _make_order()
    order.status = status.value
    order._events.clear()
    return order


class TestTransitionTable:
    def test_terminal_states_have_no_exits(self):
        assert allowed_transitions(OrderStatus.DELIVERED) == set()
        assert allowed_transitions(OrderStatus.CANCELLED) == set()

    def test_can_transition_accepts_strings(self):
        assert can_transition("pending", "processing")
        assert not can_transition("pending", "shipped")


class TestValidTransitions:
    @pytest.mark.parametrize(("current", "target"), sorted(_ALLOWED, key=lambda p: (p[0].value, p[1].value)))
    def test_allowed_transition_changes_status(self, current, target):
        order = _order_at_state(current)
        order.transition_to(target)
        assert order.status == target.value

    def test_transition_raises_status_changed_event(self):
        order = _order_at_state(OrderStatus.PENDING)
        order.transition_to("processing")

        events = [e for e in order._events if isinstance(e, OrderStatusChanged)]
        assert len(events) == 1
        assert events[0].previous_status == "pending"
        assert events[0].new_status == "processing"
        assert events[0].overridden is False

    def test_full_happy_path(self):
        order = _order_at_state(OrderStatus.PENDING)
        for status in ("processing", "shipped", "delivered"):
            order.transition_to(status)
        assert order.status == OrderStatus.DELIVERED.value


class TestInvalidTransitions:
    @pytest.mark.parametrize(("current", "target"), _DISALLOWED, ids=lambda s: s.value)
    def test_disallowed_transition_fails_and_leaves_status(self, current, target):
        order = _order_at_state(current)

        with pytest.raises(InvalidTransitionError) as exc:
            order.transition_to(target)

        assert exc.value.current == current.value
        assert exc.value.target == target.value
        assert order.status == current.value
        assert order._events == []

    def test_pending_straight_to_shipped_names_the_pair(self):
        order = _order_at_state(OrderStatus.PENDING)
        with pytest.raises(InvalidTransitionError, match="pending to shipped"):
            order.transition_to(OrderStatus.SHIPPED)


class TestOverride:
    def test_override_skips_the_table(self):
        order = _order_at_state(OrderStatus.PENDING)
        order.override_status(OrderStatus.DELIVERED)
        assert order.status == OrderStatus.DELIVERED.value

    def test_override_can_leave_a_terminal_state(self):
        order = _order_at_state(OrderStatus.CANCELLED)
        order.override_status("processing")
        assert order.status == OrderStatus.PROCESSING.value

    def test_override_marks_event(self):
        order = _order_at_state(OrderStatus.SHIPPED)
        order.override_status(OrderStatus.CANCELLED)
        event = next(e for e in order._events if isinstance(e, OrderStatusChanged))
        assert event.overridden is True

    def test_override_to_same_status_is_noop(self):
        order = _order_at_state(OrderStatus.SHIPPED)
        order.override_status(OrderStatus.SHIPPED)
        assert order._events == []
