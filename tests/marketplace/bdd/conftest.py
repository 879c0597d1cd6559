"""Shared BDD fixtures and step definitions for the marketplace."""

import pytest
from marketplace.catalogue.product import Product, ProductStatus
from marketplace.order.order import Order
from marketplace.order.placement import place_order
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def catalogue():
    """Products created by the scenario, keyed by name."""
    return {}


@pytest.fixture()
def outcome():
    """The order placed by the scenario and any errors raised along the way."""
    return {"order": None, "errors": []}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.parse('the shipping address "{line}"'), target_fixture="address")
def shipping_address(line):
    street, city, postal_code, country = (part.strip() for part in line.split(","))
    return {"street": street, "city": city, "postal_code": postal_code, "country": country}


@given(parsers.parse('an active product "{name}" with {on_hand:d} in stock priced at {price:f}'))
def active_product(catalogue, make_product, name, on_hand, price):
    catalogue[name] = make_product(name=name, selling_price=price, on_hand=on_hand)


@given(parsers.parse('a draft product "{name}" with {on_hand:d} in stock priced at {price:f}'))
def draft_product(catalogue, make_product, name, on_hand, price):
    catalogue[name] = make_product(name=name, selling_price=price, on_hand=on_hand, status=ProductStatus.DRAFT)


@given(parsers.parse('"{purchaser_id}" has placed an order for {quantity:d} of "{name}"'), target_fixture="order")
def placed_order(catalogue, outcome, address, purchaser_id, quantity, name):
    outcome["order"] = place_order(
        purchaser_id, [{"product_id": catalogue[name].id, "quantity": quantity}], address
    )
    return outcome["order"]


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.parse("the order is {status:w}"))
def order_has_status(outcome, status):
    assert current_domain.repository_for(Order).get(outcome["order"].id).status == status


@then(parsers.parse('"{name}" has {on_hand:d} in stock'))
def product_stock(catalogue, name, on_hand):
    assert current_domain.repository_for(Product).get(catalogue[name].id).on_hand == on_hand
