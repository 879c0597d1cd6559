import pytest
from marketplace.cart.cart import ShoppingCart
from marketplace.catalogue.product import Product, ProductStatus
from marketplace.order.order import Order
from protean import current_domain


@pytest.fixture()
def address():
    return {
        "street": "1 Market St",
        "city": "Springfield",
        "state": "IL",
        "postal_code": "62701",
        "country": "US",
    }


@pytest.fixture()
def make_product():
    """Persist a product directly through the repository."""

    def _make(
        name="Widget",
        selling_price=20.0,
        cost_price=8.0,
        on_hand=10,
        status=ProductStatus.ACTIVE,
        supplier_id="supplier-1",
        description=None,
    ):
        product = Product.create(
            supplier_id=supplier_id,
            name=name,
            description=description,
            selling_price=selling_price,
            cost_price=cost_price,
            on_hand=on_hand,
            status=status,
        )
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def stock_of():
    def _stock(product_or_id):
        product_id = getattr(product_or_id, "id", product_or_id)
        return current_domain.repository_for(Product).get(product_id).on_hand

    return _stock


@pytest.fixture()
def fill_cart():
    def _fill(owner_id, *lines):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get_or_create(owner_id)
        for product_id, quantity in lines:
            cart.add_item(str(product_id), quantity)
        repo.add(cart)
        return cart

    return _fill


@pytest.fixture()
def cart_lines():
    def _lines(owner_id):
        cart = current_domain.repository_for(ShoppingCart).for_owner(owner_id)
        return None if cart is None else sorted((line["product_id"], line["quantity"]) for line in cart.as_lines())

    return _lines


@pytest.fixture()
def order_count():
    def _count():
        return current_domain.repository_for(Order).list_all(limit=100).total

    return _count
