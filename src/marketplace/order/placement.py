"""Order placement — turns a purchaser's item list into a pending order.

The whole operation runs inside the command handler's unit of work:

1. validate the item list and the shipping address
2. load every requested product that is active, in one query
3. check stock on the loaded records and freeze name, price, cost, supplier
4. take the stock with one conditional write per line
5. fail if any conditional write did not land
6. compute totals from the frozen snapshot
7. persist the order as pending
8. empty the purchaser's cart

Any exception rolls the unit of work back: no order, no stock change, cart
untouched. Nothing is retried here; a purchaser who loses a race is told to
refresh and try again.
"""

import json
import threading
from contextlib import nullcontext

import structlog
from protean import handle
from protean.exceptions import DatabaseError, ExpectedVersionError, TransactionError, ValidationError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain
from sqlalchemy.exc import SQLAlchemyError

from marketplace.cart.cart import ShoppingCart
from marketplace.catalogue.product import Product
from marketplace.domain import marketplace
from marketplace.exceptions import (
    InsufficientStockError,
    MarketplaceError,
    PersistenceError,
    ProductUnavailableError,
)
from marketplace.order.order import Order
from marketplace.order.pricing import compute_totals

logger = structlog.get_logger(__name__)

REQUIRED_ADDRESS_FIELDS = ("street", "city", "postal_code", "country")

# The in-memory store commits a whole snapshot per unit of work; placements
# against it run one at a time.
_memory_placement_lock = threading.Lock()


@marketplace.command(part_of="Order")
class PlaceOrder:
    """Place an order for the purchaser (registered or guest)."""

    purchaser_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity}
    shipping_address = Text(required=True)  # JSON: {street, city, state?, postal_code, country}


def _loads(value):
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return None


def normalize_items(items) -> list[dict]:
    """Validate order lines and merge repeated products into one line each."""
    if not isinstance(items, list) or not items:
        raise ValidationError({"items": ["An order needs at least one item"]})

    quantities = {}
    errors = []
    for position, line in enumerate(items, start=1):
        if not isinstance(line, dict) or not line.get("product_id"):
            errors.append(f"Item {position}: product_id is required")
            continue
        quantity = line.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            errors.append(f"Item {position}: quantity must be a whole number of at least 1")
            continue
        product_id = str(line["product_id"])
        quantities[product_id] = quantities.get(product_id, 0) + quantity

    if errors:
        raise ValidationError({"items": errors})

    return [{"product_id": product_id, "quantity": quantity} for product_id, quantity in quantities.items()]


def normalize_address(address) -> dict:
    """Check that every required address field is present and not blank.

    ``zip`` is accepted as an alias for ``postal_code``.
    """
    if not isinstance(address, dict):
        raise ValidationError({"shipping_address": ["A shipping address is required"]})

    address = dict(address)
    if not address.get("postal_code") and address.get("zip"):
        address["postal_code"] = address["zip"]

    cleaned = {field: str(address.get(field) or "").strip() for field in REQUIRED_ADDRESS_FIELDS}
    missing = [field for field, value in cleaned.items() if not value]
    if missing:
        raise ValidationError({"shipping_address": [f"{field} is required" for field in missing]})

    if address.get("state"):
        cleaned["state"] = str(address["state"]).strip()
    return cleaned


def snapshot_lines(lines, products) -> list[dict]:
    """Check stock on the loaded records and freeze what the order keeps.

    ``products`` maps product id to the record loaded in this unit of work.
    """
    snapshot = []
    for line in lines:
        product = products[line["product_id"]]
        if product.on_hand < line["quantity"]:
            raise InsufficientStockError(
                product_id=product.id,
                product_name=product.name,
                requested=line["quantity"],
                available=product.on_hand,
            )
        snapshot.append(
            {
                "product_id": str(product.id),
                "product_name": product.name,
                "quantity": line["quantity"],
                "unit_price": product.pricing.selling,
                "cost_price": product.pricing.cost,
                "supplier_id": str(product.supplier_id),
            }
        )
    return snapshot


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        lines = normalize_items(_loads(command.items))
        address = normalize_address(_loads(command.shipping_address))

        product_repo = current_domain.repository_for(Product)
        products = {str(p.id): p for p in product_repo.active_by_ids([line["product_id"] for line in lines])}
        if len(products) != len(lines):
            raise ProductUnavailableError([line["product_id"] for line in lines if line["product_id"] not in products])

        snapshot = snapshot_lines(lines, products)

        # Every line is attempted so the count reflects the whole order
        taken = [product_repo.decrement_stock(line["product_id"], line["quantity"]) for line in lines]
        if sum(taken) != len(lines):
            logger.warning(
                "stock_changed_during_checkout",
                purchaser_id=str(command.purchaser_id),
                product_ids=[line["product_id"] for line, ok in zip(lines, taken, strict=True) if not ok],
            )
            raise InsufficientStockError.stale_read()

        order = Order.place(
            user_id=command.purchaser_id,
            lines=snapshot,
            shipping_address=address,
            totals=compute_totals(snapshot),
        )
        current_domain.repository_for(Order).add(order)

        cart_repo = current_domain.repository_for(ShoppingCart)
        cart = cart_repo.for_owner(command.purchaser_id)
        if cart is not None and cart.items:
            cart.clear()
            cart_repo.add(cart)
            logger.debug("cart_cleared", owner_id=str(command.purchaser_id), reason="order_placed")

        logger.info(
            "order_placed",
            order_id=str(order.id),
            purchaser_id=str(command.purchaser_id),
            lines=len(snapshot),
            total=order.totals.total,
        )
        return str(order.id)


def _placement_guard():
    provider = current_domain.repository_for(Product)._provider
    if provider.conn_info["provider"] == "memory":
        return _memory_placement_lock
    return nullcontext()


def place_order(purchaser_id, items, shipping_address) -> Order:
    """Place an order and return it.

    Raises ``ValidationError``, ``ProductUnavailableError`` or
    ``InsufficientStockError`` for requests that cannot be fulfilled, and
    ``PersistenceError`` when the store fails underneath the transaction.
    """
    command = PlaceOrder(
        purchaser_id=purchaser_id,
        items=json.dumps(items, default=str),
        shipping_address=json.dumps(shipping_address, default=str),
    )

    try:
        with _placement_guard():
            order_id = current_domain.process(command, asynchronous=False)
    except (ValidationError, MarketplaceError) as exc:
        logger.info("order_rejected", purchaser_id=str(purchaser_id), reason=type(exc).__name__)
        raise
    except (SQLAlchemyError, DatabaseError, ExpectedVersionError, TransactionError, OSError) as exc:
        logger.error("order_commit_failed", purchaser_id=str(purchaser_id), exc_info=True)
        raise PersistenceError("The order could not be saved. No stock was taken; please try again.") from exc

    return current_domain.repository_for(Order).get(order_id)
