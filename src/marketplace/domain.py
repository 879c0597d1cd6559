"""Marketplace domain: catalogue, carts and orders.

All three aggregates live in one Protean domain so that the order-creation
transaction can decrement stock, insert the order and clear the cart inside
a single unit of work.
"""

from protean.domain import Domain

from marketplace.utils.logging import configure_logging, get_logger

configure_logging(log_file_prefix="marketplace")

logger = get_logger(__name__)

marketplace = Domain(name="marketplace")
