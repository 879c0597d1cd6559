"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Product")
class ProductCreated:
    """A supplier (or an admin on their behalf) listed a new product."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    name = String(required=True)
    selling_price = Float(required=True)
    status = String(required=True)
    on_hand = Integer()
    created_at = DateTime(required=True)


@marketplace.event(part_of="Product")
class ProductDetailsUpdated:
    """Name, description or prices changed. Existing orders keep their snapshot."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    name = String(required=True)
    description = String()
    selling_price = Float(required=True)
    cost_price = Float()
    updated_at = DateTime(required=True)


@marketplace.event(part_of="Product")
class ProductStatusChanged:
    """The product moved between draft, pending review, active, rejected or archived."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)
