"""Product aggregate root and its pricing value object."""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text, ValueObject

from marketplace.catalogue.events import ProductCreated, ProductDetailsUpdated, ProductStatusChanged
from marketplace.domain import marketplace


class ProductStatus(Enum):
    """Enumeration of product lifecycle statuses. Only ACTIVE is purchasable."""

    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"
    PENDING_REVIEW = "pending_review"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value):
        try:
            return value if isinstance(value, cls) else cls(str(value).lower())
        except ValueError as exc:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationError({"status": [f"Unknown product status '{value}'. Expected one of: {allowed}"]}) from exc


@marketplace.value_object(part_of="Product")
class Pricing:
    """Selling price shown to shoppers, plus the supplier's cost.

    ``cost`` is commercially sensitive; views hide it from anyone who is
    neither an admin nor the owning supplier.
    """

    cost = Float(min_value=0.0)
    selling = Float(required=True, min_value=0.0)


@marketplace.aggregate
class Product:
    """A supplier's listing with its price and stock on hand.

    ``on_hand`` is kept as a flat column so that the order transaction can
    condition its write on it. It is changed through the repository's
    conditional writes, never by loading the aggregate and saving it back.
    """

    supplier_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    pricing = ValueObject(Pricing, required=True)
    on_hand = Integer(default=0, min_value=0)
    status = String(choices=ProductStatus, default=ProductStatus.DRAFT.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def stock_cannot_be_negative(self):
        if self.on_hand is not None and self.on_hand < 0:
            raise ValidationError({"on_hand": ["Stock on hand cannot be negative"]})

    @classmethod
    def create(
        cls,
        supplier_id,
        name,
        selling_price,
        cost_price=None,
        description=None,
        on_hand=0,
        status=ProductStatus.DRAFT,
    ):
        now = datetime.now(UTC)
        status = ProductStatus.parse(status)

        product = cls(
            supplier_id=supplier_id,
            name=name,
            description=description,
            pricing=Pricing(selling=selling_price, cost=cost_price),
            on_hand=on_hand or 0,
            status=status.value,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=product.id,
                supplier_id=supplier_id,
                name=name,
                selling_price=selling_price,
                status=status.value,
                on_hand=product.on_hand,
                created_at=now,
            )
        )
        return product

    @property
    def is_purchasable(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value

    def update_details(self, name=None, description=None, selling_price=None, cost_price=None):
        if name is not None:
            self.name = name
        if description is not None:
            self.description = description
        if selling_price is not None or cost_price is not None:
            self.pricing = Pricing(
                selling=selling_price if selling_price is not None else self.pricing.selling,
                cost=cost_price if cost_price is not None else self.pricing.cost,
            )

        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            ProductDetailsUpdated(
                product_id=self.id,
                name=self.name,
                description=self.description,
                selling_price=self.pricing.selling,
                cost_price=self.pricing.cost,
                updated_at=now,
            )
        )

    def change_status(self, new_status):
        new_status = ProductStatus.parse(new_status)
        previous = self.status
        if previous == new_status.value:
            return

        self.status = new_status.value
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            ProductStatusChanged(
                product_id=self.id,
                previous_status=previous,
                new_status=new_status.value,
                changed_at=now,
            )
        )
