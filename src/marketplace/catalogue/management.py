"""Product management — commands and handler.

Suppliers list and maintain their own products; admins can do anything,
including publishing (``active``) and rejecting listings.
"""

import structlog
from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.catalogue.product import Product, ProductStatus
from marketplace.domain import marketplace
from marketplace.exceptions import AccessDeniedError, StockConflictError
from marketplace.shared.actors import Actor

logger = structlog.get_logger(__name__)

# Statuses a supplier may put their own product into
_SUPPLIER_SETTABLE = {ProductStatus.DRAFT, ProductStatus.PENDING_REVIEW, ProductStatus.ARCHIVED}


@marketplace.command(part_of="Product")
class CreateProduct:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    supplier_id = Identifier()  # Admins may list on behalf of a supplier
    name = String(required=True, max_length=255)
    description = Text()
    selling_price = Float(required=True, min_value=0.0)
    cost_price = Float(min_value=0.0)
    on_hand = Integer(default=0, min_value=0)
    status = String(max_length=20)


@marketplace.command(part_of="Product")
class UpdateProductDetails:
    product_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    name = String(max_length=255)
    description = Text()
    selling_price = Float(min_value=0.0)
    cost_price = Float(min_value=0.0)


@marketplace.command(part_of="Product")
class SetProductStock:
    product_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    on_hand = Integer(required=True)
    expected_on_hand = Integer()


@marketplace.command(part_of="Product")
class ChangeProductStatus:
    product_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    status = String(required=True, max_length=20)


def initial_status(requested, actor: Actor) -> ProductStatus:
    """Status a new listing starts in.

    A supplier asking for ``active`` is queued for review instead.
    """
    status = ProductStatus.parse(requested or ProductStatus.DRAFT.value)
    if actor.is_admin:
        return status
    if status is ProductStatus.ACTIVE:
        return ProductStatus.PENDING_REVIEW
    if status not in _SUPPLIER_SETTABLE:
        raise AccessDeniedError(f"Suppliers cannot create products as {status.value}")
    return status


def assert_can_manage(actor: Actor, product: Product) -> None:
    if actor.is_admin:
        return
    if actor.is_supplier and actor.owns(product.supplier_id):
        return
    raise AccessDeniedError("Only the owning supplier or an admin can manage this product")


@marketplace.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        actor = Actor.of(command.actor_id, command.actor_role)
        if not (actor.is_admin or actor.is_supplier):
            raise AccessDeniedError("Only suppliers and admins can create products")

        supplier_id = command.supplier_id if actor.is_admin and command.supplier_id else actor.id

        product = Product.create(
            supplier_id=supplier_id,
            name=command.name,
            description=command.description,
            selling_price=command.selling_price,
            cost_price=command.cost_price,
            on_hand=command.on_hand,
            status=initial_status(command.status, actor),
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(UpdateProductDetails)
    def update_details(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        assert_can_manage(Actor.of(command.actor_id, command.actor_role), product)

        product.update_details(
            name=command.name,
            description=command.description,
            selling_price=command.selling_price,
            cost_price=command.cost_price,
        )
        repo.add(product)

    @handle(SetProductStock)
    def set_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        assert_can_manage(Actor.of(command.actor_id, command.actor_role), product)

        if not repo.set_stock(product.id, command.on_hand, expected_on_hand=command.expected_on_hand):
            raise StockConflictError(product.id, command.expected_on_hand)

        logger.info(
            "stock_set",
            product_id=str(product.id),
            on_hand=command.on_hand,
            conditional=command.expected_on_hand is not None,
            actor_id=str(command.actor_id),
        )

    @handle(ChangeProductStatus)
    def change_status(self, command):
        actor = Actor.of(command.actor_id, command.actor_role)
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        assert_can_manage(actor, product)

        target = ProductStatus.parse(command.status)
        if not actor.is_admin and target not in _SUPPLIER_SETTABLE:
            raise AccessDeniedError(f"Suppliers cannot set product status to {target.value}")

        previous = product.status
        product.change_status(target)
        repo.add(product)

        logger.info(
            "product_status_changed",
            product_id=str(product.id),
            previous_status=previous,
            new_status=target.value,
            actor_role=actor.role.value,
        )

