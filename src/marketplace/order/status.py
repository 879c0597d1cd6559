"""Order status changes and who may make them.

The transition table on ``Order`` decides which moves are valid. This module
decides who may ask for them:

- admins may move any order, and may override the table entirely
- suppliers may move orders that contain at least one of their lines
- everyone else is refused
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.exceptions import AccessDeniedError
from marketplace.order.order import Order, OrderStatus
from marketplace.shared.actors import Actor

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class ChangeOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    override = Boolean(default=False)


def authorize_status_change(actor: Actor, order: Order, override: bool = False) -> None:
    if actor.is_admin:
        return
    if override:
        raise AccessDeniedError("Only admins can override the order status")
    if actor.is_supplier and order.contains_supplier(actor.id):
        return
    raise AccessDeniedError("Only an admin or a supplier with items in this order can change its status")


@marketplace.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(ChangeOrderStatus)
    def change_status(self, command):
        actor = Actor.of(command.actor_id, command.actor_role)
        target = OrderStatus.parse(command.status)

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        authorize_status_change(actor, order, override=command.override)

        previous = order.status
        if command.override:
            order.override_status(target)
        else:
            order.transition_to(target)
        repo.add(order)

        logger.info(
            "order_status_changed",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
            actor_role=actor.role.value,
            overridden=bool(command.override),
        )
        return order.status


def change_order_status(order_id, status, actor_id, actor_role, override=False) -> Order:
    current_domain.process(
        ChangeOrderStatus(
            order_id=order_id,
            status=status,
            actor_id=actor_id,
            actor_role=actor_role.value if hasattr(actor_role, "value") else actor_role,
            override=override,
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(Order).get(order_id)
