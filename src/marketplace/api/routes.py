"""FastAPI routes for the marketplace — products, carts and orders.

Authentication happens upstream. The identity provider forwards the acting
identity in ``X-Actor-Id`` and its role (``admin``, ``supplier`` or
``user``) in ``X-Actor-Role``.
"""

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.api.schemas import (
    AddToCartRequest,
    CartResponse,
    ChangeStatusRequest,
    CheckoutRequest,
    CreateProductRequest,
    MergeGuestCartRequest,
    PageResponse,
    PlaceOrderRequest,
    ProductIdResponse,
    SetCartQuantityRequest,
    SetStockRequest,
    StatusResponse,
    UpdateProductRequest,
)
from marketplace.cart.cart import ShoppingCart
from marketplace.cart.management import (
    AddToCart,
    ClearCart,
    MergeGuestCart,
    OpenCart,
    RemoveFromCart,
    SetCartQuantity,
)
from marketplace.catalogue.management import (
    ChangeProductStatus,
    CreateProduct,
    SetProductStock,
    UpdateProductDetails,
)
from marketplace.catalogue.product import Product
from marketplace.catalogue.views import project, sees_full_view
from marketplace.exceptions import AccessDeniedError
from marketplace.order.order import Order
from marketplace.order.placement import place_order
from marketplace.order.status import change_order_status
from marketplace.order.views import order_to_dict, supplier_view
from marketplace.shared.actors import Actor


def current_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Actor:
    return Actor.of(x_actor_id, x_actor_role)


def signed_in_actor(actor: Actor = Depends(current_actor)) -> Actor:
    if not actor.id:
        raise HTTPException(status_code=401, detail="X-Actor-Id header is required")
    return actor


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.get("", response_model=PageResponse)
def list_products(
    supplier_id: str | None = None,
    search: str | None = None,
    status: str | None = None,
    page: int = Query(default=1),
    limit: int = Query(default=20),
    actor: Actor = Depends(current_actor),
) -> PageResponse:
    repo = current_domain.repository_for(Product)

    privileged = actor.is_admin or (actor.is_supplier and supplier_id and actor.owns(supplier_id))
    if privileged:
        results = repo.list_products(status=status, supplier_id=supplier_id, search=search, page=page, limit=limit)
    else:
        results = repo.list_active(supplier_id=supplier_id, search=search, page=page, limit=limit)

    return PageResponse(**results.to_dict(lambda p: project(p, actor).model_dump(mode="json")))


@product_router.get("/{product_id}")
def get_product(product_id: str, actor: Actor = Depends(current_actor)) -> dict:
    product = current_domain.repository_for(Product).get(product_id)
    if not product.is_purchasable and not sees_full_view(actor, product):
        raise ObjectNotFoundError(f"Product with id {product_id} does not exist")
    return project(product, actor).model_dump(mode="json")


@product_router.post("", status_code=201, response_model=ProductIdResponse)
def create_product(body: CreateProductRequest, actor: Actor = Depends(signed_in_actor)) -> ProductIdResponse:
    command = CreateProduct(
        actor_id=actor.id,
        actor_role=actor.role.value,
        **body.model_dump(exclude_none=True),
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.patch("/{product_id}", response_model=StatusResponse)
def update_product(
    product_id: str, body: UpdateProductRequest, actor: Actor = Depends(signed_in_actor)
) -> StatusResponse:
    command = UpdateProductDetails(
        product_id=product_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        **body.model_dump(exclude_none=True),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@product_router.put("/{product_id}/stock", response_model=StatusResponse)
def set_product_stock(
    product_id: str, body: SetStockRequest, actor: Actor = Depends(signed_in_actor)
) -> StatusResponse:
    command = SetProductStock(
        product_id=product_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        on_hand=body.on_hand,
        expected_on_hand=body.expected_on_hand,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@product_router.put("/{product_id}/status", response_model=StatusResponse)
def change_product_status(
    product_id: str, body: ChangeStatusRequest, actor: Actor = Depends(signed_in_actor)
) -> StatusResponse:
    command = ChangeProductStatus(
        product_id=product_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        status=body.status,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


def _cart_response(owner_id: str) -> CartResponse:
    cart = current_domain.repository_for(ShoppingCart).get_or_create(owner_id)
    return CartResponse(
        cart_id=str(cart.id),
        owner_id=str(cart.owner_id),
        items=[
            {"product_id": str(i.product_id), "quantity": i.quantity, "added_at": i.added_at} for i in cart.items
        ],
    )


@cart_router.get("/{owner_id}", response_model=CartResponse)
def get_cart(owner_id: str) -> CartResponse:
    current_domain.process(OpenCart(owner_id=owner_id), asynchronous=False)
    return _cart_response(owner_id)


@cart_router.post("/{owner_id}/items", response_model=CartResponse)
def add_cart_item(owner_id: str, body: AddToCartRequest) -> CartResponse:
    command = AddToCart(owner_id=owner_id, product_id=body.product_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return _cart_response(owner_id)


@cart_router.put("/{owner_id}/items/{product_id}", response_model=CartResponse)
def set_cart_item_quantity(owner_id: str, product_id: str, body: SetCartQuantityRequest) -> CartResponse:
    command = SetCartQuantity(owner_id=owner_id, product_id=product_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return _cart_response(owner_id)


@cart_router.delete("/{owner_id}/items/{product_id}", response_model=CartResponse)
def remove_cart_item(owner_id: str, product_id: str) -> CartResponse:
    current_domain.process(RemoveFromCart(owner_id=owner_id, product_id=product_id), asynchronous=False)
    return _cart_response(owner_id)


@cart_router.delete("/{owner_id}/items", response_model=CartResponse)
def clear_cart(owner_id: str) -> CartResponse:
    current_domain.process(ClearCart(owner_id=owner_id), asynchronous=False)
    return _cart_response(owner_id)


@cart_router.post("/{owner_id}/merge", response_model=CartResponse)
def merge_guest_cart(owner_id: str, body: MergeGuestCartRequest) -> CartResponse:
    command = MergeGuestCart(owner_id=owner_id, guest_owner_id=body.guest_owner_id)
    current_domain.process(command, asynchronous=False)
    return _cart_response(owner_id)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _order_for(order: Order, actor: Actor) -> dict:
    if actor.is_admin:
        return order_to_dict(order, include_cost=True)
    if str(order.user_id) == str(actor.id):
        return order_to_dict(order)
    if actor.is_supplier and order.contains_supplier(actor.id):
        return supplier_view(order, actor.id)
    raise AccessDeniedError("You cannot view this order")


@order_router.post("", status_code=201)
def create_order(body: PlaceOrderRequest, actor: Actor = Depends(signed_in_actor)) -> dict:
    order = place_order(
        purchaser_id=actor.id,
        items=[line.model_dump() for line in body.items],
        shipping_address=body.shipping_address.model_dump(exclude_none=True),
    )
    return order_to_dict(order)


@order_router.post("/checkout", status_code=201)
def checkout_cart(body: CheckoutRequest, actor: Actor = Depends(signed_in_actor)) -> dict:
    """Place an order for everything currently in the actor's cart."""
    cart = current_domain.repository_for(ShoppingCart).for_owner(actor.id)
    order = place_order(
        purchaser_id=actor.id,
        items=cart.as_lines() if cart else [],
        shipping_address=body.shipping_address.model_dump(exclude_none=True),
    )
    return order_to_dict(order)


@order_router.get("", response_model=PageResponse)
def list_orders(
    status: str | None = None,
    page: int = Query(default=1),
    limit: int = Query(default=20),
    actor: Actor = Depends(signed_in_actor),
) -> PageResponse:
    repo = current_domain.repository_for(Order)

    if actor.is_admin:
        results = repo.list_all(page=page, limit=limit, status=status)
        return PageResponse(**results.to_dict(lambda o: order_to_dict(o, include_cost=True)))
    if actor.is_supplier:
        results = repo.list_by_supplier(actor.id, page=page, limit=limit, status=status)
        return PageResponse(**results.to_dict(lambda o: supplier_view(o, actor.id)))

    results = repo.list_by_owner(actor.id, page=page, limit=limit, status=status)
    return PageResponse(**results.to_dict(order_to_dict))


@order_router.get("/{order_id}")
def get_order(order_id: str, actor: Actor = Depends(signed_in_actor)) -> dict:
    order = current_domain.repository_for(Order).get(order_id)
    return _order_for(order, actor)


@order_router.put("/{order_id}/status")
def change_status(order_id: str, body: ChangeStatusRequest, actor: Actor = Depends(signed_in_actor)) -> dict:
    order = change_order_status(
        order_id=order_id,
        status=body.status,
        actor_id=actor.id,
        actor_role=actor.role,
        override=body.override,
    )
    return _order_for(order, actor)
