"""Role-dependent projections of a Product.

``project`` is a pure function: given a product and who is looking, it
returns either the full view (with the supplier's cost) or the public view.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from marketplace.shared.actors import Actor, Role


class PublicProductView(BaseModel):
    kind: Literal["public"] = "public"
    id: str
    supplier_id: str
    name: str
    description: str | None = None
    selling_price: float
    on_hand: int
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FullProductView(PublicProductView):
    kind: Literal["full"] = "full"
    cost_price: float | None = None


ProductView = FullProductView | PublicProductView


def sees_full_view(viewer: Actor, product) -> bool:
    return viewer.is_admin or (viewer.is_supplier and viewer.owns(product.supplier_id))


def project(product, viewer_role=Role.USER, viewer_id=None) -> ProductView:
    viewer = viewer_role if isinstance(viewer_role, Actor) else Actor.of(viewer_id, viewer_role)

    fields = dict(
        id=str(product.id),
        supplier_id=str(product.supplier_id),
        name=product.name,
        description=product.description,
        selling_price=product.pricing.selling,
        on_hand=product.on_hand,
        status=product.status,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )
    if sees_full_view(viewer, product):
        return FullProductView(cost_price=product.pricing.cost, **fields)
    return PublicProductView(**fields)
