"""Serializable shapes of an order for the request layer."""

from decimal import Decimal

from marketplace.shared.money import line_total, to_amount


def item_to_dict(item) -> dict:
    return {
        "id": str(item.id),
        "product_id": str(item.product_id),
        "product_name": item.product_name,
        "quantity": item.quantity,
        "unit_price": item.unit_price,
        "supplier_id": str(item.supplier_id),
    }


def order_to_dict(order, include_cost: bool = False) -> dict:
    items = []
    for item in order.items:
        data = item_to_dict(item)
        if include_cost:
            data["cost_price"] = item.cost_price
        items.append(data)

    address = order.shipping_address
    return {
        "id": str(order.id),
        "user_id": str(order.user_id),
        "status": order.status,
        "items": items,
        "shipping_address": {
            "street": address.street,
            "city": address.city,
            "state": address.state,
            "postal_code": address.postal_code,
            "country": address.country,
        },
        "totals": {
            "subtotal": order.totals.subtotal,
            "shipping": order.totals.shipping,
            "total": order.totals.total,
        },
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "updated_at": order.updated_at.isoformat() if order.updated_at else None,
    }


def supplier_view(order, supplier_id) -> dict:
    """The order as one supplier sees it: only their lines, with their revenue and cost.

    Revenue and cost come from the prices frozen on the order lines, so the
    figures do not move when the catalogue changes.
    """
    lines = order.items_for_supplier(supplier_id)
    revenue = sum((line_total(i.unit_price, i.quantity) for i in lines), Decimal("0.00"))
    cost = sum((line_total(i.cost_price or 0, i.quantity) for i in lines), Decimal("0.00"))

    data = order_to_dict(order)
    data["items"] = [dict(item_to_dict(i), cost_price=i.cost_price) for i in lines]
    data["supplier_totals"] = {
        "supplier_id": str(supplier_id),
        "revenue": to_amount(revenue),
        "cost": to_amount(cost),
        "margin": to_amount(revenue - cost),
    }
    return data
