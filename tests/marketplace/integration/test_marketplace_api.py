"""Integration tests for the marketplace HTTP API."""

import contextvars
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from marketplace.api import cart_router, order_router, product_router, register_error_handlers
from marketplace.catalogue.product import ProductStatus
from marketplace.order.order import Order
from protean.utils.globals import current_domain

ADMIN = {"X-Actor-Id": "admin-1", "X-Actor-Role": "admin"}
SUPPLIER = {"X-Actor-Id": "supplier-1", "X-Actor-Role": "supplier"}
OTHER_SUPPLIER = {"X-Actor-Id": "supplier-2", "X-Actor-Role": "supplier"}
SHOPPER = {"X-Actor-Id": "user-1", "X-Actor-Role": "user"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(product_router)
    app.include_router(cart_router)
    app.include_router(order_router)
    register_error_handlers(app)
    return TestClient(app)


def _order(client, product_id, quantity, address, headers=SHOPPER):
    return client.post(
        "/orders",
        json={"items": [{"product_id": product_id, "quantity": quantity}], "shipping_address": address},
        headers=headers,
    )


class TestProductEndpoints:
    def test_supplier_creates_product(self, client):
        response = client.post(
            "/products",
            json={"name": "Lamp", "selling_price": 45.0, "cost_price": 20.0, "on_hand": 3, "status": "active"},
            headers=SUPPLIER,
        )
        assert response.status_code == 201

        detail = client.get(f"/products/{response.json()['product_id']}", headers=SUPPLIER).json()
        assert detail["status"] == "pending_review"
        assert detail["cost_price"] == 20.0

    def test_create_requires_an_actor(self, client):
        response = client.post("/products", json={"name": "Lamp", "selling_price": 45.0})
        assert response.status_code == 401

    def test_shopper_cannot_create(self, client):
        response = client.post("/products", json={"name": "Lamp", "selling_price": 45.0}, headers=SHOPPER)
        assert response.status_code == 403

    def test_public_view_hides_cost(self, client, make_product):
        product = make_product(cost_price=8.0)
        data = client.get(f"/products/{product.id}").json()
        assert data["kind"] == "public"
        assert "cost_price" not in data

    def test_admin_sees_cost(self, client, make_product):
        product = make_product(cost_price=8.0)
        data = client.get(f"/products/{product.id}", headers=ADMIN).json()
        assert data["kind"] == "full"
        assert data["cost_price"] == 8.0

    def test_unpublished_product_is_hidden_from_shoppers(self, client, make_product):
        product = make_product(status=ProductStatus.DRAFT)
        assert client.get(f"/products/{product.id}", headers=SHOPPER).status_code == 404
        assert client.get(f"/products/{product.id}", headers=SUPPLIER).status_code == 200

    def test_unknown_product(self, client):
        assert client.get("/products/missing").status_code == 404

    def test_listing_shows_active_products_to_shoppers(self, client, make_product):
        make_product(name="Blue Mug")
        make_product(name="Draft Mug", status=ProductStatus.DRAFT)

        data = client.get("/products", params={"search": "mug"}).json()

        assert [p["name"] for p in data["items"]] == ["Blue Mug"]
        assert data["total"] == 1

    def test_supplier_lists_own_catalogue(self, client, make_product):
        make_product(name="Live")
        make_product(name="Draft", status=ProductStatus.DRAFT)

        data = client.get("/products", params={"supplier_id": "supplier-1"}, headers=SUPPLIER).json()

        assert data["total"] == 2
        assert all(p["kind"] == "full" for p in data["items"])

    def test_listing_limit_is_clamped(self, client, make_product):
        make_product()
        data = client.get("/products", params={"page": -3, "limit": 1000}).json()
        assert (data["page"], data["limit"]) == (1, 100)

    def test_set_stock(self, client, make_product, stock_of):
        product = make_product(on_hand=2)
        response = client.put(f"/products/{product.id}/stock", json={"on_hand": 15}, headers=SUPPLIER)
        assert response.status_code == 200
        assert stock_of(product) == 15

    def test_set_stock_conflict(self, client, make_product):
        product = make_product(on_hand=2)
        response = client.put(
            f"/products/{product.id}/stock", json={"on_hand": 15, "expected_on_hand": 9}, headers=SUPPLIER
        )
        assert response.status_code == 409

    def test_other_supplier_cannot_edit(self, client, make_product):
        product = make_product()
        response = client.patch(f"/products/{product.id}", json={"name": "Mine now"}, headers=OTHER_SUPPLIER)
        assert response.status_code == 403


class TestCartEndpoints:
    def test_add_and_read(self, client):
        client.post("/carts/user-1/items", json={"product_id": "prod-a", "quantity": 2})
        data = client.get("/carts/user-1").json()
        assert [(i["product_id"], i["quantity"]) for i in data["items"]] == [("prod-a", 2)]

    def test_set_quantity_zero_removes(self, client):
        client.post("/carts/user-1/items", json={"product_id": "prod-a", "quantity": 2})
        data = client.put("/carts/user-1/items/prod-a", json={"quantity": 0}).json()
        assert data["items"] == []

    def test_negative_quantity(self, client):
        client.post("/carts/user-1/items", json={"product_id": "prod-a", "quantity": 2})
        assert client.put("/carts/user-1/items/prod-a", json={"quantity": -2}).status_code == 400

    def test_merge(self, client, cart_lines):
        client.post("/carts/guest-1/items", json={"product_id": "prod-a", "quantity": 2})
        client.post("/carts/user-1/items", json={"product_id": "prod-a", "quantity": 1})

        data = client.post("/carts/user-1/merge", json={"guest_owner_id": "guest-1"}).json()

        assert [(i["product_id"], i["quantity"]) for i in data["items"]] == [("prod-a", 3)]
        assert cart_lines("guest-1") is None


class TestOrderEndpoints:
    def test_place_order(self, client, make_product, stock_of, address):
        product = make_product(selling_price=20.0, on_hand=10)

        response = _order(client, product.id, 2, address)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["totals"] == {"subtotal": 40.0, "shipping": 5.99, "total": 45.99}
        assert "cost_price" not in data["items"][0]
        assert stock_of(product) == 8

    def test_insufficient_stock(self, client, make_product, address):
        product = make_product(name="C", on_hand=2)
        response = _order(client, product.id, 3, address)
        assert response.status_code == 409
        assert response.json()["product_name"] == "C"

    def test_unavailable_product(self, client, address):
        response = _order(client, "missing", 1, address)
        assert response.status_code == 409
        assert response.json()["product_ids"] == ["missing"]

    def test_blank_address_field(self, client, make_product, address):
        product = make_product()
        address["city"] = ""
        assert _order(client, product.id, 1, address).status_code == 400

    def test_checkout_from_cart(self, client, make_product, fill_cart, cart_lines, address):
        product = make_product(selling_price=60.0, on_hand=5)
        fill_cart("user-1", (product.id, 1))

        response = client.post("/orders/checkout", json={"shipping_address": address}, headers=SHOPPER)

        assert response.status_code == 201
        assert response.json()["totals"]["total"] == 60.0
        assert cart_lines("user-1") == []

    def test_checkout_with_empty_cart(self, client, address):
        response = client.post("/orders/checkout", json={"shipping_address": address}, headers=SHOPPER)
        assert response.status_code == 400

    def test_purchaser_reads_own_order(self, client, make_product, address):
        product = make_product()
        order_id = _order(client, product.id, 1, address).json()["id"]

        assert client.get(f"/orders/{order_id}", headers=SHOPPER).status_code == 200
        assert client.get(f"/orders/{order_id}", headers={"X-Actor-Id": "user-2"}).status_code == 403

    def test_supplier_sees_only_their_lines(self, client, make_product, address):
        mine = make_product(name="Mine", supplier_id="supplier-1", cost_price=3.0)
        theirs = make_product(name="Theirs", supplier_id="supplier-2")
        order_id = client.post(
            "/orders",
            json={
                "items": [{"product_id": mine.id, "quantity": 1}, {"product_id": theirs.id, "quantity": 1}],
                "shipping_address": address,
            },
            headers=SHOPPER,
        ).json()["id"]

        data = client.get(f"/orders/{order_id}", headers=SUPPLIER).json()

        assert [i["product_name"] for i in data["items"]] == ["Mine"]
        assert data["supplier_totals"]["cost"] == 3.0

    def test_listing_per_role(self, client, make_product, address):
        product = make_product()
        _order(client, product.id, 1, address)
        _order(client, product.id, 1, address, headers={"X-Actor-Id": "user-2"})

        assert client.get("/orders", headers=SHOPPER).json()["total"] == 1
        assert client.get("/orders", headers=SUPPLIER).json()["total"] == 2
        assert client.get("/orders", headers=OTHER_SUPPLIER).json()["total"] == 0
        assert client.get("/orders", headers=ADMIN).json()["total"] == 2

    def test_status_change(self, client, make_product, address):
        product = make_product()
        order_id = _order(client, product.id, 1, address).json()["id"]

        response = client.put(f"/orders/{order_id}/status", json={"status": "shipped"}, headers=ADMIN)
        assert response.status_code == 409

        response = client.put(f"/orders/{order_id}/status", json={"status": "processing"}, headers=SUPPLIER)
        assert response.status_code == 200
        assert current_domain.repository_for(Order).get(order_id).status == "processing"

    def test_shopper_cannot_change_status(self, client, make_product, address):
        product = make_product()
        order_id = _order(client, product.id, 1, address).json()["id"]
        response = client.put(f"/orders/{order_id}/status", json={"status": "cancelled"}, headers=SHOPPER)
        assert response.status_code == 403


class TestConcurrentCheckout:
    def test_last_unit_sells_once_when_two_shoppers_check_out_together(
        self, client, make_product, fill_cart, cart_lines, stock_of, order_count, address
    ):
        product = make_product(name="Last one", on_hand=1)
        shoppers = [{"X-Actor-Id": "user-1", "X-Actor-Role": "user"}, {"X-Actor-Id": "user-2", "X-Actor-Role": "user"}]
        for headers in shoppers:
            fill_cart(headers["X-Actor-Id"], (product.id, 1))
        start = threading.Barrier(len(shoppers))

        def _checkout(headers):
            start.wait()
            return client.post("/orders/checkout", json={"shipping_address": address}, headers=headers)

        with ThreadPoolExecutor(max_workers=len(shoppers)) as pool:
            futures = [pool.submit(contextvars.copy_context().run, _checkout, headers) for headers in shoppers]
            responses = [future.result() for future in futures]

        assert sorted(r.status_code for r in responses) == [201, 409]
        assert stock_of(product) == 0
        assert order_count() == 1

        # The losing shopper keeps their cart
        loser = next(h["X-Actor-Id"] for h, r in zip(shoppers, responses, strict=True) if r.status_code == 409)
        assert cart_lines(loser) == [(str(product.id), 1)]
