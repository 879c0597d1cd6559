"""Supplier journeys: list products, keep them stocked, work orders."""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import actor_headers, price_update, product_data, supplier_id
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import SupplierState

ADMIN_HEADERS = actor_headers("admin-loadtest", "admin")


class SupplierCatalogueJourney(SequentialTaskSet):
    """Create listings -> Admin publishes -> Reprice -> Restock -> Advance orders."""

    def on_start(self):
        self.state = SupplierState(supplier_id=supplier_id())
        self.headers = actor_headers(self.state.supplier_id, "supplier")

    @task
    def create_listings(self):
        for _ in range(3):
            with self.client.post(
                "/products",
                json=product_data(status="pending_review"),
                headers=self.headers,
                catch_response=True,
                name="POST /products",
            ) as resp:
                if resp.status_code == 201:
                    self.state.product_ids.append(resp.json()["product_id"])
                else:
                    resp.failure(f"Create product failed: {resp.status_code} — {extract_error_detail(resp)}")
        if not self.state.product_ids:
            self.interrupt()

    @task
    def publish(self):
        for product_id in self.state.product_ids:
            self.client.put(
                f"/products/{product_id}/status",
                json={"status": "active"},
                headers=ADMIN_HEADERS,
                name="PUT /products/{id}/status",
            )

    @task
    def reprice(self):
        self.client.patch(
            f"/products/{random.choice(self.state.product_ids)}",
            json=price_update(),
            headers=self.headers,
            name="PATCH /products/{id}",
        )

    @task
    def restock(self):
        product_id = random.choice(self.state.product_ids)
        detail = self.client.get(f"/products/{product_id}", headers=self.headers, name="GET /products/{id}")
        if detail.status_code != 200:
            return
        on_hand = detail.json()["on_hand"]
        with self.client.put(
            f"/products/{product_id}/stock",
            json={"on_hand": on_hand + random.randint(5, 50), "expected_on_hand": on_hand},
            headers=self.headers,
            catch_response=True,
            name="PUT /products/{id}/stock",
        ) as resp:
            if resp.status_code == 409:
                # A purchase landed between the read and the write
                resp.success()

    @task
    def advance_orders(self):
        resp = self.client.get("/orders", params={"status": "pending"}, headers=self.headers, name="GET /orders")
        if resp.status_code == 200:
            for order in resp.json()["items"][:5]:
                self.client.put(
                    f"/orders/{order['id']}/status",
                    json={"status": "processing"},
                    headers=self.headers,
                    name="PUT /orders/{id}/status",
                )
                self.state.advanced_order_ids.append(order["id"])
        self.interrupt()


class SupplierUser(HttpUser):
    wait_time = between(2, 5)
    tasks = [SupplierCatalogueJourney]
