"""Checkout contention: many shoppers racing for a product with little stock.

The first user to start creates and publishes one scarce product; every
user then keeps ordering it. Once it sells out, every further order must
be refused with 409, and the number of accepted orders must never exceed
the stock that was listed. Check the final count with:

    GET /products/{id}  (on_hand must be 0, never negative)
"""

import threading

from locust import HttpUser, constant_pacing, task

from loadtests.data_generators import actor_headers, product_data, shipping_address, shopper_id
from loadtests.helpers.response import extract_error_detail, is_stock_refusal

SCARCE_STOCK = 25

_lock = threading.Lock()
_scarce_product = {"id": None, "accepted": 0}


def _ensure_scarce_product(client) -> str | None:
    with _lock:
        if _scarce_product["id"] is None:
            resp = client.post(
                "/products",
                json=product_data(on_hand=SCARCE_STOCK, status="active"),
                headers=actor_headers("admin-loadtest", "admin"),
                name="[SETUP] POST /products",
            )
            if resp.status_code == 201:
                _scarce_product["id"] = resp.json()["product_id"]
        return _scarce_product["id"]


class LastUnitRushUser(HttpUser):
    wait_time = constant_pacing(0.2)

    def on_start(self):
        self.product_id = _ensure_scarce_product(self.client)
        self.shopper_id = shopper_id()

    @task
    def buy_one(self):
        if self.product_id is None:
            return
        with self.client.post(
            "/orders",
            json={
                "items": [{"product_id": self.product_id, "quantity": 1}],
                "shipping_address": shipping_address(),
            },
            headers=actor_headers(self.shopper_id, "user"),
            catch_response=True,
            name="[RUSH] POST /orders",
        ) as resp:
            if resp.status_code == 201:
                with _lock:
                    _scarce_product["accepted"] += 1
                    if _scarce_product["accepted"] > SCARCE_STOCK:
                        resp.failure(f"Oversold: {_scarce_product['accepted']} orders for {SCARCE_STOCK} units")
            elif is_stock_refusal(resp):
                resp.success()
            else:
                resp.failure(f"Rush order failed: {resp.status_code} — {extract_error_detail(resp)}")
