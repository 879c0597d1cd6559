"""Shopper journeys: browse as a guest, sign in, check out.

GuestToCheckoutJourney walks one shopper through the whole funnel.
BrowsingUser only reads, to keep the catalogue listing hot while
purchases run.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    actor_headers,
    cart_quantity,
    guest_id,
    search_term,
    shipping_address,
    shopper_id,
)
from loadtests.helpers.response import extract_error_detail, is_stock_refusal
from loadtests.helpers.state import ShopperState


class GuestToCheckoutJourney(SequentialTaskSet):
    """Browse -> Guest cart -> Sign in (merge) -> Checkout -> Order history."""

    def on_start(self):
        self.state = ShopperState(shopper_id=shopper_id(), guest_id=guest_id())

    @task
    def browse(self):
        with self.client.get(
            "/products",
            params={"limit": 50},
            catch_response=True,
            name="GET /products",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Browse failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()
                return
            self.state.seen_product_ids = [p["id"] for p in resp.json()["items"] if p["on_hand"] > 0]
            if not self.state.seen_product_ids:
                resp.success()
                self.interrupt()

    @task
    def fill_guest_cart(self):
        picks = random.sample(self.state.seen_product_ids, k=min(3, len(self.state.seen_product_ids)))
        for product_id in picks:
            with self.client.post(
                f"/carts/{self.state.guest_id}/items",
                json={"product_id": product_id, "quantity": cart_quantity()},
                catch_response=True,
                name="POST /carts/{owner}/items",
            ) as resp:
                if resp.status_code == 200:
                    self.state.cart_item_count += 1
                else:
                    resp.failure(f"Add to cart failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def sign_in(self):
        with self.client.post(
            f"/carts/{self.state.shopper_id}/merge",
            json={"guest_owner_id": self.state.guest_id},
            catch_response=True,
            name="POST /carts/{owner}/merge",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Merge failed: {resp.status_code} — {extract_error_detail(resp)}")
            elif len(resp.json()["items"]) != self.state.cart_item_count:
                resp.failure("Merged cart does not hold the guest's items")

    @task
    def checkout(self):
        with self.client.post(
            "/orders/checkout",
            json={"shipping_address": shipping_address()},
            headers=actor_headers(self.state.shopper_id, "user"),
            catch_response=True,
            name="POST /orders/checkout",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_ids.append(resp.json()["id"])
            elif is_stock_refusal(resp):
                # Someone else bought the stock first; expected under load
                resp.success()
            else:
                resp.failure(f"Checkout failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def order_history(self):
        self.client.get(
            "/orders",
            headers=actor_headers(self.state.shopper_id, "user"),
            name="GET /orders",
        )
        self.interrupt()


class ShopperUser(HttpUser):
    wait_time = between(1, 3)
    tasks = [GuestToCheckoutJourney]


class BrowsingUser(HttpUser):
    """Read-only traffic: listings, searches and product pages."""

    wait_time = between(0.5, 2)

    @task(3)
    def list_products(self):
        self.client.get("/products", params={"page": random.randint(1, 5)}, name="GET /products")

    @task(2)
    def search(self):
        self.client.get("/products", params={"search": search_term()}, name="GET /products?search")

    @task(1)
    def product_page(self):
        resp = self.client.get("/products", params={"limit": 20}, name="GET /products")
        if resp.status_code == 200 and resp.json()["items"]:
            product = random.choice(resp.json()["items"])
            self.client.get(f"/products/{product['id']}", name="GET /products/{id}")
