"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the marketplace's validation
rules and match the field names of the API's Pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()


# ---------- Identities ----------


def supplier_id() -> str:
    return f"supplier-lt-{uuid.uuid4().hex[:8]}"


def shopper_id() -> str:
    return f"user-lt-{uuid.uuid4().hex[:8]}"


def guest_id() -> str:
    """Guest identities are opaque strings minted by the storefront."""
    return f"guest-{uuid.uuid4().hex}"


def actor_headers(actor_id: str, role: str) -> dict:
    return {"X-Actor-Id": actor_id, "X-Actor-Role": role}


# ---------- Catalogue ----------


def product_data(on_hand: int | None = None, status: str = "active") -> dict:
    """Generate CreateProductRequest payload.

    Cost sits below the selling price so supplier margins stay positive.
    """
    selling = round(random.uniform(4.99, 149.99), 2)
    return {
        "name": f"{fake.color_name()} {fake.word().capitalize()}"[:255],
        "description": fake.sentence(nb_words=12),
        "selling_price": selling,
        "cost_price": round(selling * random.uniform(0.3, 0.7), 2),
        "on_hand": random.randint(20, 500) if on_hand is None else on_hand,
        "status": status,
    }


def price_update() -> dict:
    return {"selling_price": round(random.uniform(4.99, 149.99), 2)}


def search_term() -> str:
    return random.choice(["mug", "lamp", "bowl", "red", "blue", fake.word()])


# ---------- Carts & Orders ----------


def shipping_address() -> dict:
    """Generate AddressSchema payload."""
    return {
        "street": fake.street_address()[:255],
        "city": fake.city()[:100],
        "state": fake.state_abbr(),
        "postal_code": fake.zipcode()[:20],
        "country": "US",
    }


def cart_quantity() -> int:
    return random.choices([1, 2, 3, 5], weights=[60, 25, 10, 5])[0]
