"""Marketplace Load Testing — Locust entry point.

Discovers all user classes from the scenarios package.
Run specific scenarios with Locust's class selection.

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py

    # Shoppers and suppliers together:
    locust -f loadtests/locustfile.py ShopperUser SupplierUser BrowsingUser

    # Oversell check:
    locust -f loadtests/locustfile.py LastUnitRushUser --headless -u 40 -r 40 -t 60s

    # Headless (CI mode):
    locust -f loadtests/locustfile.py ShopperUser --headless \
           -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
import time

import requests
from locust import events

# Import all user classes so Locust discovers them
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.contention import SCARCE_STOCK, LastUnitRushUser, _scarce_product  # noqa: F401
from loadtests.scenarios.shopping import BrowsingUser, ShopperUser  # noqa: F401
from loadtests.scenarios.supplier import SupplierUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request.

    Extracts the API error body so you see "Cannot transition from pending
    to shipped" instead of just "409".
    """
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    print()


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Report the scarce product's final stock when the rush scenario ran."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    product_id = _scarce_product["id"]
    if product_id is None:
        return
    try:
        resp = requests.get(f"{environment.host}/products/{product_id}", timeout=5)
        on_hand = resp.json().get("on_hand")
    except (requests.RequestException, ValueError) as e:
        print(f"[LOADTEST] Could not read the scarce product: {e}\n")
        return
    print(f"[LOADTEST] Scarce product {product_id}: listed {SCARCE_STOCK}, accepted {_scarce_product['accepted']}")
    print(f"[LOADTEST] Remaining on hand: {on_hand}\n")
