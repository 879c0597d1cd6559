"""Seed the marketplace with suppliers, products and a few orders.

Creates a catalogue through the same commands the API uses, so every
product goes through the supplier and admin rules. Useful for local
development and for giving load tests something to browse.

Prerequisites:
    A database the marketplace can reach: python src/manage.py setup-db

Usage:
    # 5 suppliers with 20 products each, 50 orders
    python scripts/seed_marketplace.py

    # Bigger catalogue, no orders
    python scripts/seed_marketplace.py --suppliers 20 --products 50 --orders 0
"""

import argparse
import random
import sys
import time

from faker import Faker

# Add src/ to path so we can import domain modules
sys.path.insert(0, "src")

fake = Faker()


def _address():
    return {
        "street": fake.street_address(),
        "city": fake.city(),
        "state": fake.state_abbr(),
        "postal_code": fake.zipcode(),
        "country": "US",
    }


def main():
    parser = argparse.ArgumentParser(description="Seed the marketplace with sample data")
    parser.add_argument("--suppliers", type=int, default=5, help="Number of suppliers (default: 5)")
    parser.add_argument("--products", type=int, default=20, help="Products per supplier (default: 20)")
    parser.add_argument("--orders", type=int, default=50, help="Orders to place (default: 50)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for repeatable data")
    args = parser.parse_args()

    if args.seed is not None:
        random.seed(args.seed)
        Faker.seed(args.seed)

    from marketplace.catalogue.management import CreateProduct
    from marketplace.domain import marketplace
    from marketplace.exceptions import MarketplaceError
    from marketplace.order.placement import place_order
    from protean.exceptions import ValidationError

    marketplace.init()

    print(f"\n{'='*60}")
    print("  Marketplace Seed")
    print(f"{'='*60}")
    print(f"  Suppliers:             {args.suppliers:,}")
    print(f"  Products per supplier: {args.products:,}")
    print(f"  Orders:                {args.orders:,}")
    print(f"{'='*60}\n")

    start = time.monotonic()
    product_ids = []
    refused = 0

    with marketplace.domain_context():
        for s in range(args.suppliers):
            supplier_id = f"supplier-{s + 1:03d}"
            for _ in range(args.products):
                selling = round(random.uniform(4.99, 149.99), 2)
                product_id = marketplace.process(
                    CreateProduct(
                        actor_id="admin-seed",
                        actor_role="admin",
                        supplier_id=supplier_id,
                        name=f"{fake.color_name()} {fake.word().capitalize()}",
                        description=fake.sentence(nb_words=10),
                        selling_price=selling,
                        cost_price=round(selling * random.uniform(0.3, 0.7), 2),
                        on_hand=random.randint(0, 200),
                        status=random.choices(["active", "draft", "pending_review"], weights=[80, 10, 10])[0],
                    ),
                    asynchronous=False,
                )
                product_ids.append(product_id)
            print(f"  [{time.strftime('%H:%M:%S')}] {supplier_id}: {args.products} products")

        for i in range(args.orders):
            picks = random.sample(product_ids, k=min(len(product_ids), random.randint(1, 4)))
            try:
                place_order(
                    purchaser_id=f"user-{random.randint(1, 25):03d}",
                    items=[{"product_id": pid, "quantity": random.randint(1, 3)} for pid in picks],
                    shipping_address=_address(),
                )
            except (ValidationError, MarketplaceError) as e:
                # Drafts and sold-out products are picked on purpose now and then
                refused += 1
                if refused <= 5:
                    print(f"  [REFUSED] Order {i + 1}: {e}")

    elapsed = time.monotonic() - start
    print(f"\n{'='*60}")
    print("  Seed Complete")
    print(f"{'='*60}")
    print(f"  Products created: {len(product_ids):,}")
    print(f"  Orders placed:    {args.orders - refused:,}")
    print(f"  Orders refused:   {refused:,}")
    print(f"  Total time:       {elapsed:.1f}s")
    print(f"{'='*60}\n")


if __name__ == "__main__":
    main()
