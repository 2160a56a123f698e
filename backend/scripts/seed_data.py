"""Seed data script for development and testing.

Creates:
- SEED_PRODUCT_COUNT products spread over the last few years, all months
  and a rotation of categories
- Curation slots (bestSellers capacity 4, popularFeatured capacity 1)
- A curated storefront: 4 Main Showcase products, a handful of
  bestSelling and editorsPick products and one popularFeatured product

Flags are set through VisibilityService so the seeded store obeys the
same exclusivity and limit rules as the API.

Environment Variables:
    SEED_PRODUCT_COUNT: Number of products to create (default: 60)
    SEED_YEARS: How many years back to spread products over (default: 4)
    RESET_DATA: Set to "true" to delete existing products before seeding (default: false)

Usage:
    # First time setup
    cd backend && uv run python -m scripts.seed_data

    # Start over with a fresh catalog
    RESET_DATA=true uv run python -m scripts.seed_data
"""

import asyncio
import os
import random
from datetime import datetime, timezone
from decimal import Decimal

# Configuration from environment variables
SEED_PRODUCT_COUNT = int(os.getenv("SEED_PRODUCT_COUNT", "60"))
SEED_YEARS = int(os.getenv("SEED_YEARS", "4"))
RESET_DATA = os.getenv("RESET_DATA", "false").lower() == "true"

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.core.database import async_session_maker, engine
from catalog.models import CATEGORIES, MONTHS, Product
from catalog.services.exceptions import LimitReachedError
from catalog.services.visibility_rules import SHOWCASE_LIMIT
from catalog.services.visibility_service import VisibilityService, ensure_curation_slots

ADJECTIVES = ["Oak", "Walnut", "Brass", "Linen", "Ceramic", "Marble", "Woven", "Glass"]
NOUNS = ["Lamp", "Chair", "Vase", "Throw", "Bowl", "Shelf", "Mirror", "Stool"]


async def reset_catalog_data(session: AsyncSession) -> None:
    """Delete all products and curation slots."""
    print("Resetting catalog data...")
    await session.execute(text("DELETE FROM products"))
    await session.execute(text("DELETE FROM curation_slots"))
    await session.commit()
    print("  Cleared products, curation_slots")


async def seed_products(session: AsyncSession) -> list[Product]:
    """Create SEED_PRODUCT_COUNT Active products with cleared flags."""
    print("Seeding products...")

    result = await session.execute(select(Product).limit(1))
    if result.scalar_one_or_none():
        print("  Products already exist, skipping...")
        result = await session.execute(select(Product))
        return list(result.scalars().all())

    this_year = datetime.now(timezone.utc).year
    products = []
    for i in range(1, SEED_PRODUCT_COUNT + 1):
        name = f"{random.choice(ADJECTIVES)} {random.choice(NOUNS)} {i:03d}"
        product = Product(
            name=name,
            description=f"{name}, made in a small batch.",
            product_link=f"https://example.com/products/{i:03d}",
            price=Decimal(str(round(random.uniform(15, 900), 2))),
            category=CATEGORIES[i % len(CATEGORIES)],
            sku=f"SEED-{i:04d}",
            image_url=f"https://example.com/images/{i:03d}.jpg",
            year=this_year - random.randrange(SEED_YEARS),
            month=random.choice(MONTHS),
            tags=[random.choice(NOUNS).lower()],
            stock=random.randint(0, 50),
            views=random.randint(0, 500),
        )
        products.append(product)

    session.add_all(products)
    await session.commit()

    for product in products:
        await session.refresh(product)

    print(f"  Created {len(products)} products")
    return products


async def seed_curation(session: AsyncSession, products: list[Product]) -> dict[str, int]:
    """Assign visibility flags through the rule engine."""
    print("Seeding curation flags...")
    await ensure_curation_slots(session)

    service = VisibilityService(session)
    # A rejected grant rolls back and expires loaded rows; plan on plain values
    entries = [(p.product_id, p.name) for p in products]
    picks = random.sample(entries, min(len(products), SHOWCASE_LIMIT + 12))
    plan = (
        [("bestSellers", p) for p in picks[:SHOWCASE_LIMIT]]
        + [("bestSelling", p) for p in picks[SHOWCASE_LIMIT:SHOWCASE_LIMIT + 6]]
        + [("editorsPick", p) for p in picks[SHOWCASE_LIMIT + 6:]]
        + [("published", p) for p in entries]
    )
    if len(picks) > SHOWCASE_LIMIT:
        plan.append(("popularFeatured", picks[SHOWCASE_LIMIT]))

    counts: dict[str, int] = {}
    for flag, (product_id, name) in plan:
        try:
            await service.apply_visibility_change(product_id, flag, True)
        except LimitReachedError as e:
            print(f"  Skipped {flag} for {name}: {e}")
            continue
        counts[flag] = counts.get(flag, 0) + 1

    for flag, count in counts.items():
        print(f"  {flag}: {count}")
    return counts


async def main():
    """Main seed function."""
    print("=" * 60)
    print("Catalog Curation - Seed Data Script")
    print("=" * 60)
    print(f"  RESET_DATA: {RESET_DATA}")
    print(f"  SEED_PRODUCT_COUNT: {SEED_PRODUCT_COUNT}")
    print(f"  SEED_YEARS: {SEED_YEARS}")
    print("=" * 60)

    async with async_session_maker() as session:
        if RESET_DATA:
            await reset_catalog_data(session)

        products = await seed_products(session)
        counts = await seed_curation(session, products)

    print("=" * 60)
    print("Seed data complete!")
    print(f"  Products: {len(products)}")
    print(f"  Main Showcase: {counts.get('bestSellers', 0)} of {SHOWCASE_LIMIT}")
    print("=" * 60)
    print("")
    print("Browse the curated homepage:")
    print("  curl http://localhost:8000/api/v1/products/featured/homepage")
    print("=" * 60)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
