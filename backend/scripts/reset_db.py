"""Reset database to empty state.

Clears all data from:
- products
- curation_slots

Also clears the rate limiter windows in Redis.

Usage:
    cd backend && uv run python -m scripts.reset_db
"""

import asyncio

from redis.exceptions import RedisError
from sqlalchemy import text

from catalog.core.database import async_session_maker, engine
from catalog.core.redis import close_redis, get_redis


async def reset_database():
    """Clear all data from the database."""
    print("=" * 60)
    print("Resetting database to empty state...")
    print("=" * 60)

    async with async_session_maker() as session:
        tables = ["products", "curation_slots"]

        for table in tables:
            result = await session.execute(text(f"DELETE FROM {table}"))
            print(f"  Deleted {result.rowcount} rows from {table}")

        await session.commit()
        print("\nDatabase cleared successfully!")


async def reset_redis():
    """Clear rate limiter keys."""
    print("\nResetting Redis...")

    try:
        redis = await get_redis()
        deleted = 0
        async for key in redis.scan_iter(match="ratelimit:*"):
            deleted += await redis.delete(key)
        print(f"  Deleted {deleted} rate limit keys")
    except (RedisError, OSError) as e:
        print(f"  Warning: Could not clear Redis: {e}")
        print("  (This is OK if Redis is not running locally)")
    finally:
        await close_redis()


async def main():
    await reset_database()
    await reset_redis()

    print("\n" + "=" * 60)
    print("Reset complete!")
    print("=" * 60)
    print("\nTo re-seed the database, run:")
    print("  cd backend && uv run python -m scripts.seed_data")
    print("=" * 60)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
