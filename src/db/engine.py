"""Redis client factory and lifespan management.

Redis holds the persisted app settings (preferred payment gateway,
cash-on-delivery skip) that must survive process restarts.
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncGenerator

import redis.asyncio as aioredis

from src.config import settings


def create_redis_client(url: str | None = None) -> aioredis.Redis:
    """Build an async Redis client returning str values."""
    return aioredis.from_url(
        url or settings.redis.redis_url,
        decode_responses=True,
    )


@contextlib.asynccontextmanager
async def redis_lifespan(url: str | None = None) -> AsyncGenerator[aioredis.Redis, None]:
    """Context manager for the Redis connection lifecycle.

    Usage in FastAPI lifespan:
        @asynccontextmanager
        async def lifespan(app: FastAPI):
            async with redis_lifespan() as redis:
                yield
    """
    client = create_redis_client(url)
    try:
        await client.ping()
        yield client
    finally:
        await client.aclose()
