# tests/integration/conftest.py
import os
from uuid import uuid4

import pytest
import pytest_asyncio
from redis.asyncio import Redis
from redis.exceptions import RedisError

from passcode_service.infrastructure.redis_cache.kv_store import RedisKeyValueStore


@pytest_asyncio.fixture
async def redis_client():
    url = os.environ.get("REDIS_URL", "redis://redis:6379/0")
    r = Redis.from_url(
        url, encoding="utf-8", decode_responses=True, socket_connect_timeout=1
    )
    try:
        await r.ping()
    except (RedisError, OSError) as e:
        await r.aclose()
        pytest.skip(f"redis not reachable at {url}: {e}")
    try:
        yield r
    finally:
        await r.aclose()


@pytest_asyncio.fixture
async def kv_store(redis_client):
    prefix = f"test:{uuid4().hex}:"
    try:
        yield RedisKeyValueStore(redis_client, key_prefix=prefix)
    finally:
        keys = await redis_client.keys(f"{prefix}*")
        if keys:
            await redis_client.delete(*keys)
