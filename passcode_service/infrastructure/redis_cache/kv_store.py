from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from passcode_service.domain.errors import StoreUnavailable
from passcode_service.domain.ports.kv_store import KeyValueStorePort

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(op: str, key: str) -> Iterator[None]:
    try:
        yield
    except RedisError as e:
        # key family only; passcode keys embed the code itself
        family = key.split(":", 1)[0]
        logger.error("redis %s failed", op, extra={"key_family": family, "error": str(e)})
        raise StoreUnavailable(f"redis {op} failed: {e}") from e


class RedisKeyValueStore(KeyValueStorePort):
    def __init__(self, redis: Redis, *, key_prefix: str = "") -> None:
        self._redis = redis
        self._prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with _store_errors("set", key):
            await self._redis.set(self._key(key), value, ex=ttl_seconds)

    async def get(self, key: str) -> Optional[str]:
        with _store_errors("get", key):
            return await self._redis.get(self._key(key))

    async def delete(self, key: str) -> bool:
        with _store_errors("delete", key):
            return int(await self._redis.delete(self._key(key))) > 0

    async def increment(self, key: str) -> int:
        with _store_errors("incr", key):
            return int(await self._redis.incr(self._key(key)))

    async def expire_if_unset(self, key: str, ttl_seconds: int) -> bool:
        # EXPIRE ... NX needs Redis >= 7.0
        with _store_errors("expire", key):
            return bool(await self._redis.expire(self._key(key), ttl_seconds, nx=True))

    async def remaining_ttl(self, key: str) -> int:
        with _store_errors("ttl", key):
            return int(await self._redis.ttl(self._key(key)))

    async def exists(self, key: str) -> bool:
        with _store_errors("exists", key):
            return int(await self._redis.exists(self._key(key))) > 0
