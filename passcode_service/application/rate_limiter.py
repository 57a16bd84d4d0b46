from __future__ import annotations

import logging
from typing import Optional

from passcode_service.domain.errors import RateLimitExceeded, StoreUnavailable
from passcode_service.domain.ports.kv_store import KeyValueStorePort

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-window counter per limit key, built on the store's INCR + TTL.

    The window starts on the first increment after the key is created or has
    expired; it never slides. INCR and the TTL write are two commands, so a
    crash between them leaves a counter without TTL, and concurrent first
    requests may both attempt the EXPIRE (NX keeps the first one).
    """

    def __init__(self, store: KeyValueStorePort, *, key_prefix: str = "rate_limit:") -> None:
        self._store = store
        self._prefix = key_prefix

    def _key(self, limit_key: str) -> str:
        return f"{self._prefix}{limit_key}"

    async def check_and_consume(
        self, limit_key: str, max_requests: int, window_seconds: int
    ) -> bool:
        key = self._key(limit_key)

        raw = await self._store.get(key)
        try:
            current = int(raw) if raw is not None else 0
        except ValueError as e:
            raise StoreUnavailable(f"corrupt rate limit counter at {key}") from e
        if current >= max_requests:
            logger.warning(
                "rate limit exceeded",
                extra={"limit_key": limit_key, "current": current, "max": max_requests},
            )
            return False

        new_count = await self._store.increment(key)
        if new_count == 1:
            await self._store.expire_if_unset(key, window_seconds)

        logger.debug(
            "rate limit check",
            extra={"limit_key": limit_key, "count": new_count, "max": max_requests},
        )
        return True


class RateGate:
    """Request-boundary gating: one limiter call per IP and one per owner."""

    def __init__(
        self,
        limiter: RateLimiter,
        *,
        per_ip: int,
        per_user: int,
        window_seconds: int,
    ) -> None:
        self._limiter = limiter
        self.per_ip = per_ip
        self.per_user = per_user
        self.window_seconds = window_seconds

    async def check_ip(self, ip: str) -> bool:
        return await self._limiter.check_and_consume(
            f"ip:{ip}", self.per_ip, self.window_seconds
        )

    async def check_user(self, owner_id: str) -> bool:
        return await self._limiter.check_and_consume(
            f"user:{owner_id}", self.per_user, self.window_seconds
        )

    async def enforce(
        self, *, ip: Optional[str] = None, owner_id: Optional[str] = None
    ) -> None:
        """Raise RateLimitExceeded on the first denial (IP is checked first)."""
        if ip is not None and not await self.check_ip(ip):
            raise RateLimitExceeded("ip", f"ip:{ip}")
        if owner_id is not None and not await self.check_user(owner_id):
            raise RateLimitExceeded("user", f"user:{owner_id}")
