from typing import Optional, Protocol


class KeyValueStorePort(Protocol):
    """
    String-keyed store with per-key TTL. Every operation is atomic on a
    single key; there are no multi-key transactions.
    Implementations raise StoreUnavailable on any transport failure.
    """

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store/replace `value` with TTL=ttl_seconds."""

    async def get(self, key: str) -> Optional[str]:
        """Value or None when absent/expired."""

    async def delete(self, key: str) -> bool:
        """True if a key was removed. Deleting an absent key is not an error."""

    async def increment(self, key: str) -> int:
        """Atomically add 1 (absent counts as 0) and return the new count."""

    async def expire_if_unset(self, key: str, ttl_seconds: int) -> bool:
        """Set a TTL only if the key has none. True if the TTL was set."""

    async def remaining_ttl(self, key: str) -> int:
        """Seconds left, -1 when the key has no TTL, -2 when it is absent."""

    async def exists(self, key: str) -> bool:
        """True if the key is present."""
