from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Callable, Optional

import passcode_service.domain.services as domain_services
from passcode_service.domain.entities import PasscodeRecord, VerifyOutcome, VerifyResult
from passcode_service.domain.errors import StoreUnavailable
from passcode_service.domain.ports.kv_store import KeyValueStorePort

logger = logging.getLogger(__name__)

PASSCODE_PREFIX = "passcode:"
OWNER_PASSCODE_PREFIX = "user_passcode:"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PasscodeService:
    """
    Issues, verifies and cleans up one-time passcodes.

    Two key families live in the store, both written with the same TTL:
      passcode:<code>          -> PasscodeRecord JSON
      user_passcode:<owner_id> -> <code>
    There is no lock: concurrent issue() calls for one owner may each write a
    code, and the owner index keeps only the last one. The other code stays
    verifiable until its TTL runs out.
    """

    def __init__(
        self,
        store: KeyValueStorePort,
        *,
        length: int = 6,
        ttl_seconds: int = 300,
        max_attempts: int = 10,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if not domain_services.MIN_PASSCODE_LENGTH <= length <= domain_services.MAX_PASSCODE_LENGTH:
            raise ValueError("length must be between 4 and 10")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._store = store
        self.length = length
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    # -- store helpers -------------------------------------------------

    async def _load_record(self, code: str) -> Optional[PasscodeRecord]:
        raw = await self._store.get(PASSCODE_PREFIX + code)
        if raw is None:
            return None
        try:
            return PasscodeRecord.from_json(raw)
        except (ValueError, KeyError, TypeError) as e:
            raise StoreUnavailable(f"corrupt passcode record for {code!r}") from e

    async def _save_record(self, code: str, record: PasscodeRecord, ttl_seconds: int) -> None:
        await self._store.set(PASSCODE_PREFIX + code, record.to_json(), ttl_seconds)

    def _is_live(self, record: Optional[PasscodeRecord]) -> bool:
        return record is not None and not record.used and not record.is_expired(self._clock())

    # -- operations ----------------------------------------------------

    async def issue(self, owner_id: str, trigger: str) -> str:
        """
        Return the owner's live code unchanged, or generate and store a new one.
        """
        if not owner_id or not owner_id.strip():
            raise ValueError("owner_id is required")

        existing = await self._store.get(OWNER_PASSCODE_PREFIX + owner_id)
        if existing is not None:
            record = await self._load_record(existing)
            if self._is_live(record):
                logger.info("owner already has a live passcode", extra={"owner_id": owner_id})
                return existing
            await self.cleanup(owner_id, existing)

        code = await self._generate_unique()
        record = PasscodeRecord.create(owner_id, trigger, self.ttl_seconds, self._clock())

        await self._save_record(code, record, self.ttl_seconds)
        await self._store.set(OWNER_PASSCODE_PREFIX + owner_id, code, self.ttl_seconds)

        logger.info(
            "passcode issued",
            extra={"owner_id": owner_id, "trigger": trigger, "ttl": self.ttl_seconds},
        )
        return code

    async def _generate_unique(self) -> str:
        for attempt in range(1, self.max_attempts + 1):
            code = domain_services.generate_passcode(self.length)
            if not await self._store.exists(PASSCODE_PREFIX + code):
                logger.debug("generated passcode", extra={"attempts": attempt})
                return code

        # Give up retrying: accept the small residual collision risk.
        logger.warning("passcode collision budget exhausted", extra={"attempts": self.max_attempts})
        return domain_services.generate_passcode_with_suffix(self.length, True, self._clock())

    async def verify(self, code: str, claimed_owner_id: Optional[str] = None) -> VerifyResult:
        if not domain_services.is_valid_format(code):
            logger.warning("passcode format invalid")
            return VerifyResult.failure(VerifyOutcome.INVALID_FORMAT)

        record = await self._load_record(code)
        if record is None:
            logger.warning("passcode not found", extra={"claimed_owner_id": claimed_owner_id})
            return VerifyResult.failure(VerifyOutcome.NOT_FOUND)

        if record.used:
            logger.warning("passcode already used", extra={"owner_id": record.owner_id})
            return VerifyResult.failure(VerifyOutcome.ALREADY_USED)

        now = self._clock()
        if record.is_expired(now):
            logger.warning(
                "passcode expired",
                extra={"owner_id": record.owner_id, "expires_at": record.expires_at.isoformat()},
            )
            await self.cleanup(record.owner_id, code)
            return VerifyResult.failure(VerifyOutcome.EXPIRED)

        record.mark_used(now)
        remaining = max(1, math.ceil((record.expires_at - now).total_seconds()))
        await self._save_record(code, record, remaining)

        # One-shot: the code is gone even though it had time left.
        await self._store.delete(PASSCODE_PREFIX + code)
        await self._store.delete(OWNER_PASSCODE_PREFIX + record.owner_id)

        logger.info(
            "passcode verified",
            extra={"owner_id": record.owner_id, "claimed_owner_id": claimed_owner_id},
        )
        return VerifyResult.success(record.expires_at)

    async def get_active_owner_code(self, owner_id: str) -> Optional[str]:
        code = await self._store.get(OWNER_PASSCODE_PREFIX + owner_id)
        if code is None:
            return None
        record = await self._load_record(code)
        if not self._is_live(record):
            await self.cleanup(owner_id, code)
            return None
        return code

    async def get_record(self, code: str) -> Optional[PasscodeRecord]:
        if not domain_services.is_valid_format(code):
            return None
        return await self._load_record(code)

    async def cleanup(self, owner_id: str, code: Optional[str]) -> None:
        if code is not None:
            await self._store.delete(PASSCODE_PREFIX + code)
        await self._store.delete(OWNER_PASSCODE_PREFIX + owner_id)
        logger.debug("passcode entries cleaned up", extra={"owner_id": owner_id})
