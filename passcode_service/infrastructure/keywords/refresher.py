from __future__ import annotations

import asyncio
import logging

from passcode_service.infrastructure.keywords.remote_table import RemoteKeywordTable

logger = logging.getLogger(__name__)


class KeywordRefresher:
    """
    Periodically reloads a RemoteKeywordTable. The first reload happens
    after one interval; callers load the table once at startup themselves.
    """

    def __init__(self, table: RemoteKeywordTable, *, interval_seconds: float) -> None:
        self.table = table
        self.interval_seconds = interval_seconds

    async def run_once(self) -> bool:
        logger.info("keyword refresh started")
        ok = await self.table.reload()
        logger.info("keyword refresh finished", extra={"ok": ok})
        return ok

    async def run_forever(self) -> None:
        logger.info("keyword refresher started", extra={"interval": self.interval_seconds})
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except Exception:
                logger.exception("keyword refresh crashed; retrying next interval")
