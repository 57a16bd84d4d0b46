from __future__ import annotations

import logging
from typing import Optional, Sequence

import httpx

from passcode_service.domain.ports.keyword_lookup import KeywordLookupPort

logger = logging.getLogger(__name__)


class RemoteKeywordTable(KeywordLookupPort):
    """
    Read-mostly keyword -> reply text mapping fetched from a JSON document
    of the form {"keywords": {"<keyword>": "<reply>", ...}}.

    Mirrors are tried in order; the first usable one wins. A failed reload
    keeps the previous table.
    """

    def __init__(
        self,
        urls: Sequence[str],
        *,
        client: httpx.AsyncClient,
        timeout: float = 10.0,
    ) -> None:
        self._urls = list(urls)
        self._client = client
        self._timeout = timeout
        self._keywords: dict[str, str] = {}

    def lookup(self, keyword: str) -> Optional[str]:
        return self._keywords.get(keyword)

    def matches(self, keyword: str) -> bool:
        return keyword in self._keywords

    def keywords(self) -> dict[str, str]:
        return dict(self._keywords)

    async def reload(self) -> bool:
        for index, url in enumerate(self._urls, start=1):
            logger.info(
                "loading keyword table",
                extra={"url": url, "mirror": index, "mirrors": len(self._urls)},
            )
            try:
                table = await self._fetch(url)
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
                logger.warning("keyword mirror failed", extra={"url": url, "error": str(e)})
                continue
            if table is None:
                continue
            # swap the whole dict so readers never see a half-built table
            self._keywords = table
            logger.info("keyword table loaded", extra={"url": url, "count": len(table)})
            return True

        logger.error(
            "all keyword mirrors failed; keeping previous table",
            extra={"count": len(self._keywords)},
        )
        return False

    async def _fetch(self, url: str) -> Optional[dict[str, str]]:
        resp = await self._client.get(
            url, headers={"Accept": "application/json"}, timeout=self._timeout
        )
        if resp.status_code != 200:
            logger.warning(
                "keyword mirror responded with an error",
                extra={"url": url, "status": resp.status_code},
            )
            return None
        if not resp.content.strip():
            logger.warning("keyword mirror returned an empty body", extra={"url": url})
            return None
        try:
            payload = resp.json()
        except ValueError:
            logger.warning("keyword mirror returned invalid JSON", extra={"url": url})
            return None

        keywords = payload.get("keywords") if isinstance(payload, dict) else None
        if not isinstance(keywords, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in keywords.items()
        ):
            logger.warning("keyword mirror payload has no keywords map", extra={"url": url})
            return None
        return dict(keywords)
