import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from passcode_service.domain.errors import RateLimitExceeded, StoreUnavailable
from passcode_service.infrastructure.http.client import (
    close_http_client,
    get_http_client,
    open_http_client,
)
from passcode_service.infrastructure.keywords.refresher import KeywordRefresher
from passcode_service.infrastructure.keywords.remote_table import RemoteKeywordTable
from passcode_service.infrastructure.redis_cache.pool import close_redis, get_redis
from passcode_service.logging import setup_logging
from passcode_service.presentation.api import api
from passcode_service.settings import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    await open_http_client(timeout=settings.keyword_fetch_timeout_seconds)

    get_redis()

    # ONE shared keyword table, refreshed in the background
    keyword_table = RemoteKeywordTable(
        settings.keyword_config_urls,
        client=get_http_client(),
        timeout=settings.keyword_fetch_timeout_seconds,
    )
    await keyword_table.reload()
    app.state.keyword_table = keyword_table  # expose to dependencies

    refresher = KeywordRefresher(
        keyword_table, interval_seconds=settings.keyword_refresh_interval_seconds
    )
    refresh_task = asyncio.create_task(refresher.run_forever())

    try:
        yield
    finally:
        # shutdown
        refresh_task.cancel()
        try:
            with suppress(asyncio.CancelledError):
                await refresh_task
        finally:
            await close_http_client()
            await close_redis()


async def _store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error("store unavailable", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "storage temporarily unavailable, please retry"},
    )


async def _rate_limited_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(
        "request rate limited",
        extra={"path": request.url.path, "scope": exc.scope, "limit_key": exc.limit_key},
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": "too many requests, please try again later"},
    )


def create_app() -> FastAPI:
    setup_logging(settings.log_level, env=settings.app_env)
    app = FastAPI(title="Passcode API", version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings
    app.add_exception_handler(StoreUnavailable, _store_unavailable_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limited_handler)
    app.include_router(api)
    return app


app = create_app()
