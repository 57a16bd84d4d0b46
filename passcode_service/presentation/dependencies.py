from fastapi import Depends, Request

from passcode_service.application.handle_message import MessageHandler
from passcode_service.application.passcode_service import PasscodeService
from passcode_service.application.rate_limiter import RateGate, RateLimiter
from passcode_service.domain.ports.keyword_lookup import KeywordLookupPort
from passcode_service.domain.ports.kv_store import KeyValueStorePort
from passcode_service.infrastructure.redis_cache.kv_store import RedisKeyValueStore
from passcode_service.infrastructure.redis_cache.pool import get_redis
from passcode_service.settings import Settings, get_settings


def get_app_settings() -> Settings:
    return get_settings()


def get_kv_store() -> KeyValueStorePort:
    return RedisKeyValueStore(get_redis())


def get_passcode_service(
    store: KeyValueStorePort = Depends(get_kv_store),
    settings: Settings = Depends(get_app_settings),
) -> PasscodeService:
    return PasscodeService(
        store,
        length=settings.passcode_length,
        ttl_seconds=settings.passcode_ttl_seconds,
        max_attempts=settings.passcode_max_attempts,
    )


def get_rate_gate(
    store: KeyValueStorePort = Depends(get_kv_store),
    settings: Settings = Depends(get_app_settings),
) -> RateGate:
    return RateGate(
        RateLimiter(store),
        per_ip=settings.rate_limit_per_ip,
        per_user=settings.rate_limit_per_user,
        window_seconds=settings.rate_limit_window_seconds,
    )


def get_keyword_table(request: Request) -> KeywordLookupPort:
    # This is set in passcode_service.main lifespan()
    table = getattr(request.app.state, "keyword_table", None)
    if table is None:
        raise RuntimeError("keyword table not loaded yet")
    return table


def get_message_handler(
    passcodes: PasscodeService = Depends(get_passcode_service),
    gate: RateGate = Depends(get_rate_gate),
    keywords: KeywordLookupPort = Depends(get_keyword_table),
    settings: Settings = Depends(get_app_settings),
) -> MessageHandler:
    return MessageHandler(
        passcodes,
        gate,
        keywords,
        trigger_keywords=[
            settings.passcode_trigger_keyword,
            *settings.passcode_trigger_aliases,
        ],
    )
