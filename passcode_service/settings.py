from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"
    app_version: str = "0.1.0"

    # Infra
    redis_url: str = "redis://redis:6379/0"
    redis_socket_timeout_seconds: float = 5.0

    # Passcodes
    passcode_length: int = 6
    passcode_ttl_seconds: int = 300
    passcode_max_attempts: int = 10
    passcode_trigger_keyword: str = "passcode"
    passcode_trigger_aliases: list[str] = Field(default_factory=lambda: ["code"])

    # Rate limits (fixed window)
    rate_limit_per_ip: int = 10
    rate_limit_per_user: int = 3
    rate_limit_window_seconds: int = 60

    # Keyword table (remote JSON, tried in order)
    keyword_config_urls: list[str] = Field(
        default_factory=lambda: [
            "https://fastly.jsdelivr.net/gh/MouseSun846/wechat-code@master/config.json",
            "https://ghfast.top/https://raw.githubusercontent.com/MouseSun846/wechat-code/master/config.json",
            "https://raw.githubusercontent.com/MouseSun846/wechat-code/master/config.json",
        ]
    )
    keyword_refresh_interval_seconds: int = 86400
    keyword_fetch_timeout_seconds: float = 10.0

    # Message platform
    wechat_token: str = "changeme"
    wechat_qrcode_url: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("passcode_length")
    @classmethod
    def _length_in_range(cls, value: int) -> int:
        if not 4 <= value <= 10:
            raise ValueError("passcode_length must be between 4 and 10")
        return value

    @field_validator(
        "passcode_ttl_seconds",
        "passcode_max_attempts",
        "rate_limit_per_ip",
        "rate_limit_per_user",
        "rate_limit_window_seconds",
        "keyword_refresh_interval_seconds",
    )
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be > 0")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
