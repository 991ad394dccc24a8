from __future__ import annotations

from functools import lru_cache
from typing import List, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="SONGRADIO_", extra="allow")

    environment: str = "development"
    log_level: str = "INFO"
    allow_origins: List[str] = ["*"]

    legacy_api_bases: List[str] = [
        "https://www.jiosaavn.com/api.php",
        "https://jiosaavn.com/api.php",
        "https://saavn.me/api.php",
    ]
    backup_api_bases: List[str] = [
        "https://jiosaavn-api-2-harsh-patel.vercel.app",
        "https://saavn.dev/api",
        "https://jiosaavn-api-privatecvc.vercel.app",
        "https://jiosaavn-api-pink.vercel.app",
    ]
    user_agent: str = DEFAULT_USER_AGENT
    http_timeout_seconds: float = 3.0
    backup_timeout_seconds: float = 2.0
    upstream_attempts: int = 2
    upstream_retry_delay: float = 0.3

    engine_profile: Literal["advanced", "simple"] = "advanced"
    suggestion_timeout_seconds: float = 15.0
    candidate_pool_size: int = 80
    pool_delay_scale: float = 1.0
    default_limit: int = 20
    max_limit: int = 100
    search_default_limit: int = 10

    cache_backend: Literal["memory", "redis"] = "memory"
    cache_ttl_seconds: float = 30 * 60
    cache_prefix: str = "songradio:"
    redis_url: str = "redis://redis:6379/0"

    @field_validator("legacy_api_bases", "backup_api_bases", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: List[str]) -> List[str]:
        return [base.rstrip("/") for base in value if base]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
