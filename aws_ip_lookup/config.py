from typing import Literal

from pydantic_settings import BaseSettings

from aws_ip_lookup.fetcher import AWS_RANGES_URL, DEFAULT_MAX_AGE_SECONDS, DEFAULT_TIMEOUT_SECONDS


class Settings(BaseSettings):
    ranges_url: str = AWS_RANGES_URL
    fetch_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    upstream_max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS
    cache_ttl_seconds: int | None = None
    warm_on_startup: bool = False
    listen_host: str = "0.0.0.0"
    listen_port: int = 8080
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "info"


settings = Settings()
