from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_YASNO_API_URL = (
    "https://app.yasno.ua/api/blackout-service/public/shutdowns/regions/25/dsos/902/planned-outages"
)


@dataclass(frozen=True)
class Settings:
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"

    database_path: str = "./data/yasno.db"
    retention_days: int = 30

    enable_scheduler: bool = True
    poll_interval_minutes: int = 5
    poll_align_clock: bool = True

    provider_kind: str = "yasno_json"
    yasno_api_url: str = DEFAULT_YASNO_API_URL
    provider_timeout_seconds: int = 20

    telegram_token: str = ""
    telegram_api_base: str = "https://api.telegram.org"
    telegram_timeout_seconds: int = 10

    dispatch_chunk_size: int = 30
    dispatch_chunk_delay_seconds: float = 1.0

    admin_token: str = ""


def _as_bool(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    return int(raw)


def _as_float(raw: str | None, default: float) -> float:
    if raw is None:
        return default
    return float(raw)


def load_settings() -> Settings:
    return Settings(
        app_host=os.getenv("APP_HOST", "0.0.0.0"),
        app_port=_as_int(os.getenv("APP_PORT"), 8000),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        database_path=os.getenv("DATABASE_PATH", "./data/yasno.db"),
        retention_days=_as_int(os.getenv("RETENTION_DAYS"), 30),
        enable_scheduler=_as_bool(os.getenv("ENABLE_SCHEDULER"), True),
        poll_interval_minutes=_as_int(os.getenv("POLL_INTERVAL_MINUTES"), 5),
        poll_align_clock=_as_bool(os.getenv("POLL_ALIGN_CLOCK"), True),
        provider_kind=os.getenv("PROVIDER_KIND", "yasno_json"),
        yasno_api_url=os.getenv("YASNO_API_URL", DEFAULT_YASNO_API_URL),
        provider_timeout_seconds=_as_int(os.getenv("PROVIDER_TIMEOUT_SECONDS"), 20),
        telegram_token=os.getenv("TELEGRAM_TOKEN", ""),
        telegram_api_base=os.getenv("TELEGRAM_API_BASE", "https://api.telegram.org"),
        telegram_timeout_seconds=_as_int(os.getenv("TELEGRAM_TIMEOUT_SECONDS"), 10),
        dispatch_chunk_size=_as_int(os.getenv("DISPATCH_CHUNK_SIZE"), 30),
        dispatch_chunk_delay_seconds=_as_float(os.getenv("DISPATCH_CHUNK_DELAY_SECONDS"), 1.0),
        admin_token=os.getenv("ADMIN_TOKEN", ""),
    )
