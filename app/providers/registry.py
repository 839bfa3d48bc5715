from __future__ import annotations

from app.config import Settings
from app.providers.base import ScheduleSource
from app.providers.yasno_api import YasnoProvider


class UnknownProviderError(RuntimeError):
    pass


def build_provider(settings: Settings) -> ScheduleSource:
    if settings.provider_kind == "yasno_json":
        return YasnoProvider(
            api_url=settings.yasno_api_url,
            timeout_seconds=settings.provider_timeout_seconds,
        )

    raise UnknownProviderError(f"Unsupported provider kind: {settings.provider_kind}")
