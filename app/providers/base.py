from __future__ import annotations

from typing import Protocol

from app.core.models import FetchResult


class ScheduleSource(Protocol):
    async def fetch_latest(self) -> FetchResult:
        """Fetch the current planned-outages snapshot for all zones."""
