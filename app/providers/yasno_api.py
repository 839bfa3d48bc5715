from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx

from app.core.constants import YASNO_API_HEADERS
from app.core.models import FetchResult
from app.core.serialization import parse_snapshot


class ProviderError(RuntimeError):
    pass


logger = logging.getLogger("yasno.provider")


@dataclass
class YasnoProvider:
    api_url: str
    timeout_seconds: int = 20
    headers: dict[str, str] = field(default_factory=lambda: dict(YASNO_API_HEADERS))

    async def fetch_latest(self) -> FetchResult:
        if not self.api_url:
            raise ProviderError("YASNO_API_URL is empty")

        timeout = httpx.Timeout(self.timeout_seconds)
        async with httpx.AsyncClient(timeout=timeout, headers=self.headers) as client:
            response = await client.get(self.api_url)
            response.raise_for_status()
            try:
                payload = response.json()
            except ValueError as exc:
                raise ProviderError(f"Schedule source returned non-JSON body: {exc}") from exc

        if not isinstance(payload, dict):
            raise ProviderError(f"Schedule source returned {type(payload).__name__}, expected an object")

        snapshot = parse_snapshot(payload)
        logger.info("Fetched schedule for %d zones", len(snapshot))

        return FetchResult(
            snapshot=snapshot,
            payload=payload,
            fetched_at=datetime.now(tz=timezone.utc),
        )
