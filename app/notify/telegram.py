from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger("yasno.telegram")


class TelegramConfigError(RuntimeError):
    pass


@dataclass
class TelegramClient:
    token: str
    api_base: str = "https://api.telegram.org"
    timeout_seconds: int = 10
    parse_mode: str | None = "Markdown"

    def __post_init__(self) -> None:
        if not self.token:
            raise TelegramConfigError("TELEGRAM_TOKEN is empty")

    async def send_message(self, chat_id: int, text: str) -> bool:
        url = f"{self.api_base.rstrip('/')}/bot{self.token}/sendMessage"
        body: dict = {"chat_id": chat_id, "text": text}
        if self.parse_mode:
            body["parse_mode"] = self.parse_mode

        timeout = httpx.Timeout(self.timeout_seconds)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(url, json=body)
        except httpx.HTTPError as exc:
            logger.warning("Failed to send message to chat %s: %s", chat_id, exc)
            return False

        if not response.is_success:
            logger.warning(
                "Telegram rejected message to chat %s: %s %s",
                chat_id,
                response.status_code,
                response.text[:200],
            )
            return False

        return True
