from __future__ import annotations

from typing import Final

ZONES: Final[list[str]] = [
    "1.1",
    "1.2",
    "2.1",
    "2.2",
    "3.1",
    "3.2",
    "4.1",
    "4.2",
    "5.1",
    "5.2",
    "6.1",
    "6.2",
]

MINUTES_PER_DAY: Final[int] = 1440

# https://core.telegram.org/bots/faq#broadcasting-to-users
TELEGRAM_CHUNK_SIZE: Final[int] = 30
TELEGRAM_CHUNK_DELAY_SECONDS: Final[float] = 1.0

YASNO_API_HEADERS: Final[dict[str, str]] = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "uk-UA,uk;q=0.9,en-US;q=0.8,en;q=0.7",
    "Referer": "https://static.yasno.ua/",
    "Origin": "https://static.yasno.ua",
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    ),
}

LOCAL_TIMEZONE: Final[str] = "Europe/Kyiv"

WEEKDAYS_SHORT: Final[tuple[str, ...]] = ("пн", "вт", "ср", "чт", "пт", "сб", "нд")
