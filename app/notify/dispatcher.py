from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator, Sequence
from typing import TypeVar

from app.core.constants import TELEGRAM_CHUNK_DELAY_SECONDS, TELEGRAM_CHUNK_SIZE
from app.core.models import DispatchOutcome

SendOne = Callable[[int, str], Awaitable[bool]]
Sleep = Callable[[float], Awaitable[None]]

T = TypeVar("T")

logger = logging.getLogger("yasno.dispatch")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    for offset in range(0, len(items), size):
        yield items[offset : offset + size]


async def _attempt(send_one: SendOne, recipient: int, message: str) -> bool:
    return await send_one(recipient, message)


async def send_bulk(
    recipients: Sequence[int],
    message: str,
    send_one: SendOne,
    *,
    chunk_size: int = TELEGRAM_CHUNK_SIZE,
    chunk_delay_seconds: float = TELEGRAM_CHUNK_DELAY_SECONDS,
    sleep: Sleep = asyncio.sleep,
) -> DispatchOutcome:
    """Send ``message`` to every recipient, ``chunk_size`` at a time.

    Sends within a chunk run concurrently; chunks are separated by a fixed
    pause so the sustained rate stays under the channel limit. A send counts
    as successful only when it returns ``True``; exceptions and falsy results
    count as failures and never propagate.
    """
    successful = 0
    failed = 0
    chunks = list(chunked(recipients, chunk_size))

    for index, chunk in enumerate(chunks):
        results = await asyncio.gather(
            *(_attempt(send_one, recipient, message) for recipient in chunk),
            return_exceptions=True,
        )

        for recipient, result in zip(chunk, results):
            if result is True:
                successful += 1
                continue
            failed += 1
            if isinstance(result, BaseException):
                logger.warning("Send to %s raised %s: %s", recipient, type(result).__name__, result)

        logger.debug("Chunk %d/%d sent: %d recipients", index + 1, len(chunks), len(chunk))

        if index < len(chunks) - 1:
            await sleep(chunk_delay_seconds)

    return DispatchOutcome(successful=successful, failed=failed)
