from __future__ import annotations

import asyncio

import pytest

from app.notify.dispatcher import chunked, send_bulk


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class RecordingSender:
    def __init__(self, failing: set[int] | None = None, raising: set[int] | None = None) -> None:
        self.failing = failing or set()
        self.raising = raising or set()
        self.calls: list[tuple[int, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, chat_id: int, text: str) -> bool:
        self.calls.append((chat_id, text))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if chat_id in self.raising:
                raise RuntimeError(f"boom {chat_id}")
            return chat_id not in self.failing
        finally:
            self.in_flight -= 1


def test_chunked_preserves_order() -> None:
    chunks = [list(chunk) for chunk in chunked(list(range(65)), 30)]

    assert [len(chunk) for chunk in chunks] == [30, 30, 5]
    assert [item for chunk in chunks for item in chunk] == list(range(65))


def test_chunked_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        list(chunked([1, 2, 3], 0))


@pytest.mark.asyncio
async def test_send_bulk_paces_chunks() -> None:
    sender = RecordingSender()
    sleep = RecordingSleep()
    recipients = list(range(1, 66))

    outcome = await send_bulk(recipients, "hello", sender, sleep=sleep)

    assert outcome.successful == 65
    assert outcome.failed == 0
    assert sleep.calls == [1.0, 1.0]
    assert [chat_id for chat_id, _ in sender.calls] == recipients
    assert sender.max_in_flight == 30


@pytest.mark.asyncio
async def test_send_bulk_waits_between_chunks_in_real_time() -> None:
    sender = RecordingSender()
    loop = asyncio.get_running_loop()
    started = loop.time()

    outcome = await send_bulk(list(range(5)), "hello", sender, chunk_size=2, chunk_delay_seconds=0.05)

    assert outcome.total == 5
    assert loop.time() - started >= 0.09


@pytest.mark.asyncio
async def test_send_bulk_with_no_recipients() -> None:
    sender = RecordingSender()
    sleep = RecordingSleep()

    outcome = await send_bulk([], "hello", sender, sleep=sleep)

    assert (outcome.successful, outcome.failed) == (0, 0)
    assert sender.calls == []
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_send_bulk_single_chunk_has_no_pause() -> None:
    sleep = RecordingSleep()

    outcome = await send_bulk(list(range(30)), "hello", RecordingSender(), sleep=sleep)

    assert outcome.successful == 30
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_send_bulk_counts_failures_and_exceptions() -> None:
    sender = RecordingSender(failing={3, 40}, raising={7, 64})
    sleep = RecordingSleep()

    outcome = await send_bulk(list(range(65)), "hello", sender, sleep=sleep)

    assert outcome.successful == 61
    assert outcome.failed == 4
    assert outcome.total == 65
    assert len(sender.calls) == 65


@pytest.mark.asyncio
async def test_send_bulk_all_failing() -> None:
    async def always_raises(chat_id: int, text: str) -> bool:
        raise ConnectionError("channel down")

    outcome = await send_bulk(list(range(65)), "hello", always_raises, sleep=RecordingSleep())

    assert outcome.successful == 0
    assert outcome.failed == 65


@pytest.mark.asyncio
async def test_send_bulk_only_true_counts_as_success() -> None:
    async def falsy(chat_id: int, text: str):
        return None if chat_id % 2 else True

    outcome = await send_bulk(list(range(10)), "hello", falsy, sleep=RecordingSleep())

    assert outcome.successful == 5
    assert outcome.failed == 5
