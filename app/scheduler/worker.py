from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import datetime, timezone
from time import perf_counter

import httpx

from app.config import Settings
from app.core.changes import detect_changed_zones
from app.core.formatter import format_schedule_message
from app.core.models import ChangeSet, ScheduleSnapshot
from app.core.serialization import SnapshotFormatError, parse_snapshot
from app.notify.dispatcher import SendOne, send_bulk
from app.observability.metrics import Metrics
from app.providers.base import ScheduleSource
from app.providers.yasno_api import ProviderError
from app.storage.repository import ScheduleRepository


class UpdateWorker:
    def __init__(
        self,
        *,
        settings: Settings,
        provider: ScheduleSource,
        repository: ScheduleRepository,
        metrics: Metrics,
        send_one: SendOne | None,
    ) -> None:
        self.settings = settings
        self.provider = provider
        self.repository = repository
        self.metrics = metrics
        self.send_one = send_one

        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._logger = logging.getLogger("yasno.update")

        self.last_run_status: str = "never"
        self.last_run_started_at: datetime | None = None
        self.last_run_finished_at: datetime | None = None
        self.last_error: str | None = None
        self.last_changed_zones: ChangeSet = []

    async def start(self) -> None:
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop(), name="update-worker")

    async def stop(self) -> None:
        if self._task is None:
            return

        self._stop_event.set()
        await self._task
        self._task = None

    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> None:
        started = datetime.now(tz=timezone.utc)
        self.last_run_started_at = started
        stage = "load_cache"
        status = "success"
        error: str | None = None
        timer_start = perf_counter()

        try:
            cached = self._load_cached_snapshot()

            stage = "fetch"
            try:
                fetch_result = await self.provider.fetch_latest()
            except (httpx.HTTPError, ProviderError, SnapshotFormatError) as exc:
                status = "fetch_error"
                error = str(exc)
                self._logger.exception("Failed to fetch schedule")
                self.repository.save_history(
                    payload={},
                    changed_zones=[],
                    status=status,
                    notes=f"API fetch failed at {started.isoformat()}: {exc}",
                )
                return

            stage = "detect"
            changed = detect_changed_zones(fetch_result.snapshot, cached)
            self.last_changed_zones = changed
            self.metrics.mark_changed_zones(len(changed))

            if changed:
                notes = f"Changes in zones: {', '.join(changed)}"
            else:
                status = "no_change"
                notes = "No changes detected"
            self.repository.save_history(
                payload=fetch_result.payload,
                changed_zones=changed,
                status=status,
                notes=notes,
                fetched_at=fetch_result.fetched_at,
            )

            if changed:
                self._logger.info("Schedule changes detected in zones: %s", ", ".join(changed))
                stage = "notify"
                await self._notify_subscribers(changed, fetch_result.snapshot)
            else:
                self._logger.info("No schedule changes detected")

            stage = "store"
            self.repository.update_cache(fetch_result.payload)
            self.repository.purge_old_history(self.settings.retention_days)

            self.metrics.mark_success(datetime.now(tz=timezone.utc))

        except Exception as exc:
            status = f"{stage}_error"
            error = str(exc)
            self._logger.exception("Unhandled error in update cycle")
            try:
                self.repository.save_history(
                    payload={},
                    changed_zones=[],
                    status=status,
                    notes=f"Error in update cycle: {exc}",
                )
            except sqlite3.Error:
                self._logger.exception("Failed to save error to history")
        finally:
            self.last_run_finished_at = datetime.now(tz=timezone.utc)
            self.last_run_status = status
            self.last_error = error

            self.metrics.mark_update_status(status)
            self.metrics.update_duration_seconds.observe(perf_counter() - timer_start)

    def _load_cached_snapshot(self) -> ScheduleSnapshot:
        payload = self.repository.get_cached_payload()
        try:
            return parse_snapshot(payload)
        except SnapshotFormatError:
            self._logger.warning("Cached schedule is unreadable, treating it as empty")
            return {}

    async def _notify_subscribers(self, changed: ChangeSet, fresh: ScheduleSnapshot) -> None:
        if self.send_one is None:
            self._logger.warning("Notifications are disabled, skipping %d changed zones", len(changed))
            return

        subscribers_by_zone = self.repository.group_subscribers_by_zone()

        for zone in changed:
            chat_ids = subscribers_by_zone.get(zone, [])
            if not chat_ids:
                self._logger.info("No subscribers for zone %s", zone)
                continue

            self._logger.info("Notifying %d subscribers for zone %s", len(chat_ids), zone)
            message = format_schedule_message(zone, fresh[zone], is_update=True)
            outcome = await send_bulk(
                chat_ids,
                message,
                self.send_one,
                chunk_size=self.settings.dispatch_chunk_size,
                chunk_delay_seconds=self.settings.dispatch_chunk_delay_seconds,
            )
            self.metrics.mark_dispatch(outcome)
            self._logger.info(
                "Zone %s: %d sent, %d failed out of %d total",
                zone,
                outcome.successful,
                outcome.failed,
                len(chat_ids),
            )

    async def _run_loop(self) -> None:
        await self.run_once()

        while not self._stop_event.is_set():
            sleep_seconds = self._next_sleep_seconds()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=sleep_seconds)
            except TimeoutError:
                pass

            if self._stop_event.is_set():
                break
            await self.run_once()

    def _next_sleep_seconds(self) -> float:
        interval_seconds = max(self.settings.poll_interval_minutes, 1) * 60
        if not self.settings.poll_align_clock:
            return float(interval_seconds)

        now = datetime.now(tz=timezone.utc).timestamp()
        next_tick = ((int(now) // interval_seconds) + 1) * interval_seconds
        return max(next_tick - now, 1.0)
