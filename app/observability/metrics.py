from __future__ import annotations

from datetime import datetime, timezone

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from app.core.models import DispatchOutcome


class Metrics:
    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry(auto_describe=True)
        self.update_runs_total = Counter(
            "yasno_update_runs_total",
            "Total update cycles by status",
            labelnames=("status",),
            registry=self.registry,
        )
        self.update_duration_seconds = Histogram(
            "yasno_update_duration_seconds",
            "Duration of update cycles in seconds",
            registry=self.registry,
        )
        self.changed_zones_total = Counter(
            "yasno_changed_zones_total",
            "Total zones detected as changed",
            registry=self.registry,
        )
        self.notifications_total = Counter(
            "yasno_notifications_total",
            "Notification sends by result",
            labelnames=("result",),
            registry=self.registry,
        )
        self.last_success_epoch = Gauge(
            "yasno_last_success_epoch_seconds",
            "Unix timestamp of last successful update cycle",
            registry=self.registry,
        )

    def mark_update_status(self, status: str) -> None:
        self.update_runs_total.labels(status=status).inc()

    def mark_changed_zones(self, count: int) -> None:
        self.changed_zones_total.inc(count)

    def mark_dispatch(self, outcome: DispatchOutcome) -> None:
        self.notifications_total.labels(result="success").inc(outcome.successful)
        self.notifications_total.labels(result="failure").inc(outcome.failed)

    def mark_success(self, finished_at_utc: datetime) -> None:
        self.last_success_epoch.set(finished_at_utc.astimezone(timezone.utc).timestamp())

    def render(self) -> tuple[bytes, str]:
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
