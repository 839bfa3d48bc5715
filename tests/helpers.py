from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from app.core.models import FetchResult
from app.core.serialization import parse_snapshot


def slot(start: int, end: int, kind: str = "Definite") -> dict[str, Any]:
    return {"start": start, "end": end, "type": kind}


def day(
    slots: list[dict[str, Any]],
    *,
    status: str = "ScheduleApplies",
    date: str = "2026-02-18T00:00:00+02:00",
) -> dict[str, Any]:
    return {"date": date, "status": status, "slots": slots}


def zone(
    today_slots: list[dict[str, Any]],
    tomorrow_slots: list[dict[str, Any]] | None = None,
    *,
    today_status: str = "ScheduleApplies",
    tomorrow_status: str = "WaitingForSchedule",
    updated_on: str | None = "2026-02-18T07:30:00+00:00",
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "today": day(today_slots, status=today_status),
        "tomorrow": day(
            tomorrow_slots if tomorrow_slots is not None else [slot(0, 1440, "NotPlanned")],
            status=tomorrow_status,
            date="2026-02-19T00:00:00+02:00",
        ),
    }
    if updated_on is not None:
        payload["updatedOn"] = updated_on
    return payload


def sample_payload() -> dict[str, Any]:
    return {
        "1.1": zone([slot(0, 450), slot(450, 1440, "NotPlanned")]),
        "2.1": zone([slot(0, 600, "NotPlanned"), slot(600, 840), slot(840, 1440, "NotPlanned")]),
    }


def fetch_result(payload: dict[str, Any]) -> FetchResult:
    return FetchResult(
        snapshot=parse_snapshot(payload),
        payload=payload,
        fetched_at=datetime(2026, 2, 18, 7, 31, tzinfo=timezone.utc),
    )
