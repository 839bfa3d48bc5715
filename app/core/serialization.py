from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from app.core.constants import MINUTES_PER_DAY
from app.core.models import Certainty, DaySchedule, ScheduleSnapshot, Slot, SlotKind, ZoneSnapshot

logger = logging.getLogger("yasno.serialization")


class SnapshotFormatError(ValueError):
    pass


def parse_datetime(raw: Any) -> datetime | None:
    if not isinstance(raw, str):
        return None

    value = raw.strip()
    if not value:
        return None

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_slot(raw: Any) -> Slot:
    if not isinstance(raw, dict):
        raise SnapshotFormatError(f"slot is not an object: {raw!r}")

    start = raw.get("start")
    end = raw.get("end")
    # bool is an int subclass and never a valid minute offset
    if not isinstance(start, int) or not isinstance(end, int) or isinstance(start, bool) or isinstance(end, bool):
        raise SnapshotFormatError(f"slot bounds are not integers: {raw!r}")
    if not 0 <= start < end <= MINUTES_PER_DAY:
        raise SnapshotFormatError(f"slot bounds out of range: {start}-{end}")

    try:
        kind = SlotKind(raw.get("type"))
    except ValueError as exc:
        raise SnapshotFormatError(f"unknown slot type: {raw.get('type')!r}") from exc

    return Slot(start=start, end=end, kind=kind)


def parse_day(raw: Any) -> DaySchedule:
    if not isinstance(raw, dict):
        raise SnapshotFormatError("day entry is missing or not an object")

    try:
        certainty = Certainty(raw.get("status"))
    except ValueError as exc:
        raise SnapshotFormatError(f"unknown schedule status: {raw.get('status')!r}") from exc

    raw_slots = raw.get("slots", [])
    if not isinstance(raw_slots, list):
        raise SnapshotFormatError("slots is not a list")

    return DaySchedule(
        reference_date=str(raw.get("date", "")),
        certainty=certainty,
        slots=tuple(_parse_slot(item) for item in raw_slots),
    )


def _parse_optional_day(zone: str, label: str, raw: Any) -> DaySchedule | None:
    try:
        return parse_day(raw)
    except SnapshotFormatError as exc:
        logger.warning("Zone %s has malformed %s schedule: %s", zone, label, exc)
        return None


def parse_zone(zone: str, raw: Any) -> ZoneSnapshot:
    if not isinstance(raw, dict):
        logger.warning("Zone %s entry is not an object", zone)
        return ZoneSnapshot(today=None, tomorrow=None)

    return ZoneSnapshot(
        today=_parse_optional_day(zone, "today", raw.get("today")),
        tomorrow=_parse_optional_day(zone, "tomorrow", raw.get("tomorrow")),
        last_updated_at=parse_datetime(raw.get("updatedOn")),
    )


def parse_snapshot(payload: Any) -> ScheduleSnapshot:
    """Parse a raw planned-outages payload into a typed snapshot.

    Malformed days are kept as ``None`` so the zone is still reported and
    compared; only a payload that is not a JSON object is rejected.
    """
    if not isinstance(payload, dict):
        raise SnapshotFormatError(f"snapshot payload is not an object: {type(payload).__name__}")

    return {str(zone): parse_zone(str(zone), raw) for zone, raw in payload.items()}
