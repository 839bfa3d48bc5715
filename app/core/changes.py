from __future__ import annotations

import logging

from app.core.models import ChangeSet, DaySchedule, ScheduleSnapshot, ZoneSnapshot

logger = logging.getLogger("yasno.changes")


def days_equal(left: DaySchedule | None, right: DaySchedule | None) -> bool:
    """Compare the meaningful part of two days: status and slots, by position.

    Dates and timestamps are ignored. A missing day can't be compared and is
    never equal to anything.
    """
    if left is None or right is None:
        return False

    if left.certainty != right.certainty:
        return False

    if len(left.slots) != len(right.slots):
        return False

    for fresh_slot, cached_slot in zip(left.slots, right.slots):
        if (
            fresh_slot.start != cached_slot.start
            or fresh_slot.end != cached_slot.end
            or fresh_slot.kind != cached_slot.kind
        ):
            return False

    return True


def zone_changed(fresh_zone: ZoneSnapshot, cached_zone: ZoneSnapshot | None) -> bool:
    if cached_zone is None:
        return True

    today_changed = not days_equal(fresh_zone.today, cached_zone.today)
    tomorrow_changed = not days_equal(fresh_zone.tomorrow, cached_zone.tomorrow)
    return today_changed or tomorrow_changed


def detect_changed_zones(fresh: ScheduleSnapshot, cached: ScheduleSnapshot) -> ChangeSet:
    changed: ChangeSet = []

    # zones that only exist in the cache are not reported
    for zone, fresh_zone in fresh.items():
        cached_zone = cached.get(zone)
        if zone_changed(fresh_zone, cached_zone):
            changed.append(zone)
            if logger.isEnabledFor(logging.INFO):
                logger.info("%s", describe_zone_change(zone, fresh_zone, cached_zone))

    return changed


def _describe_day(label: str, fresh: DaySchedule | None, cached: DaySchedule | None) -> list[str]:
    if days_equal(fresh, cached):
        return []

    if fresh is None or cached is None:
        fresh_state = "missing" if fresh is None else "present"
        cached_state = "missing" if cached is None else "present"
        return [f"{label} data: {cached_state} -> {fresh_state}"]

    details: list[str] = []
    if fresh.certainty != cached.certainty:
        details.append(f"{label} status: {cached.certainty.value} -> {fresh.certainty.value}")
    if len(fresh.slots) != len(cached.slots):
        details.append(f"{label} slots count: {len(cached.slots)} -> {len(fresh.slots)}")
    elif fresh.slots != cached.slots:
        details.append(f"{label} slots changed")
    return details


def describe_zone_change(zone: str, fresh_zone: ZoneSnapshot, cached_zone: ZoneSnapshot | None) -> str:
    if cached_zone is None:
        return f"{zone}: first time seeing this zone"

    details = _describe_day("today", fresh_zone.today, cached_zone.today)
    details.extend(_describe_day("tomorrow", fresh_zone.tomorrow, cached_zone.tomorrow))

    if fresh_zone.last_updated_at != cached_zone.last_updated_at:
        previous = cached_zone.last_updated_at.isoformat() if cached_zone.last_updated_at else "null"
        current = fresh_zone.last_updated_at.isoformat() if fresh_zone.last_updated_at else "null"
        details.append(f"updatedOn: {previous} -> {current}")

    if not details:
        return f"{zone}: unchanged"
    return f"{zone}: {', '.join(details)}"
