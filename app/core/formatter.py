from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from app.core.constants import LOCAL_TIMEZONE, WEEKDAYS_SHORT
from app.core.models import Certainty, DaySchedule, SlotKind, ZoneSnapshot
from app.core.serialization import parse_datetime


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_duration(minutes: int) -> str:
    hours, rest = divmod(minutes, 60)
    return f"{hours}г{rest}хв" if rest > 0 else f"{hours}г"


def _format_date(reference_date: str) -> str:
    parsed = parse_datetime(reference_date)
    if parsed is None:
        return reference_date

    local = parsed.astimezone(ZoneInfo(LOCAL_TIMEZONE))
    return f"{WEEKDAYS_SHORT[local.weekday()]}, {local.strftime('%d.%m.%Y')}"


def format_day(day: DaySchedule | None, label: str) -> str:
    if day is None:
        return f"📅 *{label}*\n\n  • Дані недоступні\n"

    status_emoji = "✅" if day.certainty == Certainty.CONFIRMED else "⏳"
    output = f"📅 *{label}* ({_format_date(day.reference_date)}) {status_emoji}\n\n"

    outages = [slot for slot in day.slots if slot.kind == SlotKind.OUTAGE]
    power = [slot for slot in day.slots if slot.kind == SlotKind.POWER_AVAILABLE]

    total_outage = sum(slot.minutes for slot in outages)
    output += f"🔴 *Відключення* ({format_duration(total_outage)} всього):\n"
    if not outages:
        output += "  • Немає відключень\n"
    for slot in outages:
        output += f"  • {format_minutes(slot.start)}–{format_minutes(slot.end)} ({format_duration(slot.minutes)})\n"

    total_power = sum(slot.minutes for slot in power)
    output += f"🟢 *Електропостачання* ({format_duration(total_power)} всього):\n"
    for slot in power:
        output += f"  • {format_minutes(slot.start)}–{format_minutes(slot.end)} ({format_duration(slot.minutes)})\n"

    return output


def _format_updated_at(updated_at: datetime | None) -> str:
    if updated_at is None:
        return ""
    local = updated_at.astimezone(ZoneInfo(LOCAL_TIMEZONE))
    return f"\n⏱ Оновлено: {local.strftime('%d.%m.%Y %H:%M')}"


def format_schedule_message(zone: str, data: ZoneSnapshot, *, is_update: bool = False) -> str:
    title = "Розклад оновлено" if is_update else "Поточний розклад"
    header = f"⚡️ *{title}*\nГрупа: *{zone}*\n\n"

    return (
        header
        + format_day(data.today, "Сьогодні")
        + "\n"
        + format_day(data.tomorrow, "Завтра")
        + _format_updated_at(data.last_updated_at)
    )
