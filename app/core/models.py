from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class SlotKind(str, Enum):
    OUTAGE = "Definite"
    POWER_AVAILABLE = "NotPlanned"


class Certainty(str, Enum):
    CONFIRMED = "ScheduleApplies"
    PENDING = "WaitingForSchedule"


@dataclass(frozen=True)
class Slot:
    start: int
    end: int
    kind: SlotKind

    @property
    def minutes(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class DaySchedule:
    reference_date: str
    certainty: Certainty
    slots: tuple[Slot, ...] = ()


@dataclass(frozen=True)
class ZoneSnapshot:
    """One zone's view of today and tomorrow.

    A day is ``None`` when the source sent it missing or malformed.
    """

    today: DaySchedule | None
    tomorrow: DaySchedule | None
    last_updated_at: datetime | None = None


ScheduleSnapshot = dict[str, ZoneSnapshot]
ChangeSet = list[str]


@dataclass(frozen=True)
class DispatchOutcome:
    successful: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.successful + self.failed


@dataclass(frozen=True)
class FetchResult:
    snapshot: ScheduleSnapshot
    payload: dict[str, Any]
    fetched_at: datetime
