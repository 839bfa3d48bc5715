from __future__ import annotations

import copy
import logging

import pytest

from app.core.changes import days_equal, describe_zone_change, detect_changed_zones
from app.core.serialization import parse_snapshot
from tests.helpers import sample_payload, slot, zone


def test_identical_snapshots_have_no_changes() -> None:
    snapshot = parse_snapshot(sample_payload())

    assert detect_changed_zones(snapshot, snapshot) == []


def test_timestamp_and_date_drift_is_ignored() -> None:
    cached = sample_payload()
    fresh = copy.deepcopy(cached)
    fresh["1.1"]["updatedOn"] = "2026-02-18T09:00:00+00:00"
    fresh["1.1"]["today"]["date"] = "2026-02-18T00:00:00+00:00"
    fresh["2.1"]["tomorrow"]["date"] = "2026-02-20T00:00:00+02:00"
    del fresh["2.1"]["updatedOn"]

    assert detect_changed_zones(parse_snapshot(fresh), parse_snapshot(cached)) == []


def test_every_zone_is_new_on_first_run() -> None:
    fresh = parse_snapshot(sample_payload())

    assert detect_changed_zones(fresh, {}) == ["1.1", "2.1"]


def test_zone_missing_from_cache_is_reported() -> None:
    cached = sample_payload()
    fresh = copy.deepcopy(cached)
    fresh["3.2"] = zone([slot(0, 1440, "NotPlanned")])

    assert detect_changed_zones(parse_snapshot(fresh), parse_snapshot(cached)) == ["3.2"]


def test_single_slot_end_change_only_reports_that_zone() -> None:
    cached = sample_payload()
    fresh = copy.deepcopy(cached)
    fresh["1.1"]["today"]["slots"] = [slot(0, 480), slot(480, 1440, "NotPlanned")]

    assert detect_changed_zones(parse_snapshot(fresh), parse_snapshot(cached)) == ["1.1"]


def test_certainty_change_is_reported() -> None:
    cached = {"1.1": zone([slot(0, 450)], today_status="WaitingForSchedule")}
    fresh = {"1.1": zone([slot(0, 450)], today_status="ScheduleApplies")}

    assert detect_changed_zones(parse_snapshot(fresh), parse_snapshot(cached)) == ["1.1"]


def test_tomorrow_change_is_reported() -> None:
    cached = {"1.1": zone([slot(0, 450)], [slot(0, 1440, "NotPlanned")])}
    fresh = {"1.1": zone([slot(0, 450)], [slot(0, 240), slot(240, 1440, "NotPlanned")])}

    assert detect_changed_zones(parse_snapshot(fresh), parse_snapshot(cached)) == ["1.1"]


@pytest.mark.parametrize(
    ("cached_slots", "fresh_slots"),
    [
        ([slot(0, 450), slot(450, 1440, "NotPlanned")], [slot(450, 1440, "NotPlanned"), slot(0, 450)]),
        ([slot(0, 450)], [slot(0, 200), slot(200, 450)]),
        ([slot(0, 450)], [slot(0, 450, "NotPlanned")]),
        ([slot(0, 450)], []),
    ],
    ids=["reordered", "split", "kind", "removed"],
)
def test_slot_comparison_is_positional(cached_slots, fresh_slots) -> None:
    cached = parse_snapshot({"1.1": zone(cached_slots)})
    fresh = parse_snapshot({"1.1": zone(fresh_slots)})

    assert detect_changed_zones(fresh, cached) == ["1.1"]


def test_zone_dropped_from_source_is_not_reported() -> None:
    cached = parse_snapshot(sample_payload())
    fresh_payload = sample_payload()
    del fresh_payload["2.1"]

    assert detect_changed_zones(parse_snapshot(fresh_payload), cached) == []


def test_result_follows_fresh_order() -> None:
    fresh = parse_snapshot(
        {
            "6.2": zone([slot(0, 60)]),
            "1.1": zone([slot(0, 60)]),
            "3.1": zone([slot(0, 60)]),
        }
    )

    assert detect_changed_zones(fresh, {}) == ["6.2", "1.1", "3.1"]


def test_malformed_day_is_treated_as_changed() -> None:
    cached = sample_payload()
    fresh = copy.deepcopy(cached)
    del fresh["2.1"]["tomorrow"]

    assert detect_changed_zones(parse_snapshot(fresh), parse_snapshot(cached)) == ["2.1"]


def test_detection_is_repeatable_and_does_not_mutate_inputs() -> None:
    cached = parse_snapshot(sample_payload())
    fresh_payload = sample_payload()
    fresh_payload["1.1"]["today"]["status"] = "WaitingForSchedule"
    fresh = parse_snapshot(fresh_payload)
    cached_before = dict(cached)
    fresh_before = dict(fresh)

    first = detect_changed_zones(fresh, cached)
    second = detect_changed_zones(fresh, cached)

    assert first == second == ["1.1"]
    assert cached == cached_before
    assert fresh == fresh_before


def test_days_equal_rejects_missing_days() -> None:
    snapshot = parse_snapshot(sample_payload())

    assert days_equal(snapshot["1.1"].today, snapshot["1.1"].today)
    assert not days_equal(snapshot["1.1"].today, None)
    assert not days_equal(None, None)


def test_describe_zone_change_lists_details() -> None:
    cached = parse_snapshot({"1.1": zone([slot(0, 450)], today_status="WaitingForSchedule")})
    fresh = parse_snapshot(
        {"1.1": zone([slot(0, 450), slot(450, 600)], updated_on="2026-02-18T09:00:00+00:00")}
    )

    description = describe_zone_change("1.1", fresh["1.1"], cached["1.1"])

    assert description.startswith("1.1: ")
    assert "today status: WaitingForSchedule -> ScheduleApplies" in description
    assert "today slots count: 1 -> 2" in description
    assert "updatedOn:" in description
    assert "tomorrow" not in description


def test_describe_first_sighting() -> None:
    fresh = parse_snapshot(sample_payload())

    assert describe_zone_change("1.1", fresh["1.1"], None) == "1.1: first time seeing this zone"


def test_change_details_are_only_built_when_info_is_enabled(monkeypatch, caplog) -> None:
    calls: list[str] = []

    def _describe(zone_id, fresh_zone, cached_zone) -> str:
        calls.append(zone_id)
        return zone_id

    monkeypatch.setattr("app.core.changes.describe_zone_change", _describe)
    fresh = parse_snapshot(sample_payload())

    caplog.set_level(logging.WARNING, logger="yasno.changes")
    assert detect_changed_zones(fresh, {}) == ["1.1", "2.1"]
    assert calls == []

    caplog.set_level(logging.INFO, logger="yasno.changes")
    assert detect_changed_zones(fresh, {}) == ["1.1", "2.1"]
    assert calls == ["1.1", "2.1"]
