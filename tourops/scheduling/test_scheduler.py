"""
Scheduler checks. Pure, no DB needed.

  pytest tourops/scheduling/test_scheduler.py
"""
from datetime import date

import pytest

from tourops.scheduling.conflicts import find_booking_conflicts
from tourops.scheduling.entities import (
    Asset, ConflictType, MaintenanceSchedule, SlotStatus, TripSchedule
)
from tourops.scheduling.maintenance import is_blocked_by_maintenance
from tourops.scheduling.scheduler import (
    detect_trip_conflicts, filter_available, generate_calendar,
    trips_in_window, validate_assignment,
)


@pytest.fixture
def boat():
    return Asset("boat-1", "KM Lumba-Lumba", "boat")


@pytest.fixture
def t1():
    return TripSchedule("T1", date(2026, 1, 10), date(2026, 1, 12), ("boat-1",))


def _maint(*blocked, nxt=None):
    return MaintenanceSchedule(blocked_dates=tuple(blocked), next_maintenance=nxt)


# ── Maintenance window ────────────────────────────────────────────────────────

def test_blocked_date_inside_window():
    asset = Asset("boat-2", "Pari", "boat", _maint(date(2026, 1, 5)))
    assert is_blocked_by_maintenance(asset, date(2026, 1, 5), date(2026, 1, 5))
    assert is_blocked_by_maintenance(asset, date(2026, 1, 1), date(2026, 1, 31))
    assert not is_blocked_by_maintenance(asset, date(2026, 1, 6), date(2026, 1, 9))


def test_next_maintenance_inside_window():
    asset = Asset("boat-2", "Pari", "boat", _maint(nxt=date(2026, 2, 1)))
    assert is_blocked_by_maintenance(asset, "2026-01-30", "2026-02-01")
    assert not is_blocked_by_maintenance(asset, "2026-02-02", "2026-02-10")


def test_no_schedule_is_never_blocked(boat):
    assert not is_blocked_by_maintenance(boat, date(2026, 1, 1), date(2026, 12, 31))


def test_malformed_schedule_fails_open_unless_closed():
    asset = Asset.from_dict({"id": "v1", "name": "Van", "assetType": "vehicle",
                             "maintenanceSchedule": {"blockedDates": ["not-a-date"]}})
    assert not is_blocked_by_maintenance(asset, date(2026, 1, 1), date(2026, 1, 2))
    assert is_blocked_by_maintenance(asset, date(2026, 1, 1), date(2026, 1, 2),
                                     fail_closed=True)


# ── Booking overlap ───────────────────────────────────────────────────────────

def test_shared_boundary_day_is_a_conflict():
    a = TripSchedule("A", date(2026, 3, 1), date(2026, 3, 5), ("boat-1",))
    result = find_booking_conflicts([a], "boat-1", date(2026, 3, 5), date(2026, 3, 8))
    assert result.has_conflict
    assert result.conflicts[0].existing_trip_id == "A"
    assert result.conflicts[0].date == date(2026, 3, 1)


def test_every_overlapping_trip_is_reported():
    trips = [
        TripSchedule("A", date(2026, 3, 1), date(2026, 3, 2), ("boat-1",)),
        TripSchedule("B", date(2026, 3, 2), date(2026, 3, 3), ("boat-1", "guide-1")),
        TripSchedule("C", date(2026, 3, 2), date(2026, 3, 3), ("guide-1",)),
    ]
    result = find_booking_conflicts(trips, "boat-1", date(2026, 3, 2), date(2026, 3, 2))
    assert [c.existing_trip_id for c in result.conflicts] == ["A", "B"]
    assert all(c.conflict_type == ConflictType.ALREADY_BOOKED for c in result.conflicts)


def test_excluded_trip_is_skipped(t1):
    result = find_booking_conflicts([t1], "boat-1", "2026-01-11", "2026-01-11",
                                    exclude_trip_id="T1")
    assert not result.has_conflict
    assert result.conflicts == []


# ── Resource filter ───────────────────────────────────────────────────────────

def test_filter_drops_booked_and_maintenance(t1):
    assets = [
        Asset("boat-1", "Lumba", "boat"),
        Asset("boat-2", "Pari", "boat", _maint(date(2026, 1, 11))),
        Asset("boat-3", "Hiu", "boat"),
        Asset("guide-1", "Budi", "guide"),
    ]
    free = filter_available(assets, [t1], date(2026, 1, 11), date(2026, 1, 11))
    assert [a.id for a in free] == ["boat-3", "guide-1"]


def test_filter_by_type_only_returns_that_type():
    assets = [
        Asset("guide-1", "Budi", "guide"),
        Asset("boat-1", "Lumba", "boat"),
        Asset("villa-1", "Sunset", "villa"),
        Asset("boat-2", "Pari", "boat"),
    ]
    free = filter_available(assets, [], "2026-05-01", "2026-05-03", "boat")
    assert [a.id for a in free] == ["boat-1", "boat-2"]
    assert all(a.asset_type == "boat" for a in free)


def test_filter_without_schedules_keeps_everything():
    assets = [Asset("a", "A", "boat"), Asset("b", "B", "villa")]
    assert filter_available(assets, [], "2026-05-01", "2026-05-01") == assets


def test_filter_drops_retired_assets():
    assets = [Asset("a", "A", "boat", status="retired"), Asset("b", "B", "boat")]
    assert [a.id for a in filter_available(assets, [], "2026-05-01", "2026-05-02")] == ["b"]


# ── Calendar ──────────────────────────────────────────────────────────────────

def test_calendar_marks_each_day():
    asset = Asset("boat-1", "Lumba", "boat", _maint(date(2026, 1, 9)))
    trips = [
        TripSchedule("T1", date(2026, 1, 10), date(2026, 1, 11), ("boat-1",)),
        TripSchedule("T2", date(2026, 1, 11), date(2026, 1, 11), ("boat-1",)),
    ]
    slots = generate_calendar(asset, trips, date(2026, 1, 8), 5)
    assert [s.status for s in slots] == [
        SlotStatus.AVAILABLE, SlotStatus.MAINTENANCE,
        SlotStatus.BOOKED, SlotStatus.BOOKED, SlotStatus.AVAILABLE,
    ]
    assert slots[1].note == "Scheduled maintenance"
    # first match in schedule order wins on a double-booked day
    assert slots[3].trip_id == "T1"
    assert [s.date for s in slots] == [date(2026, 1, d) for d in range(8, 13)]


@pytest.mark.parametrize("days", [0, 1, 7, 31])
def test_calendar_length_is_exact(boat, days):
    trips = [TripSchedule(f"T{i}", date(2026, 1, i), date(2026, 1, i + 2), ("boat-1",))
             for i in range(1, 20)]
    assert len(generate_calendar(boat, trips, "2026-01-01", days)) == days


def test_maintenance_wins_over_booking(t1):
    asset = Asset("boat-1", "Lumba", "boat", _maint(date(2026, 1, 10)))
    slot = generate_calendar(asset, [t1], date(2026, 1, 10), 1)[0]
    assert slot.status == SlotStatus.MAINTENANCE
    assert slot.trip_id is None


# ── Assignment validator ──────────────────────────────────────────────────────

def test_example_scenario(boat, t1):
    result = validate_assignment([boat], [t1], ["boat-1"], "2026-01-11", "2026-01-11")
    assert result.has_conflict
    assert len(result.conflicts) == 1
    conflict = result.conflicts[0]
    assert conflict.conflict_type == ConflictType.ALREADY_BOOKED
    assert conflict.existing_trip_id == "T1"
    assert conflict.resource_name == "KM Lumba-Lumba"

    edited = validate_assignment([boat], [t1], ["boat-1"], "2026-01-11", "2026-01-11",
                                 exclude_trip_id="T1")
    assert not edited.has_conflict


def test_editing_trip_never_conflicts_with_itself():
    guide = Asset("guide-1", "Budi", "guide")
    boat = Asset("boat-1", "Lumba", "boat")
    own = TripSchedule("T9", date(2026, 4, 1), date(2026, 4, 4), ("boat-1", "guide-1"))
    other = TripSchedule("T10", date(2026, 4, 4), date(2026, 4, 6), ("guide-1",))
    result = validate_assignment([boat, guide], [own, other], own.assigned_resources,
                                 own.start_date, own.end_date, exclude_trip_id="T9")
    assert [c.existing_trip_id for c in result.conflicts] == ["T10"]


def test_maintenance_short_circuits_booking_check(t1):
    asset = Asset("boat-1", "Lumba", "boat", _maint(date(2026, 1, 10), date(2026, 1, 11)))
    result = validate_assignment([asset], [t1], ["boat-1"], "2026-01-10", "2026-01-11")
    assert len(result.conflicts) == 1
    assert result.conflicts[0].conflict_type == ConflictType.MAINTENANCE
    assert result.conflicts[0].date == date(2026, 1, 10)


def test_unknown_ids_skipped_by_default(boat):
    result = validate_assignment([boat], [], ["ghost"], "2026-01-01", "2026-01-02")
    assert not result.has_conflict

    reported = validate_assignment([boat], [], ["ghost"], "2026-01-01", "2026-01-02",
                                   report_unknown=True)
    assert [c.conflict_type for c in reported.conflicts] == [ConflictType.UNKNOWN_RESOURCE]


def test_retired_asset_is_blocked():
    asset = Asset("boat-9", "Old Hull", "boat", status="retired")
    result = validate_assignment([asset], [], ["boat-9"], "2026-01-01", "2026-01-02")
    assert [c.conflict_type for c in result.conflicts] == [ConflictType.BLOCKED]


def test_results_are_repeatable(boat, t1):
    args = ([boat], [t1], ["boat-1"], "2026-01-09", "2026-01-12")
    assert validate_assignment(*args).to_dict() == validate_assignment(*args).to_dict()
    assert generate_calendar(boat, [t1], "2026-01-09", 5) == \
        generate_calendar(boat, [t1], "2026-01-09", 5)
    assert filter_available([boat], [t1], "2026-01-01", "2026-01-02") == \
        filter_available([boat], [t1], "2026-01-01", "2026-01-02")


# ── Trip-level detection ──────────────────────────────────────────────────────

def test_detect_trip_conflicts_flags_both_sides(boat):
    a = TripSchedule("A", date(2026, 6, 1), date(2026, 6, 3), ("boat-1",))
    b = TripSchedule("B", date(2026, 6, 3), date(2026, 6, 4), ("boat-1",))
    c = TripSchedule("C", date(2026, 6, 10), date(2026, 6, 11), ("boat-1",))
    found = detect_trip_conflicts([boat], [a, b, c])
    assert found["A"].conflicts[0].existing_trip_id == "B"
    assert found["B"].conflicts[0].existing_trip_id == "A"
    assert not found["C"].has_conflict


def test_trips_in_window_sorted():
    a = TripSchedule("A", date(2026, 6, 5), date(2026, 6, 6))
    b = TripSchedule("B", date(2026, 6, 1), date(2026, 6, 2))
    c = TripSchedule("C", date(2026, 7, 1), date(2026, 7, 2))
    assert [t.trip_id for t in trips_in_window([a, b, c], date(2026, 6, 2),
                                               date(2026, 6, 30))] == ["B", "A"]
