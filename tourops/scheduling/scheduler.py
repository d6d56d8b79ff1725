"""
Resource scheduler: availability and conflict checks for trip assignment.

Everything here is a pure function over the snapshot the caller passes in:
  filter_available     → assets free for a window (optionally one type)
  generate_calendar    → per-day available / booked / maintenance strip
  validate_assignment  → all conflicts for a proposed multi-resource trip
  detect_trip_conflicts→ validator run over every stored trip

Callers are expected to have checked start_date <= end_date already.
Nothing here reserves anything: two callers validating against the same
snapshot can both get a clean result and both write (check-then-act).
"""
from datetime import date
from typing import Iterable, Optional, Sequence

from tourops.scheduling.availability import date_range, parse_date, ranges_overlap
from tourops.scheduling.conflicts import find_booking_conflicts
from tourops.scheduling.entities import (
    Asset, Conflict, ConflictResult, ConflictType,
    ResourceSlot, SlotStatus, TripSchedule,
)
from tourops.scheduling.maintenance import is_blocked_by_maintenance, is_retired

MAINTENANCE_NOTE = "Scheduled maintenance"


def filter_available(
    assets: Sequence[Asset],
    schedules: Sequence[TripSchedule],
    start_date,
    end_date,
    resource_type: Optional[str] = None,
    fail_closed: bool = False,
) -> list[Asset]:
    """Assets free over the whole window, in their original order."""
    available = []
    for asset in assets:
        if resource_type and asset.asset_type != resource_type:
            continue
        if is_retired(asset):
            continue
        if is_blocked_by_maintenance(asset, start_date, end_date, fail_closed):
            continue
        if find_booking_conflicts(schedules, asset.id, start_date, end_date).has_conflict:
            continue
        available.append(asset)
    return available


def generate_calendar(
    asset: Asset,
    schedules: Sequence[TripSchedule],
    start_date,
    days: int,
    fail_closed: bool = False,
) -> list[ResourceSlot]:
    """
    Exactly `days` slots from `start_date`. Maintenance wins over bookings;
    a booked day carries the first conflicting trip in schedule order.
    """
    start = parse_date(start_date)
    if start is None:
        return []

    slots = []
    for day in date_range(start, days):
        if is_blocked_by_maintenance(asset, day, day, fail_closed):
            slots.append(ResourceSlot(asset.id, day, SlotStatus.MAINTENANCE,
                                      note=MAINTENANCE_NOTE))
            continue

        booked = find_booking_conflicts(schedules, asset.id, day, day)
        if booked.has_conflict:
            slots.append(ResourceSlot(asset.id, day, SlotStatus.BOOKED,
                                      trip_id=booked.conflicts[0].existing_trip_id))
        else:
            slots.append(ResourceSlot(asset.id, day, SlotStatus.AVAILABLE))
    return slots


def validate_assignment(
    assets: Sequence[Asset],
    schedules: Sequence[TripSchedule],
    resource_ids: Iterable[str],
    start_date,
    end_date,
    exclude_trip_id: Optional[str] = None,
    report_unknown: bool = False,
    fail_closed: bool = False,
) -> ConflictResult:
    """
    Check every resource of a proposed trip. A maintenance block is reported
    once and the booking check is skipped for that resource. Unknown ids are
    skipped unless `report_unknown` is set.
    """
    start = parse_date(start_date)
    by_id = {a.id: a for a in assets}
    result = ConflictResult()
    if start is None:
        return result

    for resource_id in resource_ids:
        asset = by_id.get(resource_id)
        if asset is None:
            if report_unknown:
                result.conflicts.append(Conflict(
                    resource_id, ConflictType.UNKNOWN_RESOURCE, start,
                    resource_name=resource_id,
                ))
            continue

        if is_retired(asset):
            result.conflicts.append(Conflict(
                asset.id, ConflictType.BLOCKED, start, resource_name=asset.name,
            ))
            continue

        if is_blocked_by_maintenance(asset, start_date, end_date, fail_closed):
            result.conflicts.append(Conflict(
                asset.id, ConflictType.MAINTENANCE, start, resource_name=asset.name,
            ))
            continue

        booked = find_booking_conflicts(schedules, asset.id, start_date, end_date,
                                        exclude_trip_id)
        result.conflicts.extend(
            Conflict(c.resource_id, c.conflict_type, c.date,
                     resource_name=asset.name, existing_trip_id=c.existing_trip_id)
            for c in booked.conflicts
        )

    return result


def detect_trip_conflicts(
    assets: Sequence[Asset],
    schedules: Sequence[TripSchedule],
    report_unknown: bool = False,
    fail_closed: bool = False,
) -> dict[str, ConflictResult]:
    """trip_id → conflicts of that trip's own assignment against all other trips."""
    return {
        trip.trip_id: validate_assignment(
            assets, schedules, trip.assigned_resources,
            trip.start_date, trip.end_date,
            exclude_trip_id=trip.trip_id,
            report_unknown=report_unknown,
            fail_closed=fail_closed,
        )
        for trip in schedules
    }


def trips_in_window(schedules: Iterable[TripSchedule],
                    start: date, end: date) -> list[TripSchedule]:
    """Trips whose dates touch [start, end], ordered by start date."""
    hits = [t for t in schedules if ranges_overlap(start, end, t.start_date, t.end_date)]
    return sorted(hits, key=lambda t: (t.start_date, t.trip_id))
