"""
Booking overlap detection.

Two windows overlap when start <= other.end AND end >= other.start, so a
trip ending on the day another begins is a conflict (no half-day buffer).
"""
import logging
from typing import Iterable, Optional

from tourops.scheduling.availability import parse_date, ranges_overlap
from tourops.scheduling.entities import (
    Conflict, ConflictResult, ConflictType, TripSchedule
)

logger = logging.getLogger(__name__)


def find_booking_conflicts(
    schedules: Iterable[TripSchedule],
    resource_id: str,
    start_date,
    end_date,
    exclude_trip_id: Optional[str] = None,
) -> ConflictResult:
    """
    One 'already_booked' conflict for every schedule that overlaps the window
    and has `resource_id` assigned. `exclude_trip_id` lets a trip be
    re-checked while it is being edited. `resource_name` is left for the
    caller to fill.
    """
    start, end = parse_date(start_date), parse_date(end_date)
    result = ConflictResult()
    if start is None or end is None:
        return result

    for schedule in schedules:
        if exclude_trip_id is not None and schedule.trip_id == exclude_trip_id:
            continue
        if not ranges_overlap(start, end, schedule.start_date, schedule.end_date):
            continue
        if resource_id not in schedule.assigned_resources:
            continue
        result.conflicts.append(Conflict(
            resource_id=resource_id,
            conflict_type=ConflictType.ALREADY_BOOKED,
            date=schedule.start_date,
            existing_trip_id=schedule.trip_id,
        ))

    if result.has_conflict:
        logger.debug("%s booked in %d trip(s) between %s and %s",
                     resource_id, len(result.conflicts), start, end)
    return result
