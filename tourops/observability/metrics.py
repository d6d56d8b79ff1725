"""
Observability metrics for the resource scheduler.

Tracks:
- Per-asset booked / maintenance / available days over a window
- Utilisation (% of serviceable days booked)
- Trips whose assignment conflicts with another trip, by conflict type
"""
from typing import Sequence

from tourops.scheduling.entities import Asset, SlotStatus, TripSchedule
from tourops.scheduling.scheduler import detect_trip_conflicts, generate_calendar


def get_utilization_metrics(
    assets: Sequence[Asset],
    schedules: Sequence[TripSchedule],
    start_date,
    days: int = 30,
    fail_closed: bool = False,
) -> dict:
    """
    Utilisation for every asset over `days` days from `start_date`.
    Maintenance days are excluded from the denominator.
    """
    per_asset = []
    for asset in assets:
        slots = generate_calendar(asset, schedules, start_date, days, fail_closed)
        booked = sum(1 for s in slots if s.status == SlotStatus.BOOKED)
        maintenance = sum(1 for s in slots if s.status == SlotStatus.MAINTENANCE)
        serviceable = len(slots) - maintenance
        per_asset.append({
            "resource_id": asset.id,
            "name": asset.name,
            "asset_type": asset.asset_type,
            "booked_days": booked,
            "maintenance_days": maintenance,
            "available_days": serviceable - booked,
            "utilization_rate": (booked / serviceable * 100) if serviceable > 0 else 0.0,
        })

    if not per_asset:
        return {
            "period_days": days,
            "total_assets": 0,
            "avg_utilization_rate": 0.0,
            "max_utilization_rate": 0.0,
            "assets": [],
        }

    rates = [a["utilization_rate"] for a in per_asset]
    return {
        "period_days": days,
        "total_assets": len(per_asset),
        "avg_utilization_rate": sum(rates) / len(rates),
        "max_utilization_rate": max(rates),
        "min_utilization_rate": min(rates),
        "assets": per_asset,
    }


def get_conflict_metrics(
    assets: Sequence[Asset],
    schedules: Sequence[TripSchedule],
    report_unknown: bool = False,
    fail_closed: bool = False,
) -> dict:
    """
    Count trips whose own assignment clashes with the rest of the schedule.
    """
    results = detect_trip_conflicts(assets, schedules, report_unknown, fail_closed)

    conflict_types = {}
    for result in results.values():
        for c in result.conflicts:
            conflict_types[c.conflict_type.value] = \
                conflict_types.get(c.conflict_type.value, 0) + 1

    return {
        "trips_checked": len(results),
        "trips_in_conflict": sum(1 for r in results.values() if r.has_conflict),
        "total_conflicts": sum(len(r.conflicts) for r in results.values()),
        "conflict_types": conflict_types,
    }
