"""
Maintenance and administrative blocks on assets.
All blocking rules live here, scheduler.py only calls them.
"""
import logging

from tourops.scheduling.availability import parse_date
from tourops.scheduling.entities import Asset

logger = logging.getLogger(__name__)

RETIRED = "retired"


def is_blocked_by_maintenance(asset: Asset, start_date, end_date,
                              fail_closed: bool = False) -> bool:
    """
    Returns True if the asset has maintenance scheduled inside
    [start_date, end_date] (inclusive, whole days).
    Handles both explicit blocked dates and the next maintenance date.

    Unreadable maintenance data counts as "no maintenance" unless
    `fail_closed` is set, in which case it blocks the asset.
    """
    schedule = asset.maintenance_schedule
    if schedule is None:
        return False
    if schedule.malformed:
        logger.warning("Unreadable maintenance schedule on %s", asset.id)
        if fail_closed:
            return True

    start, end = parse_date(start_date), parse_date(end_date)
    if start is None or end is None:
        return False

    if any(start <= d <= end for d in schedule.blocked_dates):
        return True
    nxt = schedule.next_maintenance
    return nxt is not None and start <= nxt <= end


def is_retired(asset: Asset) -> bool:
    """Retired assets are withdrawn from scheduling altogether."""
    return (asset.status or "").lower() == RETIRED
