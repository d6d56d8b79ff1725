"""
Package availability for the partner portal.

Decision flow for one date:
  package missing / not published → unavailable
  date in the past                → unavailable, next = today
  before / after package window   → unavailable
  blackout date                   → unavailable, next non-blackout day
  otherwise                       → capacity minus pax already booked that day

Pricing picks the tier whose [min_pax, max_pax] covers the party, highest
min_pax first, falling back to the smallest tier. Weekends and holidays add
a per-pax surcharge on top of the tier price.
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from tourops.scheduling.availability import date_range, parse_date

DEFAULT_MAX_CAPACITY = 999
ACTIVE_BOOKING_STATUSES = ("pending", "paid", "confirmed", "ongoing")
WAITLIST_OVERBOOK_LIMIT = -10
BLACKOUT_LOOKAHEAD_DAYS = 30

WEEKEND_SURCHARGE = 0.15
HOLIDAY_SURCHARGE = 0.25


@dataclass
class PackageAvailability:
    available: bool
    remaining_slots: int = 0
    max_capacity: int = 0
    booked_slots: int = 0
    waitlist_available: bool = False
    next_available_date: Optional[date] = None
    price_info: Optional[dict] = None
    restrictions: list[str] = field(default_factory=list)
    blackout_dates: list[date] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "available": self.available,
            "remainingSlots": self.remaining_slots,
            "maxCapacity": self.max_capacity,
            "bookedSlots": self.booked_slots,
            "waitlistAvailable": self.waitlist_available,
            "nextAvailableDate": (
                self.next_available_date.isoformat() if self.next_available_date else None
            ),
            "priceInfo": self.price_info,
            "restrictions": self.restrictions or None,
            "blackoutDates": [d.isoformat() for d in self.blackout_dates],
        }


def _unavailable(reason: str, **overrides) -> PackageAvailability:
    return PackageAvailability(available=False, restrictions=[reason], **overrides)


def check_package_availability(
    package: Optional[dict],
    bookings: list[dict],
    target_date,
    pax: Optional[dict] = None,
    today: Optional[date] = None,
) -> PackageAvailability:
    """
    package:  packages row as dict (status, start_date, end_date, max_capacity,
              blackout_dates, min/max_booking_days, prices)
    bookings: bookings rows for that package
    pax:      {"adult": n, "child": n, "infant": n}
    """
    if not package or str(package.get("status", "")).lower() != "published":
        return _unavailable("Package not found or inactive")

    target = parse_date(target_date)
    today = today or date.today()
    if target is None:
        return _unavailable("Invalid date")

    pax = pax or {}
    total_pax = sum(int(pax.get(k) or 0) for k in ("adult", "child", "infant"))

    if target < today:
        return _unavailable("Date has passed", next_available_date=today)

    window_start = parse_date(package.get("start_date"))
    if window_start and target < window_start:
        return _unavailable("Package not yet available", next_available_date=window_start)

    window_end = parse_date(package.get("end_date"))
    if window_end and target > window_end:
        return _unavailable("Package no longer available")

    blackout = _blackout_dates(package)
    if target in blackout:
        return _unavailable("Date is in blackout period",
                            next_available_date=_next_open_date(target, blackout))

    max_capacity = package.get("max_capacity") or DEFAULT_MAX_CAPACITY
    booked = booked_pax_on(bookings, target)
    remaining = max_capacity - booked
    available = remaining >= total_pax

    tier = find_price_tier(package.get("prices") or [], total_pax)
    price_info = None
    if tier:
        base = tier["price_publish"]
        surcharge = round(base * date_surcharge(target))
        price_info = {
            "basePrice": base,
            "surcharge": surcharge,
            "discount": 0,
            "finalPrice": (base + surcharge) * total_pax,
        }

    return PackageAvailability(
        available=available,
        remaining_slots=remaining,
        max_capacity=max_capacity,
        booked_slots=booked,
        waitlist_available=not available and remaining > WAITLIST_OVERBOOK_LIMIT,
        next_available_date=None if available else _next_open_date(target, blackout),
        price_info=price_info,
        restrictions=_lead_time_restrictions(package, target, today),
        blackout_dates=sorted(blackout),
    )


def check_dates_availability(package, bookings, start_date, end_date,
                             today: Optional[date] = None) -> dict[str, PackageAvailability]:
    """Calendar view: one adult per day over [start_date, end_date]."""
    start, end = parse_date(start_date), parse_date(end_date)
    if start is None or end is None or end < start:
        return {}
    return {
        d.isoformat(): check_package_availability(package, bookings, d, {"adult": 1}, today)
        for d in date_range(start, (end - start).days + 1)
    }


def next_available_dates(package, bookings, count: int = 5,
                         today: Optional[date] = None, horizon: int = 90) -> list[date]:
    """First `count` bookable days within `horizon` days of today."""
    today = today or date.today()
    found = []
    for d in date_range(today, horizon):
        if len(found) >= count:
            break
        if check_package_availability(package, bookings, d, {"adult": 1}, today).available:
            found.append(d)
    return found


# ── Helpers ───────────────────────────────────────────────────────────────────

def booked_pax_on(bookings: list[dict], day: date) -> int:
    total = 0
    for b in bookings:
        if str(b.get("status", "")).lower() not in ACTIVE_BOOKING_STATUSES:
            continue
        dep, ret = parse_date(b.get("departure_date")), parse_date(b.get("return_date"))
        if dep is None or ret is None or not (dep <= day <= ret):
            continue
        total += sum(int(b.get(k) or 0) for k in ("adult_pax", "child_pax", "infant_pax"))
    return total


def find_price_tier(prices: list[dict], pax_count: int) -> Optional[dict]:
    ordered = sorted(prices, key=lambda p: p.get("min_pax", 0), reverse=True)
    for price in ordered:
        if price.get("min_pax", 0) <= pax_count <= price.get("max_pax", 0):
            return price
    return ordered[-1] if ordered else None


def _blackout_dates(package: dict) -> set[date]:
    parsed = (parse_date(d) for d in package.get("blackout_dates") or [])
    return {d for d in parsed if d is not None}


def _next_open_date(current: date, blackout: set[date]) -> Optional[date]:
    for d in date_range(current + timedelta(days=1), BLACKOUT_LOOKAHEAD_DAYS):
        if d not in blackout:
            return d
    return None


def _lead_time_restrictions(package: dict, target: date, today: date) -> list[str]:
    restrictions = []
    days_ahead = (target - today).days
    min_days = package.get("min_booking_days") or 0
    max_days = package.get("max_booking_days") or 0
    if min_days > 0 and days_ahead < min_days:
        restrictions.append(f"Minimum booking {min_days} days before departure")
    if max_days > 0 and days_ahead > max_days:
        restrictions.append(f"Maximum booking {max_days} days in advance")
    return restrictions


# ── Date surcharges ───────────────────────────────────────────────────────────

# Indonesian national holidays; other years fall back to the fixed ones
HOLIDAYS = {
    2025: [
        "2025-01-01", "2025-01-29", "2025-03-29", "2025-03-30", "2025-03-31",
        "2025-04-01", "2025-04-18", "2025-05-01", "2025-05-12", "2025-05-29",
        "2025-06-01", "2025-06-06", "2025-06-27", "2025-08-17", "2025-09-05",
        "2025-12-25",
    ],
    2026: [
        "2026-01-01", "2026-02-17", "2026-03-19", "2026-03-20", "2026-03-21",
        "2026-03-22", "2026-04-03", "2026-05-01", "2026-05-13", "2026-05-27",
        "2026-05-31", "2026-06-01", "2026-06-16", "2026-08-17", "2026-08-26",
        "2026-12-25",
    ],
    2027: [
        "2027-01-01", "2027-02-06", "2027-03-09", "2027-03-10", "2027-03-11",
        "2027-03-26", "2027-05-01", "2027-05-06", "2027-05-16", "2027-05-20",
        "2027-06-01", "2027-06-06", "2027-08-15", "2027-08-17", "2027-12-25",
    ],
}

FIXED_HOLIDAYS = {(1, 1), (5, 1), (6, 1), (8, 17), (12, 25)}


def is_weekend(d: date) -> bool:
    return d.weekday() >= 5


def is_holiday(d: date) -> bool:
    year_holidays = HOLIDAYS.get(d.year)
    if year_holidays is None:
        return (d.month, d.day) in FIXED_HOLIDAYS
    return d.isoformat() in year_holidays


def date_surcharge(d: date, base: float = 0.0) -> float:
    """Fractional surcharge: +15% weekends, +25% holidays."""
    surcharge = base
    if is_weekend(d):
        surcharge += WEEKEND_SURCHARGE
    if is_holiday(d):
        surcharge += HOLIDAY_SURCHARGE
    return surcharge
