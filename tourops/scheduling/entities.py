"""
Value types the scheduler works on.

Rows coming out of the store (or a JSON payload) are turned into these via
`from_dict`, which accepts both the camelCase keys of the admin API and the
snake_case column names. `to_dict` always emits camelCase for the wire.
"""
import enum
import json
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from tourops.scheduling.availability import parse_date


class ConflictType(str, enum.Enum):
    ALREADY_BOOKED = "already_booked"
    MAINTENANCE = "maintenance"
    BLOCKED = "blocked"
    UNKNOWN_RESOURCE = "unknown_resource"

class SlotStatus(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    MAINTENANCE = "maintenance"


def _first(data: dict, *keys, default=None):
    for k in keys:
        if k in data and data[k] is not None:
            return data[k]
    return default


# ── Maintenance ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MaintenanceSchedule:
    blocked_dates: tuple[date, ...] = ()
    next_maintenance: Optional[date] = None
    malformed: bool = False            # raw value was present but partly unreadable

    @classmethod
    def from_raw(cls, raw) -> Optional["MaintenanceSchedule"]:
        """
        Parse the stored maintenance value. Unreadable parts are dropped and
        the result is flagged `malformed`; None means no maintenance info.
        """
        if raw is None:
            return None
        if isinstance(raw, MaintenanceSchedule):
            return raw
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                return cls(malformed=True)
        if not isinstance(raw, dict):
            return cls(malformed=True)

        malformed = False
        blocked_raw = _first(raw, "blockedDates", "blocked_dates", default=[])
        if not isinstance(blocked_raw, (list, tuple)):
            blocked_raw, malformed = [], True

        blocked = []
        for value in blocked_raw:
            d = parse_date(value)
            if d is None:
                malformed = True
            else:
                blocked.append(d)

        next_raw = _first(raw, "nextMaintenance", "nextMaintenanceDate", "next_maintenance")
        next_maintenance = parse_date(next_raw) if next_raw is not None else None
        if next_raw is not None and next_maintenance is None:
            malformed = True

        return cls(tuple(blocked), next_maintenance, malformed)

    def to_dict(self) -> dict:
        return {
            "blockedDates": [d.isoformat() for d in self.blocked_dates],
            "nextMaintenance": self.next_maintenance.isoformat() if self.next_maintenance else None,
        }


# ── Assets + trips ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Asset:
    id: str
    name: str
    asset_type: str
    maintenance_schedule: Optional[MaintenanceSchedule] = None
    status: Optional[str] = None
    capacity: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Asset":
        return cls(
            id=str(data["id"]),
            name=_first(data, "name", default=""),
            asset_type=_first(data, "assetType", "asset_type", "type", default="other"),
            maintenance_schedule=MaintenanceSchedule.from_raw(
                _first(data, "maintenanceSchedule", "maintenance_schedule")
            ),
            status=_first(data, "status"),
            capacity=_first(data, "capacity"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "assetType": self.asset_type,
            "status": self.status,
            "capacity": self.capacity,
            "maintenanceSchedule": (
                self.maintenance_schedule.to_dict() if self.maintenance_schedule else None
            ),
        }


@dataclass(frozen=True)
class TripSchedule:
    trip_id: str
    start_date: date
    end_date: date
    assigned_resources: tuple[str, ...] = ()
    title: str = ""
    status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "TripSchedule":
        start = parse_date(_first(data, "startDate", "start_date"))
        end = parse_date(_first(data, "endDate", "end_date"))
        if start is None or end is None:
            raise ValueError(f"trip {data.get('id') or data.get('tripId')}: unreadable dates")
        return cls(
            trip_id=str(_first(data, "tripId", "trip_id", "id")),
            start_date=start,
            end_date=end,
            assigned_resources=tuple(
                str(r) for r in _first(data, "assignedResources", "assigned_resources", default=[])
            ),
            title=_first(data, "title", default=""),
            status=_first(data, "status"),
        )


# ── Results ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Conflict:
    resource_id: str
    conflict_type: ConflictType
    date: date
    resource_name: str = ""
    existing_trip_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "resourceId": self.resource_id,
            "resourceName": self.resource_name,
            "conflictType": self.conflict_type.value,
            "existingTripId": self.existing_trip_id,
            "date": self.date.isoformat(),
        }


@dataclass
class ConflictResult:
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return len(self.conflicts) > 0

    def to_dict(self) -> dict:
        return {
            "hasConflict": self.has_conflict,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


@dataclass(frozen=True)
class ResourceSlot:
    resource_id: str
    date: date
    status: SlotStatus
    trip_id: Optional[str] = None
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "resourceId": self.resource_id,
            "date": self.date.isoformat(),
            "status": self.status.value,
            "tripId": self.trip_id,
            "note": self.note,
        }
