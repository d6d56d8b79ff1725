"""
Static sample dataset served by the scheduler screen when the store can't
be read and SCHEDULER_FALLBACK_TO_SAMPLE is on. Trip dates are laid out
relative to the requested window so the screen is never empty.
"""
from datetime import date, timedelta

from tourops.scheduling.entities import Asset, MaintenanceSchedule, TripSchedule


def sample_assets(anchor: date) -> list[Asset]:
    return [
        Asset("boat-1", "KM Lumba-Lumba", "boat", capacity=12),
        Asset("boat-2", "KM Pari Manta", "boat", capacity=8,
              maintenance_schedule=MaintenanceSchedule(
                  blocked_dates=(anchor + timedelta(days=4), anchor + timedelta(days=5)))),
        Asset("villa-1", "Villa Sunset", "villa", capacity=6),
        Asset("vehicle-1", "Hiace Commuter", "vehicle", capacity=14),
        Asset("guide-1", "Budi Santoso", "guide"),
        Asset("guide-2", "Sari Dewi", "guide"),
    ]


def sample_trips(anchor: date) -> list[TripSchedule]:
    return [
        TripSchedule("sample-trip-1", anchor, anchor + timedelta(days=2),
                     ("boat-1", "guide-1"), title="Komodo Island Hopping 3D2N",
                     status="confirmed"),
        TripSchedule("sample-trip-2", anchor + timedelta(days=1), anchor + timedelta(days=1),
                     ("vehicle-1", "guide-2"), title="Lombok City Tour",
                     status="scheduled"),
        TripSchedule("sample-trip-3", anchor + timedelta(days=2), anchor + timedelta(days=3),
                     ("boat-1", "guide-2"), title="Padar Sunrise Trek",
                     status="scheduled"),
    ]
