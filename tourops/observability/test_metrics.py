"""
Utilisation + conflict metrics.

  pytest tourops/observability/test_metrics.py
"""
from datetime import date

import pytest

from tourops.observability.metrics import get_conflict_metrics, get_utilization_metrics
from tourops.scheduling.entities import Asset, MaintenanceSchedule, TripSchedule


def test_utilization_excludes_maintenance_days():
    boat = Asset("boat-1", "Lumba", "boat",
                 MaintenanceSchedule(blocked_dates=(date(2026, 1, 5), date(2026, 1, 6))))
    idle = Asset("boat-2", "Pari", "boat")
    trips = [TripSchedule("T1", date(2026, 1, 1), date(2026, 1, 4), ("boat-1",))]

    metrics = get_utilization_metrics([boat, idle], trips, date(2026, 1, 1), days=10)
    lumba, pari = metrics["assets"]
    assert lumba["booked_days"] == 4
    assert lumba["maintenance_days"] == 2
    assert lumba["available_days"] == 4
    assert lumba["utilization_rate"] == pytest.approx(50.0)
    assert pari["utilization_rate"] == 0.0
    assert metrics["avg_utilization_rate"] == pytest.approx(25.0)
    assert metrics["max_utilization_rate"] == pytest.approx(50.0)


def test_utilization_empty_fleet():
    metrics = get_utilization_metrics([], [], "2026-01-01", days=7)
    assert metrics["total_assets"] == 0
    assert metrics["assets"] == []


def test_conflict_metrics_by_type():
    boat = Asset("boat-1", "Lumba", "boat")
    villa = Asset("villa-1", "Sunset", "villa",
                  MaintenanceSchedule(next_maintenance=date(2026, 2, 2)))
    trips = [
        TripSchedule("A", date(2026, 2, 1), date(2026, 2, 2), ("boat-1",)),
        TripSchedule("B", date(2026, 2, 2), date(2026, 2, 3), ("boat-1", "villa-1")),
        TripSchedule("C", date(2026, 3, 1), date(2026, 3, 1), ("boat-1",)),
    ]
    metrics = get_conflict_metrics([boat, villa], trips)
    assert metrics["trips_checked"] == 3
    assert metrics["trips_in_conflict"] == 2
    assert metrics["conflict_types"] == {"already_booked": 2, "maintenance": 1}
    assert metrics["total_conflicts"] == 3
