"""
FastAPI app: admin scheduler, assets, partner availability, ingestion.

  GET  /api/admin/scheduler                      week/day/month board + conflicts
  GET  /api/admin/scheduler/calendar/{asset_id}  per-day slots for one asset
  GET  /api/admin/scheduler/available            assets free for a window
  POST /api/admin/scheduler/validate             check a proposed assignment
  GET  /api/admin/assets                         asset list + stats
  POST /api/admin/assets/{asset_id}/maintenance  block an asset for maintenance
  GET  /api/partner/packages/{id}/availability   one date
  GET  /api/partner/packages/{id}/calendar       date range
  GET  /metrics/utilization                      utilisation + conflict metrics
  POST /ingest/run                               load the seed bucket
"""
import json
import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tourops.config import get_settings
from tourops.database import get_db, init_db
from tourops.ingestion.job import run_ingestion
from tourops.ingestion.schemas import AssignmentCheckRequest, MaintenanceRequest
from tourops.models import (
    Asset as AssetRow, Trip, MaintenanceRecord, Package, Booking,
    AssetStatus, TripStatus,
)
from tourops.observability.metrics import get_conflict_metrics, get_utilization_metrics
from tourops.packages.availability import (
    check_dates_availability, check_package_availability, next_available_dates,
)
from tourops.scheduling.availability import VIEWS, parse_date, view_window, week_dates
from tourops.scheduling.conflicts import find_booking_conflicts
from tourops.scheduling.entities import Asset, TripSchedule
from tourops.scheduling.maintenance import is_blocked_by_maintenance, is_retired
from tourops.scheduling.sample import sample_assets, sample_trips
from tourops.scheduling.scheduler import (
    detect_trip_conflicts, filter_available, generate_calendar,
    trips_in_window, validate_assignment,
)

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

MAX_CALENDAR_DAYS = 366

app = FastAPI(title="Tour Operations Scheduler API", version="1.0.0")

# Initialize DB tables on startup
@app.on_event("startup")
def startup():
    init_db()
    logger.info("Database initialized")


# ── Ingestion ─────────────────────────────────────────────────────────────────

@app.post("/ingest/run")
def ingest_run(force: bool = False, db: Session = Depends(get_db)):
    """
    Load data/bucket/*.json into the store.
    Idempotent (skips if unchanged unless force=True).
    """
    try:
        return run_ingestion(db, force=force)
    except Exception as e:
        logger.exception("Ingestion failed")
        raise HTTPException(status_code=500, detail=str(e))


# ── Scheduler board ───────────────────────────────────────────────────────────

@app.get("/api/admin/scheduler")
def scheduler_board(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    view: str = "week",
    db: Session = Depends(get_db),
):
    """
    Trips in the window with their conflicts, plus the resources to lay
    them out against. `view` only suggests the UI granularity.
    Defaults to the current Sunday-started week.
    """
    if view not in VIEWS:
        raise HTTPException(status_code=400, detail=f"view must be one of {', '.join(VIEWS)}")
    start = _query_date(start_date, "startDate") if start_date else week_dates(date.today())[0]
    end = _query_date(end_date, "endDate") if end_date else view_window(start, view)
    _check_order(start, end)

    settings = get_settings()
    try:
        assets, schedules = _load_snapshot(db)
        source = "database"
    except SQLAlchemyError as e:
        if not settings.fallback_to_sample:
            logger.error("Scheduler store read failed: %s", e)
            raise HTTPException(status_code=503, detail="Schedule store unavailable")
        logger.warning("Scheduler store read failed, serving sample data: %s", e)
        assets, schedules = sample_assets(start), sample_trips(start)
        source = "sample"

    by_id = {a.id: a for a in assets}
    conflicts = detect_trip_conflicts(
        assets, schedules,
        report_unknown=settings.report_unknown_resources,
        fail_closed=settings.maintenance_fail_closed,
    )

    events = []
    for trip in trips_in_window(schedules, start, end):
        result = conflicts[trip.trip_id]
        assigned = [by_id[r] for r in trip.assigned_resources if r in by_id]
        events.append({
            "id": trip.trip_id,
            "title": trip.title,
            "subtitle": ", ".join(a.name for a in assigned if a.asset_type != "guide"),
            "date": trip.start_date.isoformat(),
            "endDate": trip.end_date.isoformat(),
            "status": trip.status,
            "type": "trip",
            "guides": [{"id": a.id, "name": a.name} for a in assigned if a.asset_type == "guide"],
            "resourceIds": list(trip.assigned_resources),
            "hasConflict": result.has_conflict,
            "conflicts": result.to_dict()["conflicts"],
        })

    available = filter_available(assets, schedules, start, end,
                                 fail_closed=settings.maintenance_fail_closed)

    logger.info("Scheduler %s..%s (%s): %d events, %d in conflict, source=%s",
                start, end, view, len(events),
                sum(1 for e in events if e["hasConflict"]), source)

    return {
        "events": events,
        "resources": {
            "guides": [_resource(a) for a in assets if a.asset_type == "guide"],
            "assets": [_resource(a) for a in assets if a.asset_type != "guide"],
        },
        "availableAssets": [a.id for a in available],
        "dateRange": {"start": start.isoformat(), "end": end.isoformat()},
        "view": view,
        "conflicts": sum(1 for e in events if e["hasConflict"]),
        "source": source,
    }


@app.get("/api/admin/scheduler/calendar/{asset_id}")
def asset_calendar(
    asset_id: str,
    start_date: Optional[str] = Query(None, alias="startDate"),
    days: int = Query(14, ge=1, le=MAX_CALENDAR_DAYS),
    db: Session = Depends(get_db),
):
    """Per-day available / booked / maintenance strip for one asset."""
    start = _query_date(start_date, "startDate") if start_date else date.today()
    try:
        assets, schedules = _load_snapshot(db)
        asset = next((a for a in assets if a.id == asset_id), None)
        if asset is None:
            raise HTTPException(status_code=404, detail=f"Asset {asset_id} not found")

        slots = generate_calendar(asset, schedules, start, days,
                                  fail_closed=get_settings().maintenance_fail_closed)
        return {
            "asset": asset.to_dict(),
            "startDate": start.isoformat(),
            "days": days,
            "slots": [s.to_dict() for s in slots],
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Calendar failed for %s", asset_id)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/admin/scheduler/available")
def available_assets(
    start_date: str = Query(..., alias="startDate"),
    end_date: str = Query(..., alias="endDate"),
    resource_type: Optional[str] = Query(None, alias="type"),
    db: Session = Depends(get_db),
):
    """Assets free over the whole window, optionally one type."""
    start, end = _query_date(start_date, "startDate"), _query_date(end_date, "endDate")
    _check_order(start, end)
    try:
        assets, schedules = _load_snapshot(db)
        free = filter_available(assets, schedules, start, end, resource_type,
                                fail_closed=get_settings().maintenance_fail_closed)
        return {
            "dateRange": {"start": start.isoformat(), "end": end.isoformat()},
            "type": resource_type,
            "assets": [a.to_dict() for a in free],
        }
    except Exception as e:
        logger.exception("Availability lookup failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/admin/scheduler/validate")
def validate_trip_assignment(body: AssignmentCheckRequest, db: Session = Depends(get_db)):
    """
    Run before creating or editing a trip. A non-empty result should block
    the write; pass excludeTripId when re-checking an existing trip.
    """
    settings = get_settings()
    try:
        assets, schedules = _load_snapshot(db)
        result = validate_assignment(
            assets, schedules, body.resource_ids, body.start_date, body.end_date,
            exclude_trip_id=body.exclude_trip_id,
            report_unknown=settings.report_unknown_resources,
            fail_closed=settings.maintenance_fail_closed,
        )
    except Exception as e:
        logger.exception("Assignment validation failed")
        raise HTTPException(status_code=500, detail=str(e))

    logger.info("Validated %s for %s..%s: %d conflict(s)",
                body.resource_ids, body.start_date, body.end_date, len(result.conflicts))
    return result.to_dict()


# ── Assets ────────────────────────────────────────────────────────────────────

@app.get("/api/admin/assets")
def list_assets(
    asset_type: str = Query("all", alias="type"),
    status: str = "all",
    db: Session = Depends(get_db),
):
    """Asset list with maintenance info; stats always cover the whole fleet."""
    today = date.today()
    fail_closed = get_settings().maintenance_fail_closed
    rows = db.query(AssetRow).order_by(AssetRow.id).all()

    stats = {
        "total": len(rows),
        "available": sum(1 for r in rows if r.status == AssetStatus.AVAILABLE.value),
        "inUse": sum(1 for r in rows if r.status == AssetStatus.IN_USE.value),
        "maintenance": sum(1 for r in rows if r.status == AssetStatus.MAINTENANCE.value),
    }

    assets = []
    for row in rows:
        if asset_type != "all" and row.asset_type != asset_type:
            continue
        if status != "all" and row.status != status:
            continue
        asset = Asset.from_dict(_to_dict(row))
        assets.append(asset.to_dict() | {
            "hasActiveMaintenance": is_blocked_by_maintenance(asset, today, today, fail_closed),
            "nextMaintenanceDate": _next_maintenance(asset, today),
        })

    return {"assets": assets, "stats": stats}


@app.post("/api/admin/assets/{asset_id}/maintenance", status_code=201)
def schedule_maintenance(asset_id: str, body: MaintenanceRequest,
                         db: Session = Depends(get_db)):
    """
    Block the asset for every day of the window and report the trips that
    already have it assigned inside that window.
    """
    row = db.get(AssetRow, asset_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Asset {asset_id} not found")
    if is_retired(Asset.from_dict(_to_dict(row))):
        raise HTTPException(status_code=409, detail=f"Asset {asset_id} is retired")

    try:
        schedule = _stored_schedule(row)
        blocked = set(schedule.pop("blocked_dates", None) or [])
        blocked |= set(schedule.get("blockedDates") or [])
        day = body.start_date
        while day <= body.end_date:
            blocked.add(day.isoformat())
            day += timedelta(days=1)
        schedule["blockedDates"] = sorted(blocked)
        # reassign so the JSON column is flagged dirty
        row.maintenance_schedule = schedule

        if body.start_date <= date.today() <= body.end_date:
            row.status = AssetStatus.MAINTENANCE.value

        record = MaintenanceRecord(asset_id=asset_id, start_date=body.start_date,
                                   end_date=body.end_date, reason=body.reason)
        db.add(record)
        db.commit()

        _, schedules = _load_snapshot(db)
        hits = find_booking_conflicts(schedules, asset_id, body.start_date, body.end_date)
    except Exception as e:
        db.rollback()
        logger.exception("Scheduling maintenance failed for %s", asset_id)
        raise HTTPException(status_code=500, detail=str(e))

    titles = {t.trip_id: t.title for t in schedules}
    logger.info("Maintenance for %s %s..%s, %d trip(s) affected",
                asset_id, body.start_date, body.end_date, len(hits.conflicts))
    return {
        "assetId": asset_id,
        "maintenance": {
            "id": record.id,
            "startDate": body.start_date.isoformat(),
            "endDate": body.end_date.isoformat(),
            "reason": body.reason,
        },
        "status": row.status,
        "affectedTrips": [
            {"tripId": c.existing_trip_id, "title": titles.get(c.existing_trip_id, ""),
             "startDate": c.date.isoformat()}
            for c in hits.conflicts
        ],
    }


# ── Partner packages ──────────────────────────────────────────────────────────

@app.get("/api/partner/packages/{package_id}/availability")
def package_availability(
    package_id: str,
    target_date: str = Query(..., alias="date"),
    adult: int = Query(1, ge=0),
    child: int = Query(0, ge=0),
    infant: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    target = _query_date(target_date, "date")
    package, bookings = _load_package(db, package_id)
    result = check_package_availability(
        package, bookings, target, {"adult": adult, "child": child, "infant": infant}
    )
    body = {"packageId": package_id, "date": target.isoformat()} | result.to_dict()
    if not result.available:
        body["nextAvailableDates"] = [
            d.isoformat() for d in next_available_dates(package, bookings)
        ]
    return body


@app.get("/api/partner/packages/{package_id}/calendar")
def package_calendar(
    package_id: str,
    start_date: str = Query(..., alias="startDate"),
    end_date: str = Query(..., alias="endDate"),
    db: Session = Depends(get_db),
):
    start, end = _query_date(start_date, "startDate"), _query_date(end_date, "endDate")
    _check_order(start, end)
    if (end - start).days >= MAX_CALENDAR_DAYS:
        raise HTTPException(status_code=400, detail="Range too long")
    package, bookings = _load_package(db, package_id)
    days = check_dates_availability(package, bookings, start, end)
    return {
        "packageId": package_id,
        "dates": {d: r.to_dict() for d, r in days.items()},
    }


# ── Metrics ───────────────────────────────────────────────────────────────────

@app.get("/metrics/utilization")
def utilization(
    start_date: Optional[str] = Query(None, alias="startDate"),
    days: int = Query(30, ge=1, le=MAX_CALENDAR_DAYS),
    db: Session = Depends(get_db),
):
    start = _query_date(start_date, "startDate") if start_date else date.today()
    try:
        assets, schedules = _load_snapshot(db)
    except Exception as e:
        logger.exception("Metrics snapshot failed")
        raise HTTPException(status_code=500, detail=str(e))
    settings = get_settings()
    return {
        "start_date": start.isoformat(),
        "utilization": get_utilization_metrics(
            assets, schedules, start, days, fail_closed=settings.maintenance_fail_closed,
        ),
        "conflicts": get_conflict_metrics(
            assets, schedules,
            report_unknown=settings.report_unknown_resources,
            fail_closed=settings.maintenance_fail_closed,
        ),
    }


# ── Helpers ───────────────────────────────────────────────────────────────────

def _to_dict(obj) -> dict:
    """Convert SQLAlchemy model to dict."""
    if obj is None:
        return {}
    return {c.name: getattr(obj, c.name) for c in obj.__table__.columns}


def _load_snapshot(db: Session) -> tuple[list[Asset], list[TripSchedule]]:
    """Assets + every non-cancelled trip, as scheduler values."""
    assets = [Asset.from_dict(_to_dict(a)) for a in db.query(AssetRow).order_by(AssetRow.id).all()]
    trips = (
        db.query(Trip)
        .filter(Trip.status != TripStatus.CANCELLED.value)
        .order_by(Trip.start_date, Trip.id)
        .all()
    )
    return assets, [TripSchedule.from_dict(_to_dict(t)) for t in trips]


def _stored_schedule(row: AssetRow) -> dict:
    """Stored maintenance value as a mutable dict; JSON strings are decoded."""
    raw = row.maintenance_schedule
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Dropping unreadable maintenance schedule on %s", row.id)
            raw = None
    return dict(raw) if isinstance(raw, dict) else {}


def _load_package(db: Session, package_id: str) -> tuple[dict, list[dict]]:
    package = db.get(Package, package_id)
    if package is None:
        raise HTTPException(status_code=404, detail=f"Package {package_id} not found")
    bookings = db.query(Booking).filter(Booking.package_id == package_id).all()
    return _to_dict(package), [_to_dict(b) for b in bookings]


def _query_date(value: str, name: str) -> date:
    parsed = parse_date(value)
    if parsed is None:
        raise HTTPException(status_code=400, detail=f"{name} must be YYYY-MM-DD")
    return parsed


def _check_order(start: date, end: date):
    if start > end:
        raise HTTPException(status_code=400, detail="startDate must not be after endDate")


def _resource(asset: Asset) -> dict:
    return {"id": asset.id, "name": asset.name, "type": asset.asset_type,
            "capacity": asset.capacity}


def _next_maintenance(asset: Asset, today: date) -> Optional[str]:
    schedule = asset.maintenance_schedule
    if schedule is None:
        return None
    upcoming = [d for d in schedule.blocked_dates if d >= today]
    if schedule.next_maintenance and schedule.next_maintenance >= today:
        upcoming.append(schedule.next_maintenance)
    return min(upcoming).isoformat() if upcoming else None


# ── Health check ──────────────────────────────────────────────────────────────

@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/")
def root():
    return {
        "service": "Tour Operations Scheduler API",
        "version": "1.0.0",
        "endpoints": [
            "/api/admin/scheduler", "/api/admin/scheduler/validate",
            "/api/admin/assets", "/api/partner/packages/{id}/availability",
            "/metrics/utilization", "/ingest/run",
        ],
    }
