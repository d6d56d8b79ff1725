from sqlalchemy import (
    Column, String, Integer, DateTime, Date, JSON, ForeignKey, Text
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
import enum

Base = declarative_base()


# ── Enums ────────────────────────────────────────────────────────────────────

class AssetType(str, enum.Enum):
    BOAT = "boat"
    GUIDE = "guide"
    VEHICLE = "vehicle"
    VILLA = "villa"
    EQUIPMENT = "equipment"
    OTHER = "other"

class AssetStatus(str, enum.Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"

class TripStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class PackageStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


# ── Resources + trips ─────────────────────────────────────────────────────────

class Asset(Base):
    __tablename__ = "assets"

    id = Column(String, primary_key=True)              # e.g. "boat-1"
    name = Column(String, nullable=False)
    asset_type = Column(String, nullable=False)        # AssetType value
    status = Column(String, default=AssetStatus.AVAILABLE.value)
    capacity = Column(Integer, nullable=True)
    maintenance_schedule = Column(JSON, nullable=True) # {"blockedDates": [...], "nextMaintenance": "..."}
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Trip(Base):
    __tablename__ = "trips"

    id = Column(String, primary_key=True)              # e.g. "T1"
    trip_code = Column(String, nullable=True)          # e.g. "KMD-2601"
    title = Column(String, nullable=False, default="")
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String, default=TripStatus.SCHEDULED.value)
    assigned_resources = Column(JSON, nullable=False, default=list)   # ["boat-1", "guide-2"]
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class MaintenanceRecord(Base):
    __tablename__ = "maintenance_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    asset_id = Column(String, ForeignKey("assets.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


# ── Partner packages ──────────────────────────────────────────────────────────

class Package(Base):
    __tablename__ = "packages"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    status = Column(String, default=PackageStatus.DRAFT.value)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    max_capacity = Column(Integer, nullable=True)
    blackout_dates = Column(JSON, default=list)        # ["2026-03-19", ...]
    min_booking_days = Column(Integer, nullable=True)
    max_booking_days = Column(Integer, nullable=True)
    prices = Column(JSON, default=list)                # [{"tier", "min_pax", "max_pax", "price_nta", "price_publish"}]


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String, primary_key=True)
    package_id = Column(String, ForeignKey("packages.id"), nullable=False)
    departure_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=False)
    adult_pax = Column(Integer, default=0)
    child_pax = Column(Integer, default=0)
    infant_pax = Column(Integer, default=0)
    status = Column(String, default="pending")


# ── Ingestion tracking ────────────────────────────────────────────────────────

class IngestionRun(Base):
    __tablename__ = "ingestion_runs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_at = Column(DateTime, server_default=func.now())
    source_hash = Column(String, nullable=False)       # hash of input files
    status = Column(String, default="success")
    diff_summary = Column(JSON, default=dict)          # what changed
