"""
Ingestion pipeline: reads bucket files, validates, upserts to DB.
Idempotent: same input = same hash = skips re-insert.

Bucket layout (all optional except assets.json):
  assets.json    trips.json    packages.json    bookings.json
"""
import json
import hashlib
import logging
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from tourops.config import get_settings
from tourops.models import Asset, Trip, Package, Booking, IngestionRun
from tourops.ingestion.schemas import (
    AssetSchema, TripSchema, PackageSchema, BookingSchema
)

logger = logging.getLogger(__name__)

# Parents before children so foreign keys resolve
ENTITIES = [
    ("assets", "assets.json", Asset, AssetSchema),
    ("packages", "packages.json", Package, PackageSchema),
    ("trips", "trips.json", Trip, TripSchema),
    ("bookings", "bookings.json", Booking, BookingSchema),
]


# ── Helpers ───────────────────────────────────────────────────────────────────

def _hash_file(path: Path) -> str:
    return hashlib.md5(path.read_bytes()).hexdigest()

def _bucket_hash(bucket: Path) -> str:
    """Single hash of all bucket files combined."""
    combined = "".join(
        _hash_file(f) for f in sorted(bucket.iterdir()) if f.is_file()
    )
    return hashlib.md5(combined.encode()).hexdigest()

def _load_json(bucket: Path, filename: str) -> list:
    path = bucket / filename
    if not path.exists():
        return []
    return json.loads(path.read_text())


# ── Generic upsert ────────────────────────────────────────────────────────────

def _upsert(db: Session, model, schema, raw: list[dict]) -> dict:
    records = [schema(**r) for r in raw]  # validates
    diff = {"upserted": [], "unchanged": []}

    for r in records:
        existing = db.get(model, r.id)
        data = r.row()

        if existing:
            changed = {k: v for k, v in data.items() if getattr(existing, k) != v}
            if changed:
                for k, v in changed.items():
                    setattr(existing, k, v)
                diff["upserted"].append(r.id)
            else:
                diff["unchanged"].append(r.id)
        else:
            db.add(model(**data))
            diff["upserted"].append(r.id)

    # flush so children in the same run can see their parents
    db.flush()
    return diff


# ── Main entry point ──────────────────────────────────────────────────────────

def run_ingestion(db: Session, force: bool = False,
                  bucket_dir: Optional[Path] = None) -> dict:
    """
    Validate and upsert every bucket file. Returns a summary dict:
      {"status": "success" | "skipped", "source_hash": ..., "diff": {...}}
    A validation error anywhere rolls the whole run back.
    """
    bucket = Path(bucket_dir or get_settings().bucket_dir)
    if not (bucket / "assets.json").exists():
        raise FileNotFoundError(f"{bucket}/assets.json not found")

    source_hash = _bucket_hash(bucket)

    if not force:
        last = (
            db.query(IngestionRun)
            .filter(IngestionRun.status == "success")
            .order_by(IngestionRun.id.desc())
            .first()
        )
        if last and last.source_hash == source_hash:
            logger.info("Bucket unchanged (%s), skipping ingestion", source_hash)
            return {"status": "skipped", "source_hash": source_hash, "diff": {}}

    diff = {}
    try:
        for name, filename, model, schema in ENTITIES:
            diff[name] = _upsert(db, model, schema, _load_json(bucket, filename))
        db.add(IngestionRun(source_hash=source_hash, status="success", diff_summary=diff))
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Ingestion failed for bucket %s", bucket)
        raise

    logger.info("Ingested bucket %s: %s", source_hash,
                {k: len(v["upserted"]) for k, v in diff.items()})
    return {"status": "success", "source_hash": source_hash, "diff": diff}
