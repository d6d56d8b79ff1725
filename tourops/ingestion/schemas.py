from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tourops.models import AssetStatus, AssetType, PackageStatus, TripStatus


class MaintenanceScheduleSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    blocked_dates: list[date] = Field(default_factory=list, alias="blockedDates")
    next_maintenance: Optional[date] = Field(default=None, alias="nextMaintenance")


class AssetSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    id: str
    name: str
    asset_type: AssetType = Field(alias="assetType")
    status: AssetStatus = AssetStatus.AVAILABLE
    capacity: Optional[int] = Field(default=None, ge=0)
    maintenance_schedule: Optional[MaintenanceScheduleSchema] = Field(
        default=None, alias="maintenanceSchedule"
    )

    def row(self) -> dict:
        data = self.model_dump()
        if self.maintenance_schedule is not None:
            data["maintenance_schedule"] = self.maintenance_schedule.model_dump(
                mode="json", by_alias=True
            )
        return data


class TripSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    id: str
    trip_code: Optional[str] = Field(default=None, alias="tripCode")
    title: str = ""
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    status: TripStatus = TripStatus.SCHEDULED
    assigned_resources: list[str] = Field(default_factory=list, alias="assignedResources")

    @model_validator(mode="after")
    def start_before_end(self):
        if self.start_date > self.end_date:
            raise ValueError(f"trip {self.id}: startDate after endDate")
        return self

    def row(self) -> dict:
        return self.model_dump()


class PriceTierSchema(BaseModel):
    tier: str
    min_pax: int = Field(ge=0)
    max_pax: int = Field(ge=0)
    price_nta: float
    price_publish: float


class PackageSchema(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    id: str
    name: str
    status: PackageStatus = PackageStatus.DRAFT
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    max_capacity: Optional[int] = Field(default=None, ge=0)
    blackout_dates: list[date] = Field(default_factory=list)
    min_booking_days: Optional[int] = None
    max_booking_days: Optional[int] = None
    prices: list[PriceTierSchema] = Field(default_factory=list)

    def row(self) -> dict:
        return self.model_dump(mode="json") | {
            "start_date": self.start_date,
            "end_date": self.end_date,
        }


class BookingSchema(BaseModel):
    id: str
    package_id: str
    departure_date: date
    return_date: date
    adult_pax: int = Field(default=0, ge=0)
    child_pax: int = Field(default=0, ge=0)
    infant_pax: int = Field(default=0, ge=0)
    status: str = "pending"

    def row(self) -> dict:
        return self.model_dump()


# ── Request bodies ────────────────────────────────────────────────────────────

class MaintenanceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    reason: str = ""

    @model_validator(mode="after")
    def start_before_end(self):
        if self.start_date > self.end_date:
            raise ValueError("startDate after endDate")
        return self


class AssignmentCheckRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resource_ids: list[str] = Field(alias="resourceIds")
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    exclude_trip_id: Optional[str] = Field(default=None, alias="excludeTripId")

    @field_validator("resource_ids")
    @classmethod
    def not_empty(cls, v):
        assert v, "resourceIds must not be empty"
        return v

    @model_validator(mode="after")
    def start_before_end(self):
        if self.start_date > self.end_date:
            raise ValueError("startDate after endDate")
        return self
