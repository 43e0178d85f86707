# models/job.py

from datetime import datetime
from typing import ClassVar, List, Optional
from pydantic import BaseModel, Field, field_validator

from .enums import JobStatus
from .lifecycle import LifecycleEntity


# -------------------------------------------------
# Job (stored row)
# -------------------------------------------------
class Job(LifecycleEntity):
    entity_kind: ClassVar[str] = "job"
    assignment_fields: ClassVar[tuple] = ("worker_id", "company_id")

    status: JobStatus = JobStatus.scheduled

    building_id: str
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None

    areas: List[str] = Field(default_factory=list)
    before_photos: List[str] = Field(default_factory=list)
    after_photos: List[str] = Field(default_factory=list)

    worker_notes: Optional[str] = None
    completion_rate: int = Field(0, ge=0, le=100)

    @field_validator("scheduled_at", mode="before")
    def parse_scheduled_at(cls, v):
        if isinstance(v, str) and v.endswith("Z"):
            return v.replace("Z", "+00:00")
        return v

    @field_validator("areas", "before_photos", "after_photos", mode="before")
    def none_to_list(cls, v):
        return v or []


# -------------------------------------------------
# Create Job (worker assignment screen)
# -------------------------------------------------
class JobCreate(BaseModel):
    building_id: str
    worker_id: str
    company_id: Optional[str] = None
    scheduled_at: datetime
    areas: List[str] = Field(default_factory=list)

    @field_validator("scheduled_at", mode="before")
    def parse_scheduled_at(cls, v):
        if isinstance(v, str) and v.endswith("Z"):
            return v.replace("Z", "+00:00")
        return v


# -------------------------------------------------
# Status change payload
# -------------------------------------------------
class JobStatusUpdate(BaseModel):
    status: JobStatus
    worker_notes: Optional[str] = None
    completion_rate: Optional[int] = Field(None, ge=0, le=100)
