# models/lifecycle.py

from datetime import datetime
from typing import ClassVar, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import TERMINAL_STATUSES


# -------------------------------------------------
# Timestamp helper (Supabase returns "...Z" strings)
# -------------------------------------------------
def _normalize_timestamp(v):
    if isinstance(v, str) and v.endswith("Z"):
        return v.replace("Z", "+00:00")
    return v


class Timestamps(BaseModel):
    model_config = ConfigDict(frozen=True)

    created_at: datetime
    updated_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at", "started_at", "completed_at", mode="before")
    def parse_timestamps(cls, v):
        return _normalize_timestamp(v)


class Assignment(BaseModel):
    """Who an entity is routed to. All fields optional."""
    model_config = ConfigDict(frozen=True)

    worker_id: Optional[str] = None
    company_id: Optional[str] = None
    admin_id: Optional[str] = None

    @field_validator("worker_id", "company_id", "admin_id", mode="before")
    def blank_to_none(cls, v):
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    def is_staffed(self) -> bool:
        return bool(self.worker_id or self.admin_id)


# -------------------------------------------------
# Shared shape for Job and CleaningRequest
# -------------------------------------------------
class LifecycleEntity(BaseModel):
    """
    A record whose ``status`` advances through a fixed state machine.

    Instances are immutable; the workflow engine returns a modified copy
    and leaves persistence to the caller.
    """
    model_config = ConfigDict(frozen=True)

    # Set by subclasses; used to pick the transition table.
    entity_kind: ClassVar[str] = "entity"

    id: str
    status: str
    timestamps: Timestamps
    assignment: Assignment = Field(default_factory=Assignment)

    # Flat Supabase columns that fold into the nested value objects.
    timestamp_fields: ClassVar[tuple] = ("created_at", "updated_at", "started_at", "completed_at")
    assignment_fields: ClassVar[tuple] = ("worker_id", "company_id", "admin_id")

    @property
    def is_terminal(self) -> bool:
        return str(self.status) in TERMINAL_STATUSES

    # -------------------------------------------------
    # Supabase row <-> model
    # -------------------------------------------------
    @classmethod
    def from_record(cls, row: dict):
        data = dict(row)
        timestamps = {k: data.pop(k) for k in cls.timestamp_fields if k in data}
        assignment = {k: data.pop(k) for k in cls.assignment_fields if k in data}
        fields = {k: v for k, v in data.items() if k in cls.model_fields}
        return cls(timestamps=timestamps, assignment=assignment, **fields)

    def to_record(self) -> dict:
        record = self.model_dump(mode="json", exclude={"timestamps", "assignment"})
        record.update(self.timestamps.model_dump(mode="json"))
        assignment = self.assignment.model_dump(mode="json")
        record.update({k: assignment.get(k) for k in self.assignment_fields})
        return record
