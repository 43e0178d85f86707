# models/request.py

from typing import Annotated, ClassVar, List, Optional
from pydantic import BaseModel, BeforeValidator, Field, field_validator

from .enums import LEGACY_PRIORITY_ALIASES, RequestPriority, RequestStatus, RequestType
from .lifecycle import LifecycleEntity


def normalize_priority(v):
    """Map legacy low/medium values onto the canonical vocabulary."""
    if isinstance(v, str):
        return LEGACY_PRIORITY_ALIASES.get(v.strip().lower(), v.strip().lower())
    return v


Priority = Annotated[RequestPriority, BeforeValidator(normalize_priority)]


# -------------------------------------------------
# Cleaning request (stored row)
# -------------------------------------------------
class CleaningRequest(LifecycleEntity):
    entity_kind: ClassVar[str] = "request"

    status: RequestStatus = RequestStatus.pending

    building_id: str
    requester_id: str
    type: RequestType = RequestType.general
    priority: Priority = RequestPriority.normal
    title: str
    content: str = ""
    location: Optional[str] = None
    photos: List[str] = Field(default_factory=list)

    approved_by_admin: bool = False
    admin_notes: Optional[str] = None

    @field_validator("photos", mode="before")
    def none_to_list(cls, v):
        return v or []


# -------------------------------------------------
# Create Request (client registration screen)
# -------------------------------------------------
class RequestCreate(BaseModel):
    building_id: str
    type: RequestType = RequestType.general
    priority: Priority = RequestPriority.normal
    title: str = Field(..., min_length=1)
    content: str = ""
    location: Optional[str] = None
    photos: List[str] = Field(default_factory=list)


# -------------------------------------------------
# Routing a request to a worker / admin
# -------------------------------------------------
class RequestAssignmentUpdate(BaseModel):
    worker_id: Optional[str] = None
    company_id: Optional[str] = None
    admin_id: Optional[str] = None


class RequestStatusUpdate(BaseModel):
    status: RequestStatus
    admin_notes: Optional[str] = None
