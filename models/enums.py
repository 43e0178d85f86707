from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# ROLE
# -----------------------------------------------------
class Role(BaseStrEnum):
    """Actor category, fixed for the whole session."""

    admin = "admin"
    manager = "manager"
    client = "client"
    worker = "worker"


# -----------------------------------------------------
# JOB STATUS
# -----------------------------------------------------
class JobStatus(BaseStrEnum):
    """Workflow state for a cleaning job."""

    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


# -----------------------------------------------------
# REQUEST STATUS
# -----------------------------------------------------
class RequestStatus(BaseStrEnum):
    """Workflow state for a client request."""

    pending = "pending"
    assigned = "assigned"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


TERMINAL_STATUSES = frozenset({"completed", "cancelled"})


# -----------------------------------------------------
# REQUEST TYPE
# -----------------------------------------------------
class RequestType(BaseStrEnum):
    general = "general"
    additional = "additional"
    urgent = "urgent"
    special = "special"


# -----------------------------------------------------
# REQUEST PRIORITY
# -----------------------------------------------------
class RequestPriority(BaseStrEnum):
    """Canonical priority vocabulary for requests."""

    normal = "normal"
    high = "high"
    urgent = "urgent"


# Older screens stored low/medium/high; these are the values we migrate.
LEGACY_PRIORITY_ALIASES = {
    "low": RequestPriority.normal,
    "medium": RequestPriority.high,
}
