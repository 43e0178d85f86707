# -------------------------
# Enums
# -------------------------
from .enums import (
    Role,
    JobStatus,
    RequestStatus,
    RequestType,
    RequestPriority,
)

# -------------------------
# Lifecycle value objects
# -------------------------
from .lifecycle import (
    Timestamps,
    Assignment,
    LifecycleEntity,
)

# -------------------------
# Job Models
# -------------------------
from .job import (
    Job,
    JobCreate,
    JobStatusUpdate,
)

# -------------------------
# Request Models
# -------------------------
from .request import (
    CleaningRequest,
    RequestCreate,
    RequestAssignmentUpdate,
    RequestStatusUpdate,
)

# -------------------------
# Auth Models
# -------------------------
from .auth import (
    ActorContext,
    LoginRequest,
    TokenResponse,
    ActorRead,
)
