# core/workflow.py

"""
Job / Request lifecycle state machine.

The engine validates a requested status change against the entity's
transition table and the actor's role, and returns the updated entity
as a new immutable copy. It never persists anything: the caller loads
the snapshot, calls ``transition`` and writes the result back.

Guards run in a fixed order so the reported rejection is deterministic:

    1. target not reachable from the current status  -> InvalidTransition
    2. actor lacks the permission for the transition -> Unauthorized
    3. request staffed by nobody                     -> MissingAssignment
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from core.permission_helpers import has_any_permission
from models.enums import BaseStrEnum, JobStatus, RequestStatus
from models.lifecycle import LifecycleEntity


# -----------------------------------------------------
# Errors
# -----------------------------------------------------
class WorkflowContractError(ValueError):
    """Caller handed the engine something it cannot interpret."""


class RejectionKind(BaseStrEnum):
    invalid_transition = "InvalidTransition"
    unauthorized = "Unauthorized"
    missing_assignment = "MissingAssignment"


class TransitionAction(BaseStrEnum):
    approve = "approve"
    start = "start"
    complete = "complete"
    cancel = "cancel"


@dataclass(frozen=True)
class WorkflowRejection:
    kind: RejectionKind
    message: str
    entity_kind: str
    entity_id: str
    current_status: str
    target_status: str
    required_permissions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TransitionResult:
    entity: Optional[LifecycleEntity] = None
    rejection: Optional[WorkflowRejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None


# -----------------------------------------------------
# Transition tables
# -----------------------------------------------------
JOB_TRANSITIONS: Dict[JobStatus, Dict[JobStatus, TransitionAction]] = {
    JobStatus.scheduled: {
        JobStatus.in_progress: TransitionAction.start,
        JobStatus.cancelled: TransitionAction.cancel,
    },
    JobStatus.in_progress: {
        JobStatus.completed: TransitionAction.complete,
        JobStatus.cancelled: TransitionAction.cancel,
    },
    JobStatus.completed: {},
    JobStatus.cancelled: {},
}

REQUEST_TRANSITIONS: Dict[RequestStatus, Dict[RequestStatus, TransitionAction]] = {
    RequestStatus.pending: {
        RequestStatus.assigned: TransitionAction.approve,
        RequestStatus.cancelled: TransitionAction.cancel,
    },
    RequestStatus.assigned: {
        RequestStatus.in_progress: TransitionAction.start,
        RequestStatus.cancelled: TransitionAction.cancel,
    },
    RequestStatus.in_progress: {
        RequestStatus.completed: TransitionAction.complete,
    },
    RequestStatus.completed: {},
    RequestStatus.cancelled: {},
}

# entity_kind -> (status enum, table)
TRANSITION_TABLES = {
    "job": (JobStatus, JOB_TRANSITIONS),
    "request": (RequestStatus, REQUEST_TRANSITIONS),
}

# Any one of the listed permissions grants the transition.
ACTION_PERMISSIONS: Dict[Tuple[str, TransitionAction], Tuple[str, ...]] = {
    ("request", TransitionAction.approve): ("approve_requests",),
    ("request", TransitionAction.start): ("update_job_status", "assign_workers"),
    ("request", TransitionAction.complete): ("update_job_status", "assign_workers"),
    ("request", TransitionAction.cancel): ("create_requests", "manage_requests", "assign_workers"),
    ("job", TransitionAction.start): ("update_job_status", "assign_workers"),
    ("job", TransitionAction.complete): ("update_job_status", "assign_workers"),
    ("job", TransitionAction.cancel): ("assign_workers",),
}

# Extra fields a transition sets on the entity.
ACTION_SIDE_EFFECTS = {
    ("request", TransitionAction.approve): {"approved_by_admin": True},
}

# Request statuses that need somebody to route the work to.
STAFFED_REQUEST_STATUSES = frozenset({RequestStatus.assigned, RequestStatus.in_progress})

ACTION_LABELS = {
    TransitionAction.approve: "approve requests",
    TransitionAction.start: "start this work",
    TransitionAction.complete: "complete this work",
    TransitionAction.cancel: "cancel this {kind}",
}


# -----------------------------------------------------
# User-facing messages (one per rejection kind)
# -----------------------------------------------------
def _invalid_message(kind: str, current: str, target: str) -> str:
    return (
        f"This action is no longer available: the {kind} is '{current}' "
        f"and cannot move to '{target}'."
    )


def _unauthorized_message(kind: str, action: TransitionAction) -> str:
    label = ACTION_LABELS[action].format(kind=kind)
    return f"You don't have permission to {label}."


def missing_assignment_message(kind: str) -> str:
    return f"Assign a worker to this {kind} first, then try again."


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# -----------------------------------------------------
# Engine
# -----------------------------------------------------
@dataclass
class WorkflowEngine:
    clock: Callable[[], datetime] = field(default=utc_now)

    def _table(self, entity) -> tuple:
        if not isinstance(entity, LifecycleEntity):
            raise WorkflowContractError(
                f"Expected a lifecycle entity, got {type(entity).__name__}"
            )
        try:
            status_enum, table = TRANSITION_TABLES[entity.entity_kind]
        except KeyError:
            raise WorkflowContractError(f"No transition table for '{entity.entity_kind}'")

        try:
            current = status_enum(str(entity.status))
        except ValueError:
            raise WorkflowContractError(
                f"Unknown {entity.entity_kind} status '{entity.status}'"
            )
        return status_enum, table, current

    @staticmethod
    def _coerce_target(status_enum, entity, target_status):
        try:
            return status_enum(str(target_status))
        except ValueError:
            raise WorkflowContractError(
                f"Unknown {entity.entity_kind} status '{target_status}'"
            )

    def transition(self, entity: LifecycleEntity, target_status, actor) -> TransitionResult:
        status_enum, table, current = self._table(entity)
        target = self._coerce_target(status_enum, entity, target_status)
        kind = entity.entity_kind

        def reject(rejection_kind, message, required=()):
            return TransitionResult(rejection=WorkflowRejection(
                kind=rejection_kind,
                message=message,
                entity_kind=kind,
                entity_id=entity.id,
                current_status=current.value,
                target_status=target.value,
                required_permissions=tuple(required),
            ))

        # 1. reachable?
        action = table[current].get(target)
        if action is None:
            return reject(
                RejectionKind.invalid_transition,
                _invalid_message(kind, current.value, target.value),
            )

        # 2. permitted?
        required = ACTION_PERMISSIONS[(kind, action)]
        if not has_any_permission(getattr(actor, "role", None), required):
            return reject(
                RejectionKind.unauthorized,
                _unauthorized_message(kind, action),
                required,
            )

        # 3. staffed?
        if kind == "request" and target in STAFFED_REQUEST_STATUSES:
            if not entity.assignment.is_staffed():
                return reject(
                    RejectionKind.missing_assignment,
                    missing_assignment_message(kind),
                )

        # 4. apply
        now = self.clock()
        stamps = {"updated_at": now}
        if target.value == "in_progress" and entity.timestamps.started_at is None:
            stamps["started_at"] = now
        if target.value == "completed":
            stamps["completed_at"] = now

        update = {
            "status": target,
            "timestamps": entity.timestamps.model_copy(update=stamps),
        }
        update.update(ACTION_SIDE_EFFECTS.get((kind, action), {}))

        return TransitionResult(entity=entity.model_copy(update=update))

    def available_transitions(self, entity: LifecycleEntity, actor) -> List[str]:
        """Targets the actor may request from the current status."""
        _, table, current = self._table(entity)
        role = getattr(actor, "role", None)
        return [
            target.value
            for target, action in table[current].items()
            if has_any_permission(role, ACTION_PERMISSIONS[(entity.entity_kind, action)])
        ]


def get_workflow_engine() -> WorkflowEngine:
    """FastAPI dependency; tests override it to pin the clock."""
    return WorkflowEngine()
