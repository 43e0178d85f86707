# routers/jobs.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from dependencies.auth import get_current_user, requires_permission
from core.config import settings
from core.lifecycle_store import insert_entity, list_entities, load_job
from core.logging_config import logger
from core.permission_helpers import has_any_permission, is_granted
from core.workflow import WorkflowEngine, get_workflow_engine
from models.auth import ActorContext
from models.enums import JobStatus
from models.job import Job, JobCreate, JobStatusUpdate
from services.lifecycle_service import apply_transition


router = APIRouter(
    prefix="/jobs",
    tags=["Jobs"],
)

# Roles holding any of these see every job.
VIEW_ALL_JOBS = ("view_all_data", "assign_workers")


# -----------------------------------------------------
# Visibility
# -----------------------------------------------------
def ensure_job_visible(job: Job, actor: ActorContext):
    if has_any_permission(actor.role, VIEW_ALL_JOBS):
        return
    if is_granted(actor.role, "view_assigned_jobs") and job.assignment.worker_id == actor.id:
        return
    raise HTTPException(403, "You do not have access to this job")


# -----------------------------------------------------
# LIST JOBS
# -----------------------------------------------------
@router.get("", summary="List Jobs", response_model=List[Job])
def list_jobs(
    status: Optional[JobStatus] = Query(None, description="Filter by status"),
    building_id: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    current_user: ActorContext = Depends(get_current_user),
):
    """
    - Admins / managers: all jobs
    - Workers: only jobs assigned to them
    """
    filters = {}

    if has_any_permission(current_user.role, VIEW_ALL_JOBS):
        pass
    elif is_granted(current_user.role, "view_assigned_jobs"):
        filters["worker_id"] = current_user.id
    else:
        raise HTTPException(403, "You do not have access to jobs")

    if status:
        filters["status"] = status.value
    if building_id:
        filters["building_id"] = building_id

    return list_entities(Job, filters, limit)


# -----------------------------------------------------
# GET JOB
# -----------------------------------------------------
@router.get("/{job_id}", summary="Get Job", response_model=Job)
def get_job(job_id: str, current_user: ActorContext = Depends(get_current_user)):
    job = load_job(job_id)
    ensure_job_visible(job, current_user)
    return job


# -----------------------------------------------------
# CREATE JOB (assign a worker to a building)
# -----------------------------------------------------
@router.post("", summary="Create Job", response_model=Job)
def create_job(
    payload: JobCreate,
    current_user: ActorContext = Depends(requires_permission("assign_workers")),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    now = engine.clock().isoformat()
    record = {
        "building_id": payload.building_id,
        "worker_id": payload.worker_id,
        "company_id": payload.company_id,
        "scheduled_at": payload.scheduled_at.isoformat(),
        "areas": payload.areas,
        "before_photos": [],
        "after_photos": [],
        "completion_rate": 0,
        "status": JobStatus.scheduled.value,
        "created_at": now,
        "updated_at": now,
    }

    job = insert_entity(Job, record)
    logger.info(f"User {current_user.id} scheduled job {job.id} for worker {payload.worker_id}")
    return job


# -----------------------------------------------------
# AVAILABLE TRANSITIONS (drives which buttons the UI shows)
# -----------------------------------------------------
@router.get("/{job_id}/transitions", summary="Statuses the current user may move this job to")
def job_transitions(
    job_id: str,
    current_user: ActorContext = Depends(get_current_user),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    job = load_job(job_id)
    ensure_job_visible(job, current_user)
    return {
        "job_id": job.id,
        "status": job.status.value,
        "available": engine.available_transitions(job, current_user),
    }


# -----------------------------------------------------
# CHANGE STATUS
# -----------------------------------------------------
@router.patch("/{job_id}/status", summary="Change Job Status", response_model=Job)
def update_job_status(
    job_id: str,
    payload: JobStatusUpdate,
    current_user: ActorContext = Depends(get_current_user),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    job = load_job(job_id)
    ensure_job_visible(job, current_user)

    # Photo proof is a business rule outside the state machine.
    if (
        settings.REQUIRE_PHOTO_PROOF
        and payload.status == JobStatus.completed
        and not job.after_photos
    ):
        raise HTTPException(
            status_code=422,
            detail={
                "error": "PhotoProofRequired",
                "message": "Upload at least one after photo before completing this job.",
            },
        )

    updated = apply_transition(
        engine,
        job,
        payload.status,
        current_user,
        extra_fields={
            "worker_notes": payload.worker_notes,
            "completion_rate": payload.completion_rate,
        },
    )

    logger.info(f"User {current_user.id} moved job {job_id}: {job.status.value} → {updated.status.value}")
    return updated
