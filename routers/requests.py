# routers/requests.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from dependencies.auth import get_current_user, requires_permission
from core.lifecycle_store import insert_entity, list_request_queue, load_request, save_entity
from core.logging_config import logger
from core.permission_helpers import can_manage_requests, has_any_permission, is_granted, requires_any_permission
from core.priority import sort_by_priority
from core.workflow import WorkflowEngine, get_workflow_engine, missing_assignment_message
from models.auth import ActorContext
from models.enums import RequestPriority, RequestStatus
from models.request import (
    CleaningRequest,
    RequestAssignmentUpdate,
    RequestCreate,
    RequestStatusUpdate,
)
from services.lifecycle_service import apply_transition


router = APIRouter(
    prefix="/requests",
    tags=["Requests"],
)

VIEW_ALL_REQUESTS = ("view_all_data", "manage_requests", "view_requests", "assign_workers")

# Assignment can only be edited before work starts.
REASSIGNABLE_STATUSES = (RequestStatus.pending, RequestStatus.assigned)


# -----------------------------------------------------
# Visibility
# -----------------------------------------------------
def visibility_filter(actor: ActorContext) -> dict:
    """Supabase filters limiting what this actor may list."""
    if has_any_permission(actor.role, VIEW_ALL_REQUESTS):
        return {}
    if is_granted(actor.role, "view_own_requests"):
        return {"requester_id": actor.id}
    if is_granted(actor.role, "view_assigned_requests"):
        return {"worker_id": actor.id}
    raise HTTPException(403, "You do not have access to requests")


def ensure_request_visible(request: CleaningRequest, actor: ActorContext):
    filters = visibility_filter(actor)
    if filters.get("requester_id") and request.requester_id != actor.id:
        raise HTTPException(403, "You do not have access to this request")
    if filters.get("worker_id") and request.assignment.worker_id != actor.id:
        raise HTTPException(403, "You do not have access to this request")


# -----------------------------------------------------
# LIST REQUESTS (priority queue order)
# -----------------------------------------------------
@router.get("", summary="List Requests", response_model=List[CleaningRequest])
def list_requests(
    status: Optional[RequestStatus] = Query(None, description="Filter by status"),
    priority: Optional[RequestPriority] = Query(None, description="Filter by priority"),
    building_id: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    current_user: ActorContext = Depends(get_current_user),
):
    """
    - Admins / managers: all requests
    - Clients: requests they filed
    - Workers: requests routed to them

    Sorted by priority (urgent first), then newest first.
    """
    filters = visibility_filter(current_user)

    if status:
        filters["status"] = status.value
    if building_id:
        filters["building_id"] = building_id

    return sort_by_priority(list_request_queue(filters, limit, priority=priority))


# -----------------------------------------------------
# GET REQUEST
# -----------------------------------------------------
@router.get("/{request_id}", summary="Get Request", response_model=CleaningRequest)
def get_request(request_id: str, current_user: ActorContext = Depends(get_current_user)):
    request = load_request(request_id)
    ensure_request_visible(request, current_user)
    return request


# -----------------------------------------------------
# CREATE REQUEST (client)
# -----------------------------------------------------
@router.post("", summary="Create Request", response_model=CleaningRequest)
def create_request(
    payload: RequestCreate,
    current_user: ActorContext = Depends(requires_permission("create_requests")),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    now = engine.clock().isoformat()
    record = {
        "building_id": payload.building_id,
        "requester_id": current_user.id,
        "type": payload.type.value,
        "priority": payload.priority.value,
        "title": payload.title.strip(),
        "content": payload.content,
        "location": payload.location,
        "photos": payload.photos,
        "status": RequestStatus.pending.value,
        "approved_by_admin": False,
        "created_at": now,
        "updated_at": now,
    }

    request = insert_entity(CleaningRequest, record)
    logger.info(
        f"User {current_user.id} filed {payload.priority.value} request {request.id} "
        f"for building {payload.building_id}"
    )
    return request


# -----------------------------------------------------
# ROUTE TO WORKER / ADMIN
# -----------------------------------------------------
@router.patch("/{request_id}/assignment", summary="Assign Request", response_model=CleaningRequest)
def assign_request(
    request_id: str,
    payload: RequestAssignmentUpdate,
    current_user: ActorContext = Depends(requires_any_permission("assign_workers", "manage_requests")),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    """
    Set who the request is routed to. This is a prerequisite for
    approving (pending → assigned) or starting the request.
    """
    request = load_request(request_id)

    if request.status not in REASSIGNABLE_STATUSES:
        raise HTTPException(
            status_code=409,
            detail={
                "error": "InvalidTransition",
                "message": f"This action is no longer available: the request is '{request.status.value}'.",
            },
        )

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        return request

    assignment = request.assignment.model_copy(update=changes)

    # Past pending, somebody must stay on the request.
    if request.status != RequestStatus.pending and not assignment.is_staffed():
        raise HTTPException(
            status_code=422,
            detail={
                "error": "MissingAssignment",
                "message": missing_assignment_message(request.entity_kind),
                "current_status": request.status.value,
            },
        )

    updated = request.model_copy(update={
        "assignment": assignment,
        "timestamps": request.timestamps.model_copy(update={"updated_at": engine.clock()}),
    })

    saved = save_entity(request, updated)
    logger.info(f"User {current_user.id} routed request {request_id}: {changes}")
    return saved


# -----------------------------------------------------
# AVAILABLE TRANSITIONS
# -----------------------------------------------------
@router.get("/{request_id}/transitions", summary="Statuses the current user may move this request to")
def request_transitions(
    request_id: str,
    current_user: ActorContext = Depends(get_current_user),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    request = load_request(request_id)
    ensure_request_visible(request, current_user)
    return {
        "request_id": request.id,
        "status": request.status.value,
        "available": engine.available_transitions(request, current_user),
    }


# -----------------------------------------------------
# CHANGE STATUS (approve / start / complete / cancel)
# -----------------------------------------------------
@router.patch("/{request_id}/status", summary="Change Request Status", response_model=CleaningRequest)
def update_request_status(
    request_id: str,
    payload: RequestStatusUpdate,
    current_user: ActorContext = Depends(get_current_user),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    request = load_request(request_id)
    ensure_request_visible(request, current_user)

    extra = {}
    if payload.admin_notes is not None:
        if not can_manage_requests(current_user.role):
            raise HTTPException(403, "Only admins can add admin notes")
        extra["admin_notes"] = payload.admin_notes

    updated = apply_transition(engine, request, payload.status, current_user, extra_fields=extra)

    logger.info(
        f"User {current_user.id} moved request {request_id}: "
        f"{request.status.value} → {updated.status.value}"
    )
    return updated
