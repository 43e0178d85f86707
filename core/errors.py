# core/errors.py

from fastapi import HTTPException

from core.logging_config import logger
from core.workflow import RejectionKind, WorkflowRejection


def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: Supabase Auth / GoTrue errors
    message = getattr(error, "message", None)
    if message:
        return str(message)

    # Case 2: Supabase errors with args (common)
    if error.args:
        return str(error.args[0])

    # Case 3: Plain string fallback
    return str(error) or type(error).__name__


def handle_supabase_error(error: Exception, operation: str = "Database operation", status_code: int = 500) -> HTTPException:
    """
    Handle Supabase errors with consistent formatting.
    Returns HTTPException (doesn't raise) so caller can customize or re-raise.
    """
    error_detail = extract_supabase_error(error)
    logger.error(f"{operation}: {error_detail}")

    error_lower = error_detail.lower()
    if "duplicate" in error_lower or "unique" in error_lower:
        return HTTPException(status_code=400, detail=f"{operation}: Record already exists")
    elif "foreign key" in error_lower:
        return HTTPException(status_code=400, detail=f"{operation}: Invalid reference")
    elif "not found" in error_lower or "does not exist" in error_lower:
        return HTTPException(status_code=404, detail=f"{operation}: Resource not found")
    else:
        return HTTPException(status_code=status_code, detail=f"{operation} failed")


# ============================================================
# Workflow rejections → HTTP
# ============================================================
REJECTION_STATUS_CODES = {
    RejectionKind.invalid_transition: 409,
    RejectionKind.unauthorized: 403,
    RejectionKind.missing_assignment: 422,
}


def rejection_to_http(rejection: WorkflowRejection, actor_id: str = None) -> HTTPException:
    """
    Detail carries the kind so clients can pick the corrective action
    (e.g. open the worker picker on MissingAssignment).
    """
    if rejection.kind == RejectionKind.unauthorized:
        # The control that triggered this should have been hidden.
        logger.warning(
            f"Unauthorized {rejection.entity_kind} transition "
            f"{rejection.current_status} → {rejection.target_status} "
            f"on {rejection.entity_id} by {actor_id}; "
            f"requires one of {list(rejection.required_permissions)}"
        )
    else:
        logger.info(
            f"Rejected {rejection.entity_kind} {rejection.entity_id}: "
            f"{rejection.kind} ({rejection.current_status} → {rejection.target_status})"
        )

    return HTTPException(
        status_code=REJECTION_STATUS_CODES[rejection.kind],
        detail={
            "error": rejection.kind.value,
            "message": rejection.message,
            "current_status": rejection.current_status,
            "target_status": rejection.target_status,
        },
    )
