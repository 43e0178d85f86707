# services/lifecycle_service.py

"""
Glue between the routers, the workflow engine and Supabase.

    snapshot = load_job(...)            # caller reads
    result = engine.transition(...)     # engine decides
    save_entity(snapshot, result)       # caller writes, conditionally
"""

from typing import Optional

from core.errors import rejection_to_http
from core.lifecycle_store import save_entity
from core.workflow import WorkflowEngine
from models.auth import ActorContext
from models.lifecycle import LifecycleEntity


def apply_transition(
    engine: WorkflowEngine,
    snapshot: LifecycleEntity,
    target_status,
    actor: ActorContext,
    extra_fields: Optional[dict] = None,
):
    """
    Run the transition and persist it.

    ``extra_fields`` (notes, completion rate, ...) ride along on the same
    conditional write so the status change and its annotations land
    together or not at all.
    """
    result = engine.transition(snapshot, target_status, actor)
    if not result.ok:
        raise rejection_to_http(result.rejection, actor_id=actor.id)

    updated = result.entity
    extras = {k: v for k, v in (extra_fields or {}).items() if v is not None}
    if extras:
        updated = updated.model_copy(update=extras)

    return save_entity(snapshot, updated)
