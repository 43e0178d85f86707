# core/lifecycle_store.py

"""
Supabase persistence for jobs and requests.

Writes after a workflow transition are conditional on the snapshot's
``updated_at``: if another actor changed the row in between, no row
matches and the caller gets a 409 instead of silently overwriting.
"""

from typing import Optional, Type

from fastapi import HTTPException

from core.config import settings
from core.errors import handle_supabase_error
from core.logging_config import logger
from core.priority import priority_buckets
from core.supabase_client import get_supabase_client
from models.enums import RequestPriority
from models.job import Job
from models.lifecycle import LifecycleEntity
from models.request import CleaningRequest


# Columns a transition must never rewrite.
IMMUTABLE_COLUMNS = ("id", "created_at")


class StaleEntityError(HTTPException):
    def __init__(self, entity_kind: str, entity_id: str):
        super().__init__(
            status_code=409,
            detail={
                "error": "Conflict",
                "message": f"This {entity_kind} was changed by someone else. Reload and try again.",
            },
        )
        self.entity_kind = entity_kind
        self.entity_id = entity_id


def table_for(model: Type[LifecycleEntity]) -> str:
    return {
        "job": settings.JOBS_TABLE,
        "request": settings.REQUESTS_TABLE,
    }[model.entity_kind]


def _client():
    client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")
    return client


# -----------------------------------------------------
# READ
# -----------------------------------------------------
def load_entity(model: Type[LifecycleEntity], entity_id: str):
    client = _client()
    table = table_for(model)

    try:
        result = (
            client.table(table)
            .select("*")
            .eq("id", entity_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        raise handle_supabase_error(e, f"Failed to load {model.entity_kind}")

    if not result.data:
        raise HTTPException(404, f"{model.entity_kind.capitalize()} not found")

    return model.from_record(result.data[0])


def load_job(job_id: str) -> Job:
    return load_entity(Job, job_id)


def load_request(request_id: str) -> CleaningRequest:
    return load_entity(CleaningRequest, request_id)


def list_entities(model: Type[LifecycleEntity], filters: Optional[dict] = None, limit: Optional[int] = None) -> list:
    client = _client()
    query = client.table(table_for(model)).select("*")

    for key, val in (filters or {}).items():
        query = query.eq(key, val)

    try:
        result = (
            query.order("created_at", desc=True)
            .limit(limit or settings.DEFAULT_LIST_LIMIT)
            .execute()
        )
    except Exception as e:
        raise handle_supabase_error(e, f"Failed to list {model.entity_kind}s")

    return [model.from_record(row) for row in (result.data or [])]


def list_request_queue(
    filters: Optional[dict] = None,
    limit: Optional[int] = None,
    priority: Optional[RequestPriority] = None,
) -> list:
    """
    Requests in queue order, highest priority first, newest first within
    a priority. Each priority level is fetched separately so the row
    limit never cuts an older urgent request in favour of newer normal ones.
    """
    client = _client()
    remaining = limit or settings.DEFAULT_LIST_LIMIT
    rows = []

    for level, stored_values in priority_buckets():
        if priority is not None and level != priority:
            continue
        if remaining <= 0:
            break

        query = client.table(settings.REQUESTS_TABLE).select("*")
        for key, val in (filters or {}).items():
            query = query.eq(key, val)

        try:
            result = (
                query.in_("priority", stored_values)
                .order("created_at", desc=True)
                .limit(remaining)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to list requests")

        batch = result.data or []
        rows.extend(batch)
        remaining -= len(batch)

    return [CleaningRequest.from_record(row) for row in rows]


# -----------------------------------------------------
# WRITE
# -----------------------------------------------------
def insert_entity(model: Type[LifecycleEntity], record: dict):
    client = _client()
    cleaned = {k: v for k, v in record.items() if v is not None}

    try:
        result = (
            client.table(table_for(model))
            .insert(cleaned, returning="representation")
            .execute()
        )
    except Exception as e:
        raise handle_supabase_error(e, f"Failed to create {model.entity_kind}")

    if not result.data:
        raise HTTPException(500, f"Failed to create {model.entity_kind}")

    return model.from_record(result.data[0])


def changed_columns(before: LifecycleEntity, after: LifecycleEntity) -> dict:
    old = before.to_record()
    new = after.to_record()
    return {
        k: v for k, v in new.items()
        if k not in IMMUTABLE_COLUMNS and old.get(k) != v
    }


def save_entity(before: LifecycleEntity, after: LifecycleEntity):
    """
    Write ``after`` back, conditional on the row still matching the
    ``before`` snapshot's updated_at.
    """
    changes = changed_columns(before, after)
    if not changes:
        return after

    client = _client()
    snapshot_version = before.to_record()["updated_at"]

    try:
        result = (
            client.table(table_for(type(before)))
            .update(changes, returning="representation")
            .eq("id", before.id)
            .eq("updated_at", snapshot_version)
            .execute()
        )
    except Exception as e:
        raise handle_supabase_error(e, f"Failed to update {before.entity_kind}")

    if not result.data:
        logger.warning(
            f"Stale write rejected for {before.entity_kind} {before.id} "
            f"(snapshot updated_at={snapshot_version})"
        )
        raise StaleEntityError(before.entity_kind, before.id)

    logger.info(f"Saved {before.entity_kind} {before.id}: {sorted(changes)}")
    return type(before).from_record(result.data[0])
