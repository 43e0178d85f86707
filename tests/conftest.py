# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient
from unittest.mock import Mock, patch
from typing import Generator

from main import create_app
from core.credentials import InMemoryCredentialStore
from core.workflow import WorkflowEngine, get_workflow_engine
from dependencies.auth import get_credential_store, get_current_user
from models.auth import ActorContext
from models.job import Job
from models.request import CleaningRequest


FIXED_NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)
CREATED = "2025-02-20T08:00:00+00:00"


# ------------------------------------------------------------
# Engine / app
# ------------------------------------------------------------
@pytest.fixture
def engine() -> WorkflowEngine:
    """Workflow engine with a pinned clock."""
    return WorkflowEngine(clock=lambda: FIXED_NOW)


@pytest.fixture
def credential_store() -> InMemoryCredentialStore:
    store = InMemoryCredentialStore()
    store.add_user("admin", "admin-secret", user_id="admin-1", role="admin", email="admin@cleanit.test")
    store.add_user("manager1", "manager-secret", user_id="manager-1", role="manager")
    store.add_user("client1", "client-secret", user_id="client-1", role="client")
    store.add_user("worker1", "worker-secret", user_id="worker-1", role="worker", name="Kim Worker")
    return store


@pytest.fixture(scope="function")
def app(engine, credential_store):
    """Create a test FastAPI application instance."""
    app = create_app()
    app.dependency_overrides[get_workflow_engine] = lambda: engine
    app.dependency_overrides[get_credential_store] = lambda: credential_store
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


# ------------------------------------------------------------
# Actors
# ------------------------------------------------------------
@pytest.fixture
def admin_actor():
    return ActorContext(id="admin-1", role="admin", email="admin@cleanit.test")


@pytest.fixture
def manager_actor():
    return ActorContext(id="manager-1", role="manager")


@pytest.fixture
def client_actor():
    return ActorContext(id="client-1", role="client")


@pytest.fixture
def worker_actor():
    return ActorContext(id="worker-1", role="worker")


@pytest.fixture
def act_as(app):
    """Skip token handling and run requests as the given actor."""
    def _act_as(actor: ActorContext):
        app.dependency_overrides[get_current_user] = lambda: actor
    return _act_as


# ------------------------------------------------------------
# Rows as Supabase returns them
# ------------------------------------------------------------
@pytest.fixture
def job_row():
    def _row(**overrides):
        row = {
            "id": "job-1",
            "building_id": "building-1",
            "worker_id": "worker-1",
            "company_id": "company-1",
            "scheduled_at": "2025-03-01T08:00:00Z",
            "started_at": None,
            "completed_at": None,
            "status": "scheduled",
            "areas": ["lobby", "stairs"],
            "before_photos": [],
            "after_photos": [],
            "worker_notes": None,
            "completion_rate": 0,
            "created_at": CREATED,
            "updated_at": CREATED,
        }
        row.update(overrides)
        return row
    return _row


@pytest.fixture
def request_row():
    def _row(**overrides):
        row = {
            "id": "req-1",
            "building_id": "building-1",
            "requester_id": "client-1",
            "type": "general",
            "priority": "normal",
            "title": "Clean the parking garage",
            "content": "Oil stains near B2 entrance",
            "location": "B2",
            "photos": [],
            "admin_id": None,
            "worker_id": None,
            "company_id": None,
            "status": "pending",
            "approved_by_admin": False,
            "admin_notes": None,
            "started_at": None,
            "completed_at": None,
            "created_at": CREATED,
            "updated_at": CREATED,
        }
        row.update(overrides)
        return row
    return _row


@pytest.fixture
def make_job(job_row):
    def _make(**overrides) -> Job:
        return Job.from_record(job_row(**overrides))
    return _make


@pytest.fixture
def make_request(request_row):
    def _make(**overrides) -> CleaningRequest:
        return CleaningRequest.from_record(request_row(**overrides))
    return _make


# ------------------------------------------------------------
# Supabase
# ------------------------------------------------------------
def _query(data):
    """Write query returning a fixed result."""
    query = Mock()
    query.eq.return_value = query
    query.execute.return_value = Mock(data=data)
    return query


def _select_query(rows):
    """Read query over ``rows`` honoring eq / in_ / order / limit."""
    state = {"rows": list(rows)}
    query = Mock()

    def narrow(keep):
        state["rows"] = [r for r in state["rows"] if keep(r)]
        return query

    def order(key, desc=False):
        state["rows"] = sorted(state["rows"], key=lambda r: r.get(key) or "", reverse=desc)
        return query

    def limit(n):
        state["rows"] = state["rows"][:n]
        return query

    query.eq.side_effect = lambda key, val: narrow(lambda r: r.get(key) == val)
    query.in_.side_effect = lambda key, values: narrow(lambda r: r.get(key) in values)
    query.order.side_effect = order
    query.limit.side_effect = limit
    query.execute.side_effect = lambda: Mock(data=list(state["rows"]))
    return query


def make_supabase_client(rows=None, stale=False):
    """
    Mock client whose table() supports select / insert / update.

    Each select() starts a fresh query over ``rows`` and is kept in
    ``select_queries``. Updates echo the stored row merged with the
    changes, or nothing when ``stale`` is set (simulating a concurrent
    write).
    """
    rows = rows or []
    mock_client = Mock()
    mock_table = mock_client.table.return_value
    mock_client.select_queries = []
    mock_client.update_queries = []

    def select(*args, **kwargs):
        query = _select_query(rows)
        mock_client.select_queries.append(query)
        return query

    def update(changes, **kwargs):
        data = [] if stale or not rows else [{**rows[0], **changes}]
        query = _query(data)
        mock_client.update_queries.append(query)
        return query

    def insert(record, **kwargs):
        return _query([{"id": "new-1", **record}])

    mock_table.select.side_effect = select
    mock_table.update.side_effect = update
    mock_table.insert.side_effect = insert
    return mock_client


@pytest.fixture
def mock_supabase():
    """Install a mock Supabase client for the lifecycle store."""
    patchers = []

    def _install(rows=None, stale=False):
        mock_client = make_supabase_client(rows, stale)
        patcher = patch("core.lifecycle_store.get_supabase_client", return_value=mock_client)
        patcher.start()
        patchers.append(patcher)
        return mock_client

    yield _install

    for patcher in patchers:
        patcher.stop()
