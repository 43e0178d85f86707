# tests/test_requests.py

"""
Tests for request endpoints: filing, routing and the approval workflow.
"""

from fastapi.testclient import TestClient


def test_client_files_request(client: TestClient, act_as, client_actor, mock_supabase):
    act_as(client_actor)
    mock_client = mock_supabase()

    response = client.post("/requests", json={
        "building_id": "building-1",
        "title": "  Clean the parking garage ",
        "priority": "low",
        "content": "Oil stains near B2 entrance",
    })

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "pending"
    assert data["priority"] == "normal"

    record = mock_client.table.return_value.insert.call_args.args[0]
    assert record["requester_id"] == "client-1"
    assert record["title"] == "Clean the parking garage"
    assert record["approved_by_admin"] is False


def test_worker_cannot_file_request(client: TestClient, act_as, worker_actor, mock_supabase):
    act_as(worker_actor)
    mock_supabase()

    response = client.post("/requests", json={"building_id": "building-1", "title": "x"})

    assert response.status_code == 403


def test_admin_queue_is_priority_sorted(client: TestClient, act_as, admin_actor, request_row, mock_supabase):
    act_as(admin_actor)
    mock_supabase(rows=[
        request_row(id="r1", priority="normal", created_at="2025-03-01T10:00:00Z"),
        request_row(id="r2", priority="urgent", created_at="2025-03-01T08:00:00Z"),
        request_row(id="r3", priority="medium", created_at="2025-03-01T09:00:00Z"),
    ])

    response = client.get("/requests")

    assert response.status_code == 200
    assert [r["id"] for r in response.json()] == ["r2", "r3", "r1"]


def test_row_limit_keeps_older_urgent_requests(client: TestClient, act_as, admin_actor, request_row, mock_supabase):
    act_as(admin_actor)
    mock_supabase(rows=[
        request_row(id="old-urgent", priority="urgent", created_at="2025-01-01T08:00:00Z"),
        request_row(id="n1", priority="normal", created_at="2025-03-01T08:00:00Z"),
        request_row(id="n2", priority="low", created_at="2025-03-01T09:00:00Z"),
        request_row(id="n3", priority="normal", created_at="2025-03-01T10:00:00Z"),
    ])

    response = client.get("/requests", params={"limit": 2})

    assert response.status_code == 200
    assert [r["id"] for r in response.json()] == ["old-urgent", "n3"]


def test_priority_filter_includes_legacy_values(client: TestClient, act_as, admin_actor, request_row, mock_supabase):
    act_as(admin_actor)
    mock_supabase(rows=[
        request_row(id="r-high", priority="high", created_at="2025-03-01T08:00:00Z"),
        request_row(id="r-medium", priority="medium", created_at="2025-03-01T09:00:00Z"),
        request_row(id="r-normal", priority="normal", created_at="2025-03-01T10:00:00Z"),
    ])

    response = client.get("/requests", params={"priority": "high"})

    assert [r["id"] for r in response.json()] == ["r-medium", "r-high"]


def test_client_sees_only_own_requests(client: TestClient, act_as, client_actor, request_row, mock_supabase):
    act_as(client_actor)
    mock_client = mock_supabase(rows=[request_row()])

    response = client.get("/requests", params={"priority": "urgent"})

    assert response.status_code == 200
    query = mock_client.select_queries[0]
    query.eq.assert_any_call("requester_id", "client-1")
    query.in_.assert_called_once_with("priority", ["urgent"])
    assert len(mock_client.select_queries) == 1
    assert response.json() == []


def test_client_cannot_open_someone_elses_request(client: TestClient, act_as, client_actor, request_row, mock_supabase):
    act_as(client_actor)
    mock_supabase(rows=[request_row(requester_id="client-2")])

    assert client.get("/requests/req-1").status_code == 403


# ------------------------------------------------------------
# Approval workflow
# ------------------------------------------------------------
def test_admin_approves_staffed_request(client: TestClient, act_as, admin_actor, request_row, mock_supabase):
    act_as(admin_actor)
    mock_client = mock_supabase(rows=[request_row(worker_id="worker-1")])

    response = client.patch("/requests/req-1/status", json={
        "status": "assigned",
        "admin_notes": "Bring the pressure washer",
    })

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "assigned"
    assert data["approved_by_admin"] is True
    assert data["admin_notes"] == "Bring the pressure washer"

    changes = mock_client.table.return_value.update.call_args.args[0]
    assert changes["status"] == "assigned"
    assert changes["approved_by_admin"] is True


def test_approval_without_assignment(client: TestClient, act_as, admin_actor, request_row, mock_supabase):
    act_as(admin_actor)
    mock_client = mock_supabase(rows=[request_row()])

    response = client.patch("/requests/req-1/status", json={"status": "assigned"})

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["error"] == "MissingAssignment"
    assert "Assign a worker" in detail["message"]
    mock_client.table.return_value.update.assert_not_called()


def test_client_cannot_approve(client: TestClient, act_as, client_actor, request_row, mock_supabase):
    act_as(client_actor)
    mock_supabase(rows=[request_row(worker_id="worker-1")])

    response = client.patch("/requests/req-1/status", json={"status": "assigned"})

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "Unauthorized"


def test_client_cancels_own_pending_request(client: TestClient, act_as, client_actor, request_row, mock_supabase):
    act_as(client_actor)
    mock_supabase(rows=[request_row()])

    response = client.patch("/requests/req-1/status", json={"status": "cancelled"})

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


def test_client_cannot_write_admin_notes(client: TestClient, act_as, client_actor, request_row, mock_supabase):
    act_as(client_actor)
    mock_supabase(rows=[request_row()])

    response = client.patch("/requests/req-1/status", json={
        "status": "cancelled",
        "admin_notes": "nope",
    })

    assert response.status_code == 403


def test_assigned_worker_starts_request(client: TestClient, act_as, worker_actor, request_row, mock_supabase):
    act_as(worker_actor)
    mock_supabase(rows=[request_row(status="assigned", worker_id="worker-1", approved_by_admin=True)])

    response = client.patch("/requests/req-1/status", json={"status": "in_progress"})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "in_progress"
    assert data["timestamps"]["started_at"] is not None


def test_completed_request_is_final(client: TestClient, act_as, admin_actor, request_row, mock_supabase):
    act_as(admin_actor)
    mock_supabase(rows=[request_row(status="completed", worker_id="worker-1")])

    response = client.patch("/requests/req-1/status", json={"status": "pending"})

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "InvalidTransition"


# ------------------------------------------------------------
# Routing
# ------------------------------------------------------------
def test_manager_routes_request(client: TestClient, act_as, manager_actor, request_row, mock_supabase):
    act_as(manager_actor)
    mock_client = mock_supabase(rows=[request_row()])

    response = client.patch("/requests/req-1/assignment", json={
        "worker_id": "worker-1",
        "company_id": "company-1",
    })

    assert response.status_code == 200
    data = response.json()
    assert data["assignment"]["worker_id"] == "worker-1"
    assert data["status"] == "pending"

    changes = mock_client.table.return_value.update.call_args.args[0]
    assert changes["worker_id"] == "worker-1"
    assert "status" not in changes


def test_client_cannot_route_request(client: TestClient, act_as, client_actor, mock_supabase):
    act_as(client_actor)
    mock_supabase()

    response = client.patch("/requests/req-1/assignment", json={"worker_id": "worker-1"})

    assert response.status_code == 403


def test_started_request_cannot_be_rerouted(client: TestClient, act_as, admin_actor, request_row, mock_supabase):
    act_as(admin_actor)
    mock_client = mock_supabase(rows=[request_row(status="in_progress", worker_id="worker-1")])

    response = client.patch("/requests/req-1/assignment", json={"worker_id": "worker-2"})

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "InvalidTransition"
    mock_client.table.return_value.update.assert_not_called()


def test_request_transitions_for_client(client: TestClient, act_as, client_actor, request_row, mock_supabase):
    act_as(client_actor)
    mock_supabase(rows=[request_row()])

    response = client.get("/requests/req-1/transitions")

    assert response.json() == {
        "request_id": "req-1",
        "status": "pending",
        "available": ["cancelled"],
    }


def test_assigned_request_cannot_be_left_unstaffed(client: TestClient, act_as, admin_actor, request_row, mock_supabase):
    act_as(admin_actor)
    mock_client = mock_supabase(rows=[request_row(status="assigned", worker_id="worker-1")])

    response = client.patch("/requests/req-1/assignment", json={"worker_id": None})

    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "MissingAssignment"
    mock_client.table.return_value.update.assert_not_called()


def test_assigned_request_can_be_rerouted(client: TestClient, act_as, admin_actor, request_row, mock_supabase):
    act_as(admin_actor)
    mock_supabase(rows=[request_row(status="assigned", worker_id="worker-1")])

    response = client.patch("/requests/req-1/assignment", json={"worker_id": "worker-2"})

    assert response.status_code == 200
    assert response.json()["assignment"]["worker_id"] == "worker-2"


def test_pending_request_can_be_unassigned(client: TestClient, act_as, manager_actor, request_row, mock_supabase):
    act_as(manager_actor)
    mock_supabase(rows=[request_row(worker_id="worker-1")])

    response = client.patch("/requests/req-1/assignment", json={"worker_id": None})

    assert response.status_code == 200
    assert response.json()["assignment"]["worker_id"] is None
