from __future__ import annotations

import uuid

import pytest

from app.db.models import AuditLog, Case, CaseTask


@pytest.fixture
def docket(chamber_setup, make_case):
    """Three cases: one assigned to the lawyer, one owned by the client, one unrelated."""
    chamber = chamber_setup["chamber"]
    assigned = make_case(chamber, "OS 1/2026", "Money suit", assigned_to=chamber_setup["lawyer"].id, priority="high")
    owned = make_case(chamber, "MC 2/2026", "Maintenance case", client_id=chamber_setup["client"].id, status="pending")
    other = make_case(chamber, "CRL 3/2026", "Bail application", priority="critical", status="closed")
    return {"assigned": assigned, "owned": owned, "other": other}


def _numbers(response):
    return sorted(c["case_number"] for c in response.json()["cases"])


# ============================================================================
# Scope and search
# ============================================================================

def test_admin_sees_every_chamber_case(client, chamber_setup, docket, login_as):
    login_as(chamber_setup["admin"])

    assert _numbers(client.get("/api/cases")) == ["CRL 3/2026", "MC 2/2026", "OS 1/2026"]


def test_lawyer_sees_assigned_cases(client, chamber_setup, docket, login_as):
    login_as(chamber_setup["lawyer"])

    assert _numbers(client.get("/api/cases")) == ["OS 1/2026"]


def test_client_sees_own_cases(client, chamber_setup, docket, login_as):
    login_as(chamber_setup["client"])

    assert _numbers(client.get("/api/cases")) == ["MC 2/2026"]


@pytest.mark.parametrize(
    "params, expected",
    [
        ({"q": "bail"}, ["CRL 3/2026"]),
        ({"q": "os 1"}, ["OS 1/2026"]),
        ({"status": "pending"}, ["MC 2/2026"]),
        ({"status": "all"}, ["CRL 3/2026", "MC 2/2026", "OS 1/2026"]),
        ({"priority": "critical"}, ["CRL 3/2026"]),
    ],
)
def test_search_filters(client, chamber_setup, docket, login_as, params, expected):
    login_as(chamber_setup["admin"])

    assert _numbers(client.get("/api/cases", params=params)) == expected


def test_stats(client, chamber_setup, docket, login_as):
    login_as(chamber_setup["admin"])

    stats = client.get("/api/cases/stats").json()

    assert stats == {
        "total": 3, "open": 1, "pending": 1, "closed": 1, "archived": 0,
        "critical": 1, "high": 1,
    }


# ============================================================================
# CRUD
# ============================================================================

def test_create_case_defaults_and_audit(client, db_session, chamber_setup, login_as):
    login_as(chamber_setup["admin"])

    response = client.post("/api/cases", json={"case_number": "OS 9/2026", "title": "Injunction"})

    assert response.status_code == 200
    case = response.json()["case"]
    assert case["status"] == "open"
    assert case["priority"] == "medium"
    assert case["chamber_id"] == str(chamber_setup["chamber"].id)
    assert db_session.query(AuditLog).filter(AuditLog.action == "case.create").count() == 1


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"title": "No number"}, "Case number and title are required"),
        ({"case_number": "X", "title": "Y", "priority": "urgent"}, "Invalid priority: urgent"),
        ({"case_number": "X", "title": "Y", "status": "dormant"}, "Invalid status: dormant"),
    ],
)
def test_create_case_validation(client, chamber_setup, login_as, payload, message):
    login_as(chamber_setup["admin"])

    response = client.post("/api/cases", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": message}


def test_create_case_requires_admin(client, chamber_setup, login_as):
    login_as(chamber_setup["lawyer"])

    response = client.post("/api/cases", json={"case_number": "X", "title": "Y"})

    assert response.status_code == 403


def test_case_detail_access(client, chamber_setup, docket, make_user, login_as):
    login_as(chamber_setup["client"])
    assert client.get(f"/api/cases/{docket['owned'].id}").status_code == 200

    login_as(make_user())
    assert client.get(f"/api/cases/{docket['owned'].id}").status_code == 403
    assert client.get(f"/api/cases/{uuid.uuid4()}").json() == {"error": "Case not found"}


def test_update_and_soft_delete(client, db_session, chamber_setup, docket, login_as):
    case = docket["assigned"]
    login_as(chamber_setup["lawyer"])

    updated = client.patch(f"/api/cases/{case.id}", json={"title": "Money suit (amended)"}).json()["case"]
    assert updated["title"] == "Money suit (amended)"
    assert client.delete(f"/api/cases/{case.id}").status_code == 403

    login_as(chamber_setup["admin"])
    assert client.delete(f"/api/cases/{case.id}").json() == {"success": True}
    assert client.get(f"/api/cases/{case.id}").status_code == 404
    assert db_session.query(Case).filter(Case.id == case.id).one().deleted_at is not None


def test_status_and_assignment(client, chamber_setup, docket, make_user, login_as):
    case = docket["other"]
    login_as(chamber_setup["admin"])

    assert client.patch(f"/api/cases/{case.id}/status", json={"status": "reopened"}).status_code == 400
    assert client.patch(f"/api/cases/{case.id}/status", json={"status": "archived"}).json()["case"]["status"] == "archived"

    outsider = make_user(role="lawyer")
    rejected = client.patch(f"/api/cases/{case.id}/assign", json={"assigned_to": str(outsider.id)})
    assert rejected.json() == {"error": "Assignee must be an active chamber member"}

    lawyer_id = str(chamber_setup["lawyer"].id)
    assert client.patch(f"/api/cases/{case.id}/assign", json={"assigned_to": lawyer_id}).json()["case"]["assigned_to"] == lawyer_id
    assert client.patch(f"/api/cases/{case.id}/assign", json={"assigned_to": None}).json()["case"]["assigned_to"] is None


# ============================================================================
# Tasks
# ============================================================================

def test_tasks_lifecycle(client, db_session, chamber_setup, docket, login_as):
    case = docket["assigned"]
    login_as(chamber_setup["lawyer"])

    assert client.post(f"/api/cases/{case.id}/tasks", json={}).json() == {"error": "Task title is required"}

    later = client.post(f"/api/cases/{case.id}/tasks", json={"title": "File rejoinder", "due_date": "2026-11-20T10:00:00"}).json()["task"]
    sooner = client.post(f"/api/cases/{case.id}/tasks", json={"title": "Collect vakalath", "due_date": "2026-11-01T10:00:00"}).json()["task"]
    assert later["status"] == "pending"

    titles = [t["title"] for t in client.get(f"/api/cases/{case.id}/tasks").json()["tasks"]]
    assert titles == ["Collect vakalath", "File rejoinder"]

    assert client.patch(f"/api/tasks/{sooner['id']}/status", json={"status": "done"}).status_code == 400
    done = client.patch(f"/api/tasks/{sooner['id']}/status", json={"status": "completed"}).json()["task"]
    assert done["status"] == "completed"
    assert done["completed_at"] is not None

    assert db_session.query(CaseTask).count() == 2


def test_task_status_requires_membership(client, db_session, chamber_setup, docket, make_user, login_as):
    task = CaseTask(case_id=docket["assigned"].id, title="Research")
    db_session.add(task)
    db_session.commit()
    login_as(make_user(role="lawyer"))

    response = client.patch(f"/api/tasks/{task.id}/status", json={"status": "completed"})

    assert response.status_code == 403
