from __future__ import annotations

import uuid

import pytest

from app.db.models import ChamberSettings, Lawyer, TimeEntry
from app.services import time_service


def test_rate_prefers_lawyer_then_chamber_then_default(db_session, chamber_setup, make_case):
    lawyer = chamber_setup["lawyer"]
    case = make_case(chamber_setup["chamber"])

    assert time_service.resolve_rate(db_session, lawyer.id, case) == 0.0

    db_session.add(ChamberSettings(chamber_id=chamber_setup["chamber"].id, default_hourly_rate=1500.0))
    db_session.commit()
    assert time_service.resolve_rate(db_session, lawyer.id, case) == 1500.0
    assert time_service.resolve_rate(db_session, lawyer.id, None) == 1500.0

    db_session.add(Lawyer(user_id=lawyer.id, bar_number="K/1/2000", hourly_rate=4000.0))
    db_session.commit()
    assert time_service.resolve_rate(db_session, lawyer.id, case) == 4000.0


def test_create_entry_uses_resolved_rate(client, db_session, chamber_setup, make_case, login_as):
    case = make_case(chamber_setup["chamber"])
    db_session.add(Lawyer(user_id=chamber_setup["lawyer"].id, bar_number="K/1/2000", hourly_rate=3000.0))
    db_session.commit()
    login_as(chamber_setup["lawyer"])

    response = client.post("/api/time-entries", json={"case_id": str(case.id), "description": "Drafting", "minutes": 90})

    assert response.status_code == 200
    entry = response.json()["entry"]
    assert entry["rate"] == 3000.0
    assert entry["billable"] is True
    assert entry["case"]["case_number"] == "OS 12/2026"


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"minutes": 30}, "Description is required"),
        ({"description": "Call", "minutes": 0}, "Minutes must be a positive number"),
        ({"description": "Call", "minutes": -15}, "Minutes must be a positive number"),
    ],
)
def test_create_entry_validation(client, make_user, login_as, payload, message):
    login_as(make_user(role="lawyer"))

    response = client.post("/api/time-entries", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": message}


def test_summary_totals(db_session, make_user):
    user = make_user(role="lawyer")
    entries = [
        TimeEntry(user_id=user.id, description="a", minutes=90, billable=True, rate=1000.0),
        TimeEntry(user_id=user.id, description="b", minutes=30, billable=False, rate=1000.0),
        TimeEntry(user_id=user.id, description="c", minutes=20, billable=True, rate=0.0),
    ]

    assert time_service.summarize(entries) == {"totalHours": 2.33, "billableHours": 1.83, "totalValue": 2000.0}
    assert time_service.summarize([]) == {"totalHours": 0, "billableHours": 0, "totalValue": 0}


def test_summary_scopes(client, db_session, chamber_setup, make_case, login_as):
    case = make_case(chamber_setup["chamber"])
    db_session.add_all([
        TimeEntry(user_id=chamber_setup["lawyer"].id, case_id=case.id, description="a", minutes=60, rate=1000.0),
        TimeEntry(user_id=chamber_setup["admin"].id, case_id=case.id, description="b", minutes=30, rate=2000.0),
        TimeEntry(user_id=chamber_setup["admin"].id, description="no case", minutes=60, rate=500.0),
    ])
    db_session.commit()
    login_as(chamber_setup["admin"])

    mine = client.get("/api/time-entries/summary").json()
    chamber = client.get("/api/time-entries/summary", params={"scope": "chamber"}).json()

    assert mine == {"totalHours": 1.5, "billableHours": 1.5, "totalValue": 1500.0}
    assert chamber == {"totalHours": 1.5, "billableHours": 1.5, "totalValue": 2000.0}
    assert len(client.get("/api/time-entries/chamber").json()["entries"]) == 2


def test_chamber_scope_needs_admin(client, chamber_setup, login_as):
    login_as(chamber_setup["lawyer"])

    assert client.get("/api/time-entries/summary", params={"scope": "chamber"}).status_code == 403
    assert client.get("/api/time-entries/summary", params={"scope": "everyone"}).status_code == 400


def test_edit_and_delete_own_entries_only(client, db_session, make_user, login_as):
    owner = make_user(role="lawyer")
    entry = TimeEntry(user_id=owner.id, description="Research", minutes=45, rate=100.0)
    db_session.add(entry)
    db_session.commit()

    login_as(make_user(role="lawyer"))
    assert client.patch(f"/api/time-entries/{entry.id}", json={"minutes": 60}).status_code == 403

    login_as(owner)
    updated = client.patch(f"/api/time-entries/{entry.id}", json={"minutes": 60, "billable": False}).json()["entry"]
    assert updated["minutes"] == 60
    assert updated["billable"] is False

    assert client.delete(f"/api/time-entries/{entry.id}").status_code == 200
    assert client.get("/api/time-entries").json()["entries"] == []
    assert client.delete(f"/api/time-entries/{uuid.uuid4()}").status_code == 404


def test_outsider_cannot_bill_against_chamber_case(client, db_session, chamber_setup, make_case, make_user, login_as):
    case = make_case(chamber_setup["chamber"])
    login_as(make_user(role="lawyer"))

    response = client.post(
        "/api/time-entries",
        json={"case_id": str(case.id), "description": "Padding", "minutes": 600, "rate": 9999},
    )

    assert response.status_code == 403
    assert "case" not in response.json()
    assert db_session.query(TimeEntry).count() == 0

    login_as(chamber_setup["admin"])
    summary = client.get("/api/time-entries/summary", params={"scope": "chamber"}).json()
    assert summary == {"totalHours": 0, "billableHours": 0, "totalValue": 0}
