from __future__ import annotations

import uuid
from datetime import datetime

from app.db.models import CaseTask, Hearing
from app.services.calendar_service import get_events, parse_range_bound


def test_create_requires_fields(client, chamber_setup, login_as):
    login_as(chamber_setup["admin"])

    response = client.post("/api/calendar/create", json={"type": "hearing", "title": "x"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


def test_create_rejects_unknown_type(client, chamber_setup, make_case, login_as):
    case = make_case(chamber_setup["chamber"])
    login_as(chamber_setup["admin"])

    response = client.post(
        "/api/calendar/create",
        json={"caseId": str(case.id), "type": "meeting", "title": "Sync", "date": "2026-03-02"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid event type"}


def test_create_hearing_uses_location_as_court(client, db_session, chamber_setup, make_case, login_as):
    case = make_case(chamber_setup["chamber"])
    login_as(chamber_setup["lawyer"])

    response = client.post(
        "/api/calendar/create",
        json={
            "caseId": str(case.id),
            "type": "hearing",
            "title": "First hearing",
            "date": "2026-03-02",
            "time": "10:30",
            "location": "District Court, Ernakulam",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"][0]["court_name"] == "District Court, Ernakulam"
    hearing = db_session.query(Hearing).one()
    assert hearing.hearing_date == datetime(2026, 3, 2, 10, 30)


def test_create_task_defaults(client, db_session, chamber_setup, make_case, login_as):
    case = make_case(chamber_setup["chamber"])
    login_as(chamber_setup["admin"])

    client.post(
        "/api/calendar/create",
        json={"caseId": str(case.id), "type": "task", "title": "File vakalath", "date": "2026-03-05"},
    )

    task = db_session.query(CaseTask).one()
    assert task.status == "pending"
    assert task.priority == "medium"
    assert task.due_date == datetime(2026, 3, 5, 0, 0)


def test_non_member_cannot_create(client, chamber_setup, make_case, make_user, login_as):
    case = make_case(chamber_setup["chamber"])
    login_as(make_user(role="lawyer"))

    response = client.post(
        "/api/calendar/create",
        json={"caseId": str(case.id), "type": "task", "title": "x", "date": "2026-03-05"},
    )

    assert response.status_code == 403


def test_update_moves_only_with_date_and_time(client, db_session, chamber_setup, make_case, login_as):
    case = make_case(chamber_setup["chamber"])
    task = CaseTask(case_id=case.id, title="Draft", due_date=datetime(2026, 3, 5, 9, 0))
    db_session.add(task)
    db_session.commit()
    login_as(chamber_setup["admin"])

    client.put("/api/calendar/update", json={"id": str(task.id), "type": "task", "date": "2026-04-01", "title": "Draft plaint"})
    db_session.refresh(task)
    assert task.due_date == datetime(2026, 3, 5, 9, 0)
    assert task.title == "Draft plaint"

    client.put("/api/calendar/update", json={"id": str(task.id), "type": "task", "date": "2026-04-01", "time": "14:00"})
    db_session.refresh(task)
    assert task.due_date == datetime(2026, 4, 1, 14, 0)


def test_delete_hearing_and_task(client, db_session, chamber_setup, make_case, login_as):
    case = make_case(chamber_setup["chamber"])
    hearing = Hearing(case_id=case.id, hearing_date=datetime(2026, 3, 2, 10, 0), court_name="High Court")
    task = CaseTask(case_id=case.id, title="Draft", due_date=datetime(2026, 3, 5, 9, 0))
    db_session.add_all([hearing, task])
    db_session.commit()
    login_as(chamber_setup["admin"])

    assert client.request("DELETE", "/api/calendar/delete", json={"id": str(hearing.id), "type": "hearing"}).status_code == 200
    assert client.request("DELETE", "/api/calendar/delete", json={"id": str(task.id), "type": "task"}).status_code == 200

    assert db_session.query(Hearing).count() == 0
    db_session.refresh(task)
    assert task.deleted_at is not None

    missing = client.request("DELETE", "/api/calendar/delete", json={"id": str(uuid.uuid4()), "type": "task"})
    assert missing.status_code == 404
    assert missing.json() == {"error": "Event not found"}


def test_events_merge_and_lawyer_view(client, db_session, chamber_setup, make_case, login_as):
    chamber = chamber_setup["chamber"]
    lawyer = chamber_setup["lawyer"]
    mine = make_case(chamber, case_number="OS 1/2026", title="Mine", assigned_to=lawyer.id)
    other = make_case(chamber, case_number="OS 2/2026", title="Other")
    db_session.add_all([
        Hearing(case_id=mine.id, hearing_date=datetime(2026, 3, 2, 10, 0), court_name="Munsiff Court", judge_name="Judge Rao"),
        Hearing(case_id=other.id, hearing_date=datetime(2026, 3, 3, 10, 0), court_name=""),
        CaseTask(case_id=other.id, title="Notes", due_date=datetime(2026, 3, 4, 9, 0), assigned_to=lawyer.id),
        CaseTask(case_id=other.id, title="Outside", due_date=datetime(2026, 5, 1, 9, 0)),
    ])
    db_session.commit()
    login_as(chamber_setup["admin"])

    events = client.get(
        "/api/calendar/events",
        params={"chamber_id": str(chamber.id), "start": "2026-03-01", "end": "2026-03-31"},
    ).json()["events"]

    titles = [e["title"] for e in events]
    assert titles == ["Hearing: OS 1/2026", "Hearing: OS 2/2026", "Task: Notes"]
    assert events[0]["description"] == "Munsiff Court - Judge Rao"
    assert events[1]["description"] == "Other"
    assert events[2]["description"] == "Other"
    assert events[2]["caseNumber"] == "OS 2/2026"

    lawyer_view = get_events(db_session, chamber.id, lawyer_id=lawyer.id)
    assert [e.title for e in lawyer_view] == ["Hearing: OS 1/2026", "Task: Notes"]


def test_events_requires_chamber(client, chamber_setup, login_as):
    login_as(chamber_setup["admin"])

    response = client.get("/api/calendar/events")

    assert response.status_code == 400
    assert response.json() == {"error": "Chamber ID is required"}


def test_range_end_date_covers_whole_day():
    assert parse_range_bound("2026-03-31", end=True) == datetime(2026, 3, 31, 23, 59, 59, 999999)
    assert parse_range_bound("2026-03-01") == datetime(2026, 3, 1)
    assert parse_range_bound("2026-03-01T10:00:00+05:30") == datetime(2026, 3, 1, 4, 30)
    assert parse_range_bound(None) is None


def test_export_ics_download(client, db_session, chamber_setup, make_case, login_as):
    case = make_case(chamber_setup["chamber"], case_number="OS 9/2026")
    db_session.add(Hearing(case_id=case.id, hearing_date=datetime(2026, 3, 2, 10, 0), court_name="High Court"))
    db_session.commit()
    login_as(chamber_setup["lawyer"])

    response = client.post("/api/calendar/export", json={"chamberId": str(chamber_setup["chamber"].id)})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/calendar")
    assert response.headers["content-disposition"].startswith('attachment; filename="calendar-')
    assert response.headers["content-disposition"].endswith('.ics"')
    assert "SUMMARY:Hearing: OS 9/2026" in response.text
    assert "DTSTART:20260302T100000Z" in response.text


def test_export_csv_download(client, db_session, chamber_setup, make_case, login_as):
    case = make_case(chamber_setup["chamber"])
    db_session.add(CaseTask(case_id=case.id, title="Prepare", due_date=datetime(2026, 3, 4, 9, 15)))
    db_session.commit()
    login_as(chamber_setup["admin"])

    response = client.post(
        "/api/calendar/export",
        json={"chamberId": str(chamber_setup["chamber"].id), "format": "csv", "startDate": "2026-03-01", "endDate": "2026-03-04"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().split("\n")
    assert lines[0] == "Title,Date,Time,Type,Case Number,Description"
    assert lines[1] == "Task: Prepare,2026-03-04,09:15,task,OS 12/2026,Recovery suit"
