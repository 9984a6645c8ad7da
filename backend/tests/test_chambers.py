from __future__ import annotations

import uuid

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.api.v1.deps import get_current_user
from app.db.models import Address, AuditLog, ChamberMember, Client, User
from app.db.schemas import AuthUser, ClientCreate
from app.main import app
from app.services import chamber_service


def test_create_chamber_requires_name(client, make_user, login_as):
    login_as(make_user(role="chamber_admin"))

    response = client.post("/api/chambers", json={"phone": "123"})

    assert response.status_code == 400
    assert response.json() == {"error": "Chamber name is required"}


def test_create_chamber_sets_up_admin(client, db_session, make_user, login_as):
    user = make_user(role="chamber_admin", email="founder@firm.test")
    login_as(user)

    response = client.post("/api/chambers", json={"name": "Iyer Chambers", "city": "Kochi", "country": "IN"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["chamber"]["name"] == "Iyer Chambers"
    assert body["chamber"]["email"] == "founder@firm.test"

    membership = db_session.query(ChamberMember).filter(ChamberMember.user_id == user.id).one()
    assert membership.role == "admin"
    assert membership.is_active is True
    assert db_session.query(Address).filter(Address.city == "Kochi").count() == 1

    db_session.refresh(user)
    assert user.onboarding_completed is True
    assert str(user.chamber_id) == body["chamber"]["id"]
    assert db_session.query(AuditLog).filter(AuditLog.action == "chamber.create").count() == 1


def test_create_chamber_without_profile_creates_admin_profile(client, db_session):
    identity = AuthUser(id=uuid.uuid4(), email="new@firm.test", user_metadata={"full_name": "New Founder"})
    app.dependency_overrides[get_current_user] = lambda: identity

    response = client.post("/api/chambers", json={"name": "Fresh Chambers"})

    assert response.status_code == 200
    profile = db_session.query(User).filter(User.id == identity.id).one()
    assert profile.role == "chamber_admin"
    assert profile.full_name == "New Founder"
    # no address fields, no address row
    assert db_session.query(Address).count() == 0


def test_get_chamber_requires_membership(client, chamber_setup, make_user, login_as):
    login_as(make_user())

    response = client.get(f"/api/chambers/{chamber_setup['chamber'].id}")

    assert response.status_code == 403


def test_settings_upsert_and_read_back(client, db_session, chamber_setup, login_as):
    chamber = chamber_setup["chamber"]
    login_as(chamber_setup["admin"])

    response = client.put(f"/api/chambers/{chamber.id}/settings", json={"default_hourly_rate": 2500, "currency": "INR"})
    assert response.status_code == 200
    assert response.json()["settings"]["default_hourly_rate"] == 2500

    body = client.get(f"/api/chambers/{chamber.id}").json()
    assert body["chamber"]["chamber_settings"]["currency"] == "INR"
    assert chamber_service.default_hourly_rate(db_session, chamber.id) == 2500


def test_lawyer_cannot_update_chamber(client, chamber_setup, login_as):
    login_as(chamber_setup["lawyer"])

    response = client.patch(f"/api/chambers/{chamber_setup['chamber'].id}", json={"name": "Renamed"})

    assert response.status_code == 403
    assert response.json() == {"error": "Administrator access required"}


def test_audit_logs_visible_to_admin(client, chamber_setup, login_as):
    chamber = chamber_setup["chamber"]
    login_as(chamber_setup["admin"])
    client.patch(f"/api/chambers/{chamber.id}", json={"website": "https://menon.test"})

    logs = client.get(f"/api/chambers/{chamber.id}/audit-logs").json()["logs"]

    assert [log["action"] for log in logs] == ["chamber.update"]
    assert logs[0]["details"] == {"website": "https://menon.test"}


# ============================================================================
# Clients
# ============================================================================

def test_client_roster_and_stats(client, chamber_setup, login_as):
    chamber = chamber_setup["chamber"]
    login_as(chamber_setup["admin"])

    created = client.post(
        f"/api/chambers/{chamber.id}/clients",
        json={"email": "ravi@example.test", "full_name": "Ravi Kumar", "phone": "98470"},
    )
    assert created.status_code == 200

    roster = client.get(f"/api/chambers/{chamber.id}/clients").json()["clients"]
    assert {c["email"] for c in roster} == {"ravi@example.test", "client@example.test"}

    stats = client.get(f"/api/chambers/{chamber.id}/clients/stats").json()
    assert stats == {"total": 2, "thisMonth": 2}


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"email": "ravi@example.test"}, "Full name is required"),
        ({"email": "not-an-email", "full_name": "Ravi"}, "A valid email is required"),
        ({"email": "client@example.test", "full_name": "Dup"}, "A user with this email already exists"),
    ],
)
def test_create_client_validation(client, chamber_setup, login_as, payload, message):
    login_as(chamber_setup["admin"])

    response = client.post(f"/api/chambers/{chamber_setup['chamber'].id}/clients", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == message


def test_remove_client(client, db_session, chamber_setup, login_as):
    chamber = chamber_setup["chamber"]
    login_as(chamber_setup["admin"])
    new_client = client.post(
        f"/api/chambers/{chamber.id}/clients",
        json={"email": "ravi@example.test", "full_name": "Ravi Kumar"},
    ).json()["client"]

    response = client.delete(f"/api/chambers/{chamber.id}/clients/{new_client['id']}")

    assert response.status_code == 200
    assert db_session.query(ChamberMember).filter(ChamberMember.user_id == uuid.UUID(new_client["id"])).count() == 0
    profile = db_session.query(Client).one()
    assert profile.deleted_at is not None


def test_remove_client_restores_profile_when_membership_delete_fails(db_session, chamber_setup, monkeypatch):
    chamber = chamber_setup["chamber"]
    user = chamber_service.create_client(
        db_session, chamber.id, ClientCreate(email="ravi@example.test", full_name="Ravi"), chamber_setup["admin"].id
    )

    def _fail(*_args, **_kwargs):
        raise SQLAlchemyError("constraint violation")

    monkeypatch.setattr(chamber_service, "_delete_membership", _fail)

    with pytest.raises(SQLAlchemyError):
        chamber_service.remove_client(db_session, chamber.id, user.id, chamber_setup["admin"].id)

    profile = db_session.query(Client).filter(Client.user_id == user.id).one()
    assert profile.deleted_at is None
    assert db_session.query(ChamberMember).filter(ChamberMember.user_id == user.id).count() == 1
