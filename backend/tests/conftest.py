from __future__ import annotations

import os

# Settings are read at import time; point them at throwaway values first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_URL"] = "https://project.supabase.test/"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "service-role-key"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret-with-enough-length-for-hs256"
os.environ["SITE_URL"] = "https://app.example.test"
os.environ["STORAGE_ACCESS_KEY_ID"] = "test-access-key"
os.environ["STORAGE_SECRET_ACCESS_KEY"] = "test-secret-key"
os.environ["STORAGE_ENDPOINT_URL"] = "https://project.supabase.test/storage/v1/s3"
os.environ["DEBUG"] = "true"

import uuid
from typing import Callable, Optional
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.v1.deps import get_current_user
from app.db.database import Base, get_db
from app.db.models import (
    Case,
    Chamber,
    ChamberMember,
    MemberRole,
    User,
    UserRole,
)
from app.db.schemas import AuthUser
from app.main import app
from app.services.realtime_service import realtime_service


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def broadcast_mock(monkeypatch):
    """No realtime traffic leaves the test process."""
    mock = Mock()
    monkeypatch.setattr(realtime_service, "broadcast", mock)
    return mock


@pytest.fixture
def login_as() -> Callable[..., AuthUser]:
    def _login(user: User, metadata: Optional[dict] = None) -> AuthUser:
        identity = AuthUser(
            id=user.id,
            email=user.email,
            user_metadata=metadata or {"full_name": user.full_name, "role": user.role},
        )
        app.dependency_overrides[get_current_user] = lambda: identity
        return identity

    return _login


# ============================================================================
# Row factories
# ============================================================================

@pytest.fixture
def make_user(db_session):
    def _make(role: str = UserRole.client.value, email: Optional[str] = None, full_name: str = "Test User", **extra) -> User:
        user = User(
            id=uuid.uuid4(),
            email=email or f"{uuid.uuid4().hex[:8]}@example.test",
            full_name=full_name,
            role=role,
            **extra,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def add_member(db_session):
    def _add(chamber: Chamber, user: User, role: str = MemberRole.member.value, is_active: bool = True) -> ChamberMember:
        member = ChamberMember(chamber_id=chamber.id, user_id=user.id, role=role, is_active=is_active)
        db_session.add(member)
        db_session.commit()
        return member

    return _add


@pytest.fixture
def chamber_setup(db_session, make_user, add_member):
    """A chamber with an admin, one lawyer and one client."""
    admin = make_user(role=UserRole.chamber_admin.value, email="admin@chamber.test", full_name="Asha Admin")
    lawyer = make_user(role=UserRole.lawyer.value, email="lawyer@chamber.test", full_name="Lal Lawyer")
    client_user = make_user(role=UserRole.client.value, email="client@example.test", full_name="Chitra Client")

    chamber = Chamber(name="Menon & Associates", admin_id=admin.id, email="office@chamber.test")
    db_session.add(chamber)
    db_session.commit()

    admin.chamber_id = chamber.id
    lawyer.chamber_id = chamber.id
    db_session.commit()

    add_member(chamber, admin, MemberRole.admin.value)
    add_member(chamber, lawyer, MemberRole.lawyer.value)
    add_member(chamber, client_user, MemberRole.member.value)
    return {"chamber": chamber, "admin": admin, "lawyer": lawyer, "client": client_user}


@pytest.fixture
def make_case(db_session):
    def _make(chamber: Chamber, case_number: str = "OS 12/2026", title: str = "Recovery suit", **extra) -> Case:
        case = Case(chamber_id=chamber.id, case_number=case_number, title=title, **extra)
        db_session.add(case)
        db_session.commit()
        return case

    return _make
