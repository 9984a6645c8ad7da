"""
SQLAlchemy ORM Models (mirror of the hosted Postgres schema)
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    TIMESTAMP,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy import Index

from app.db.database import Base

# JSONB on Postgres, plain JSON elsewhere (tests run on SQLite)
JSONType = JSON().with_variant(JSONB, "postgresql")

# ============================================================================
# Enums
# ============================================================================

class UserRole(str, enum.Enum):
    """Application roles"""
    chamber_admin = "chamber_admin"
    lawyer = "lawyer"
    client = "client"

class UserStatus(str, enum.Enum):
    active = "active"
    pending = "pending"
    inactive = "inactive"

class MemberRole(str, enum.Enum):
    """Role of a user inside a chamber"""
    admin = "admin"
    owner = "owner"
    lawyer = "lawyer"
    member = "member"

class CaseStatus(str, enum.Enum):
    open = "open"
    pending = "pending"
    closed = "closed"
    archived = "archived"

class CasePriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"

class TaskStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"

class LeadStatus(str, enum.Enum):
    """Lead pipeline"""
    new = "new"
    contacted = "contacted"
    consultation = "consultation"
    converted = "converted"
    lost = "lost"


# Status/role columns hold plain strings in the hosted schema; the enums
# above are used for validation and comparisons.

# ============================================================================
# Identity & tenancy
# ============================================================================

class User(Base):
    """Profile row keyed by the auth provider's user id"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=True, index=True)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    avatar_url = Column(Text, nullable=True)
    role = Column(String(32), nullable=False, default=UserRole.client.value)
    status = Column(String(32), nullable=False, default=UserStatus.active.value)
    chamber_id = Column(Uuid, ForeignKey("chambers.id", ondelete="SET NULL", use_alter=True), nullable=True)
    specialization = Column(String(255), nullable=True)
    bar_number = Column(String(100), nullable=True)
    onboarding_completed = Column(Boolean, nullable=False, default=False)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(TIMESTAMP, nullable=True)

    lawyer_profile = relationship("Lawyer", back_populates="user", uselist=False, cascade="all, delete-orphan")
    client_profile = relationship("Client", back_populates="user", uselist=False, cascade="all, delete-orphan")
    memberships = relationship("ChamberMember", back_populates="user", cascade="all, delete-orphan")


class Address(Base):
    __tablename__ = "addresses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    street_address = Column(Text, nullable=True)
    city = Column(String(120), nullable=True)
    state = Column(String(120), nullable=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(120), nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)


class Chamber(Base):
    """Law-firm tenant"""
    __tablename__ = "chambers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    logo_url = Column(Text, nullable=True)
    admin_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    address_id = Column(Uuid, ForeignKey("addresses.id"), nullable=True)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    address = relationship("Address")
    settings = relationship("ChamberSettings", back_populates="chamber", uselist=False, cascade="all, delete-orphan")
    members = relationship("ChamberMember", back_populates="chamber", cascade="all, delete-orphan")


class ChamberSettings(Base):
    __tablename__ = "chamber_settings"

    chamber_id = Column(Uuid, ForeignKey("chambers.id", ondelete="CASCADE"), primary_key=True)
    default_hourly_rate = Column(Float, nullable=True)
    currency = Column(String(8), nullable=False, default="INR")
    timezone = Column(String(64), nullable=False, default="UTC")
    notify_new_leads = Column(Boolean, nullable=False, default=True)
    preferences = Column(JSONType, nullable=False, default=dict)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    chamber = relationship("Chamber", back_populates="settings")


class ChamberMember(Base):
    """User <-> chamber membership"""
    __tablename__ = "chamber_members"
    __table_args__ = (
        UniqueConstraint("chamber_id", "user_id", name="uq_chamber_members_chamber_user"),
        Index("ix_chamber_members_user_active", "user_id", "is_active"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chamber_id = Column(Uuid, ForeignKey("chambers.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(32), nullable=False, default=MemberRole.member.value)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)

    chamber = relationship("Chamber", back_populates="members")
    user = relationship("User", back_populates="memberships")


class Lawyer(Base):
    """Professional profile of a lawyer user"""
    __tablename__ = "lawyers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    bar_number = Column(String(100), nullable=False)
    specialization = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)
    experience_years = Column(Integer, nullable=False, default=0)
    hourly_rate = Column(Float, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="lawyer_profile")


class Client(Base):
    __tablename__ = "clients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    chamber_id = Column(Uuid, ForeignKey("chambers.id", ondelete="SET NULL"), nullable=True)
    company_name = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    deleted_at = Column(TIMESTAMP, nullable=True)

    user = relationship("User", back_populates="client_profile")


# ============================================================================
# Cases
# ============================================================================

class Case(Base):
    """Legal case; belongs to exactly one chamber"""
    __tablename__ = "cases"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chamber_id = Column(Uuid, ForeignKey("chambers.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    assigned_to = Column(Uuid, ForeignKey("users.id"), nullable=True)

    case_number = Column(String(100), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    case_type = Column(String(100), nullable=True)
    status = Column(String(32), nullable=False, default=CaseStatus.open.value)
    priority = Column(String(32), nullable=False, default=CasePriority.medium.value)
    filing_date = Column(TIMESTAMP, nullable=True)
    next_hearing_date = Column(TIMESTAMP, nullable=True)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(TIMESTAMP, nullable=True)

    client = relationship("User", foreign_keys=[client_id])
    assignee = relationship("User", foreign_keys=[assigned_to])
    tasks = relationship("CaseTask", back_populates="case", cascade="all, delete-orphan")
    hearings = relationship("Hearing", back_populates="case", cascade="all, delete-orphan")
    documents = relationship("CaseDocument", back_populates="case", cascade="all, delete-orphan")


class CaseTask(Base):
    __tablename__ = "case_tasks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(TIMESTAMP, nullable=True)
    priority = Column(String(32), nullable=False, default=CasePriority.medium.value)
    status = Column(String(32), nullable=False, default=TaskStatus.pending.value)
    assigned_to = Column(Uuid, ForeignKey("users.id"), nullable=True)
    completed_at = Column(TIMESTAMP, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(TIMESTAMP, nullable=True)

    case = relationship("Case", back_populates="tasks")


class Hearing(Base):
    __tablename__ = "hearings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    hearing_date = Column(TIMESTAMP, nullable=False)
    court_name = Column(String(255), nullable=False, default="")
    judge_name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    case = relationship("Case", back_populates="hearings")


class CaseDocument(Base):
    """Vault entry; versions share a base name"""
    __tablename__ = "case_documents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    url = Column(Text, nullable=False)
    storage_path = Column(Text, nullable=True)
    type = Column(String(120), nullable=True)
    size = Column(BigInteger, nullable=True)
    uploaded_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    deleted_at = Column(TIMESTAMP, nullable=True)

    case = relationship("Case", back_populates="documents")


# ============================================================================
# Leads
# ============================================================================

class Lead(Base):
    __tablename__ = "leads"
    __table_args__ = (
        Index("ix_leads_chamber_email", "chamber_id", "email"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chamber_id = Column(Uuid, ForeignKey("chambers.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    source = Column(String(120), nullable=True)
    status = Column(String(32), nullable=False, default=LeadStatus.new.value)
    notes = Column(Text, nullable=True)
    assigned_to = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(TIMESTAMP, nullable=True)

    assignee = relationship("User", foreign_keys=[assigned_to])


# ============================================================================
# Messaging
# ============================================================================

class MessageThread(Base):
    __tablename__ = "message_threads"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subject = Column(String(255), nullable=True)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="SET NULL"), nullable=True)
    # list of user id strings, kept sorted for direct threads
    participant_ids = Column(JSONType, nullable=False, default=list)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)

    messages = relationship("Message", back_populates="thread", cascade="all, delete-orphan")


class Message(Base):
    __tablename__ = "messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    thread_id = Column(Uuid, ForeignKey("message_threads.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)

    thread = relationship("MessageThread", back_populates="messages")


class ThreadRead(Base):
    __tablename__ = "thread_reads"
    __table_args__ = (
        UniqueConstraint("thread_id", "user_id", name="uq_thread_reads_thread_user"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    thread_id = Column(Uuid, ForeignKey("message_threads.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    last_read_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSONType, nullable=False, default=dict)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)


# ============================================================================
# Billing & audit
# ============================================================================

class TimeEntry(Base):
    __tablename__ = "time_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="SET NULL"), nullable=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    minutes = Column(Integer, nullable=False)
    billable = Column(Boolean, nullable=False, default=True)
    rate = Column(Float, nullable=False, default=0.0)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(TIMESTAMP, nullable=True)

    case = relationship("Case")
    user = relationship("User")


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String(120), nullable=False)
    entity = Column(String(120), nullable=True)
    entity_id = Column(String(64), nullable=True)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSONType, nullable=False, default=dict)
    ip_address = Column(String(64), nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)

    user = relationship("User")
