"""
Pydantic validation schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from uuid import UUID

# ============================================================================
# Identity
# ============================================================================

class AuthUser(BaseModel):
    """Identity carried by a verified access token"""
    id: UUID
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def full_name(self) -> Optional[str]:
        return self.user_metadata.get("full_name")


class ProfileUpsert(BaseModel):
    role: Optional[str] = None
    full_name: Optional[str] = None


# ============================================================================
# Chambers
# ============================================================================

class ChamberCreate(BaseModel):
    name:           Optional[str] = None
    phone:          Optional[str] = None
    email:          Optional[str] = None
    website:        Optional[str] = None
    description:    Optional[str] = None
    logo_url:       Optional[str] = None
    street_address: Optional[str] = None
    city:           Optional[str] = None
    state:          Optional[str] = None
    postal_code:    Optional[str] = None
    country:        Optional[str] = None


class ChamberUpdate(BaseModel):
    name:        Optional[str] = None
    phone:       Optional[str] = None
    email:       Optional[str] = None
    website:     Optional[str] = None
    description: Optional[str] = None
    logo_url:    Optional[str] = None


class ChamberSettingsUpdate(BaseModel):
    default_hourly_rate: Optional[float]          = None
    currency:            Optional[str]            = None
    timezone:            Optional[str]            = None
    notify_new_leads:    Optional[bool]           = None
    preferences:         Optional[Dict[str, Any]] = None


class ClientCreate(BaseModel):
    email:     Optional[str] = None
    full_name: Optional[str] = None
    phone:     Optional[str] = None


# ============================================================================
# Cases
# ============================================================================

class CaseCreate(BaseModel):
    case_number:       Optional[str]      = None
    title:             Optional[str]      = None
    description:       Optional[str]      = None
    client_id:         Optional[UUID]     = None
    assigned_to:       Optional[UUID]     = None
    case_type:         Optional[str]      = None
    priority:          Optional[str]      = None
    status:            Optional[str]      = None
    filing_date:       Optional[datetime] = None
    next_hearing_date: Optional[datetime] = None
    chamber_id:        Optional[UUID]     = None


class CaseUpdate(BaseModel):
    case_number:       Optional[str]      = None
    title:             Optional[str]      = None
    description:       Optional[str]      = None
    client_id:         Optional[UUID]     = None
    case_type:         Optional[str]      = None
    priority:          Optional[str]      = None
    filing_date:       Optional[datetime] = None
    next_hearing_date: Optional[datetime] = None


class TaskCreate(BaseModel):
    title:       Optional[str]      = None
    description: Optional[str]      = None
    due_date:    Optional[datetime] = None
    priority:    Optional[str]      = None
    assigned_to: Optional[UUID]     = None


# ============================================================================
# Leads
# ============================================================================

class LeadCreate(BaseModel):
    chamber_id:  Optional[UUID] = None
    name:        Optional[str]  = None
    email:       Optional[str]  = None
    phone:       Optional[str]  = None
    source:      Optional[str]  = None
    notes:       Optional[str]  = None
    assigned_to: Optional[UUID] = None


class LeadUpdate(BaseModel):
    status:      Optional[str]  = None
    notes:       Optional[str]  = None
    assigned_to: Optional[UUID] = None


# ============================================================================
# Time entries
# ============================================================================

class TimeEntryCreate(BaseModel):
    case_id:     Optional[UUID]  = None
    description: Optional[str]   = None
    minutes:     Optional[int]   = None
    billable:    bool            = True
    rate:        Optional[float] = None


class TimeEntryUpdate(BaseModel):
    description: Optional[str]   = None
    minutes:     Optional[int]   = None
    billable:    Optional[bool]  = None
    rate:        Optional[float] = None


class TimeSummary(BaseModel):
    totalHours:    float
    billableHours: float
    totalValue:    float


# ============================================================================
# Drafting
# ============================================================================

class TemplateField(BaseModel):
    id:          str
    label:       str
    placeholder: str = ""
    type:        str = "text"


class DraftTemplate(BaseModel):
    id:          str
    title:       str
    category:    str
    description: str
    fields:      List[TemplateField]
    content:     str
