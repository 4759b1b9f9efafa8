import uuid
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


ClientStatus = Literal["active", "inactive", "pending"]
Severity = Literal["low", "medium", "high", "critical"]
IncidentStatus = Literal["open", "investigating", "resolved", "closed"]
PatrolStatus = Literal["in_progress", "completed", "reviewed"]
AppointmentStatus = Literal["scheduled", "confirmed", "completed", "cancelled"]
RecordType = Literal["invoice", "payment", "expense"]


class _Trimmed(BaseModel):
    @field_validator("*", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


# ---- Clients ----

class ClientBase(_Trimmed):
    name: str = Field(min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    contract_start: Optional[date] = None
    contract_end: Optional[date] = None
    notes: Optional[str] = None


class ClientCreate(ClientBase):
    status: ClientStatus = "active"


class ClientUpdate(_Trimmed):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    contract_start: Optional[date] = None
    contract_end: Optional[date] = None
    status: Optional[ClientStatus] = None
    notes: Optional[str] = None


class ClientResponse(ClientBase):
    id: uuid.UUID
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Properties ----

class PropertyBase(_Trimmed):
    client_id: Optional[uuid.UUID] = None
    name: str = Field(min_length=1, max_length=255)
    address: str = Field(min_length=1, max_length=500)
    property_type: Optional[str] = None
    zone: Optional[str] = None
    access_codes: Optional[str] = None
    special_instructions: Optional[str] = None
    coordinates: Optional[str] = None


class PropertyCreate(PropertyBase):
    security_level: str = "standard"
    coverage_type: str = "patrol"
    status: str = "active"


class PropertyUpdate(_Trimmed):
    client_id: Optional[uuid.UUID] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    address: Optional[str] = Field(default=None, min_length=1, max_length=500)
    property_type: Optional[str] = None
    zone: Optional[str] = None
    security_level: Optional[str] = None
    access_codes: Optional[str] = None
    special_instructions: Optional[str] = None
    coordinates: Optional[str] = None
    coverage_type: Optional[str] = None
    status: Optional[str] = None


class PropertyResponse(PropertyBase):
    id: uuid.UUID
    security_level: str
    coverage_type: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Incidents ----

class IncidentCreate(_Trimmed):
    property_id: Optional[uuid.UUID] = None
    incident_type: str = Field(min_length=1, max_length=100)
    severity: Severity = "medium"
    description: str = Field(min_length=1)
    location: Optional[str] = None
    coordinates: Optional[str] = None
    status: IncidentStatus = "open"
    photo_urls: Optional[List[str]] = None
    police_reported: bool = False
    police_report_number: Optional[str] = None
    occurred_at: Optional[datetime] = None


class IncidentUpdate(_Trimmed):
    property_id: Optional[uuid.UUID] = None
    incident_type: Optional[str] = Field(default=None, min_length=1, max_length=100)
    severity: Optional[Severity] = None
    description: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = None
    coordinates: Optional[str] = None
    status: Optional[IncidentStatus] = None
    photo_urls: Optional[List[str]] = None
    police_reported: Optional[bool] = None
    police_report_number: Optional[str] = None
    occurred_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None


class IncidentResponse(BaseModel):
    id: uuid.UUID
    property_id: Optional[uuid.UUID] = None
    reported_by: Optional[uuid.UUID] = None
    incident_type: str
    severity: str
    description: str
    location: Optional[str] = None
    coordinates: Optional[str] = None
    status: str
    photo_urls: Optional[List[str]] = None
    police_reported: bool = False
    police_report_number: Optional[str] = None
    occurred_at: datetime
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Patrol reports ----

class PatrolReportCreate(_Trimmed):
    property_id: Optional[uuid.UUID] = None
    shift_type: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    checkpoints: Optional[List[str]] = None
    incidents_reported: int = Field(default=0, ge=0)
    summary: str = Field(min_length=1)
    photo_urls: Optional[List[str]] = None
    weather_conditions: Optional[str] = None
    vehicle_used: Optional[str] = None
    mileage: Optional[int] = Field(default=None, ge=0)
    status: Literal["in_progress", "completed"] = "in_progress"


class PatrolReportUpdate(_Trimmed):
    property_id: Optional[uuid.UUID] = None
    shift_type: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    checkpoints: Optional[List[str]] = None
    incidents_reported: Optional[int] = Field(default=None, ge=0)
    summary: Optional[str] = Field(default=None, min_length=1)
    photo_urls: Optional[List[str]] = None
    weather_conditions: Optional[str] = None
    vehicle_used: Optional[str] = None
    mileage: Optional[int] = Field(default=None, ge=0)
    status: Optional[Literal["in_progress", "completed"]] = None


class PatrolReportResponse(BaseModel):
    id: uuid.UUID
    officer_id: Optional[uuid.UUID] = None
    property_id: Optional[uuid.UUID] = None
    shift_type: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    checkpoints: Optional[List[str]] = None
    incidents_reported: int = 0
    summary: str
    photo_urls: Optional[List[str]] = None
    weather_conditions: Optional[str] = None
    vehicle_used: Optional[str] = None
    mileage: Optional[int] = None
    status: str
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Appointments ----

class AppointmentCreate(_Trimmed):
    client_id: Optional[uuid.UUID] = None
    property_id: Optional[uuid.UUID] = None
    assigned_officer: Optional[uuid.UUID] = None
    appointment_type: Optional[str] = None
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    scheduled_date: datetime
    duration: int = Field(default=60, gt=0)
    status: AppointmentStatus = "scheduled"
    location: Optional[str] = None
    notes: Optional[str] = None


class AppointmentUpdate(_Trimmed):
    client_id: Optional[uuid.UUID] = None
    property_id: Optional[uuid.UUID] = None
    assigned_officer: Optional[uuid.UUID] = None
    appointment_type: Optional[str] = None
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, gt=0)
    status: Optional[AppointmentStatus] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class AppointmentResponse(AppointmentCreate):
    id: uuid.UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Accounting ----

class FinancialRecordCreate(_Trimmed):
    client_id: Optional[uuid.UUID] = None
    record_type: RecordType
    amount: float = Field(gt=0)
    description: str = Field(min_length=1)
    category: Optional[str] = None
    tax_category: Optional[str] = None
    transaction_date: date
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    status: str = "pending"
    notes: Optional[str] = None


class FinancialRecordResponse(FinancialRecordCreate):
    id: uuid.UUID
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FinancialSummary(BaseModel):
    total_revenue: float
    total_expenses: float
    net_profit: float
    monthly_revenue: float
    monthly_expenses: float


# ---- Activity feed ----

class ActivityResponse(BaseModel):
    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    activity_type: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    description: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Evidence / uploads ----

class EvidenceCreate(_Trimmed):
    entity_type: Literal["incident", "patrol_report", "property"] = "incident"
    entity_id: uuid.UUID
    file_name: str = Field(min_length=1, max_length=255)
    file_url: str = Field(min_length=1, max_length=1024)
    file_type: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)


class FileUploadResponse(BaseModel):
    id: uuid.UUID
    entity_type: str
    entity_id: uuid.UUID
    file_name: str
    file_url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Reference material ----

class CommunityResourceCreate(_Trimmed):
    name: str = Field(min_length=1, max_length=255)
    type: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    hours: Optional[str] = None
    services: Optional[List[str]] = None
    status: str = "active"


class CommunityResourceResponse(CommunityResourceCreate):
    id: uuid.UUID
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LawReferenceCreate(_Trimmed):
    title: str = Field(min_length=1, max_length=255)
    category: str = Field(min_length=1, max_length=100)
    code: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    full_text: Optional[str] = None
    penalties: Optional[str] = None
    related_codes: Optional[List[str]] = None


class LawReferenceResponse(LawReferenceCreate):
    id: uuid.UUID
    last_updated: Optional[datetime] = None

    class Config:
        from_attributes = True


class DashboardStats(BaseModel):
    total_incidents: int
    active_patrols: int
    properties_secured: int
    staff_on_duty: int
