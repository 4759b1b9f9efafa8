import enum
import uuid
from datetime import datetime, date, timezone
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    JSON,
    Boolean,
    Text,
    Index,
    func,
)
from sqlalchemy.types import TypeDecorator
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship, Mapped, mapped_column

from ..db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timestamp stored as UTC.

    Aware values are converted to UTC before binding and naive values are taken
    as UTC already; results always come back aware. SQLite drops the offset, so
    storing anything but UTC would shift the instant.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def uuid_pk() -> Mapped[uuid.UUID]:
    return mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)


def user_fk(ondelete: str = "SET NULL") -> Mapped[Optional[uuid.UUID]]:
    return mapped_column(UUID(as_uuid=True), ForeignKey("users.id", ondelete=ondelete), index=True)


class UserRole(str, enum.Enum):
    admin = "admin"
    supervisor = "supervisor"
    security_officer = "security_officer"


class UserStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    on_leave = "on_leave"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = uuid_pk()
    # Stored lower-cased; login lookups are case-insensitive
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    role: Mapped[str] = mapped_column(String(50), nullable=False, default=UserRole.security_officer.value)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default=UserStatus.active.value)
    zone: Mapped[Optional[str]] = mapped_column(String(100))
    shift: Mapped[Optional[str]] = mapped_column(String(50))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    profile_image_url: Mapped[Optional[str]] = mapped_column(String(1024))
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())
    last_login_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())

    sessions = relationship("Session", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.active.value

    @property
    def full_name(self) -> str:
        return " ".join(x for x in [self.first_name, self.last_name] if x) or self.username


Index("uq_users_username_lower", func.lower(User.username), unique=True)


class Session(Base):
    """Server-side login session. The primary key is the SHA-256 digest of the cookie token."""
    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), index=True)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    user_agent: Mapped[Optional[str]] = mapped_column(String(512))
    ip_address: Mapped[Optional[str]] = mapped_column(String(64))

    user = relationship("User", back_populates="sessions")


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[uuid.UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    company: Mapped[Optional[str]] = mapped_column(String(255))
    address: Mapped[Optional[str]] = mapped_column(String(500))
    contact_person: Mapped[Optional[str]] = mapped_column(String(255))
    contract_start: Mapped[Optional[date]] = mapped_column(Date)
    contract_end: Mapped[Optional[date]] = mapped_column(Date)
    status: Mapped[str] = mapped_column(String(50), default="active")  # active|inactive|pending
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())

    properties = relationship("Property", back_populates="client", passive_deletes=True)


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = uuid_pk()
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    property_type: Mapped[Optional[str]] = mapped_column(String(100))
    zone: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    security_level: Mapped[str] = mapped_column(String(50), default="standard")
    access_codes: Mapped[Optional[str]] = mapped_column(String(500))
    special_instructions: Mapped[Optional[str]] = mapped_column(Text)
    coordinates: Mapped[Optional[str]] = mapped_column(String(100))
    coverage_type: Mapped[str] = mapped_column(String(50), default="patrol")
    status: Mapped[str] = mapped_column(String(50), default="active")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())

    client = relationship("Client", back_populates="properties")


class Incident(Base):
    __tablename__ = "incidents"

    id: Mapped[uuid.UUID] = uuid_pk()
    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("properties.id", ondelete="SET NULL"), index=True)
    reported_by: Mapped[Optional[uuid.UUID]] = user_fk()
    incident_type: Mapped[str] = mapped_column(String(100), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), default="medium")  # low|medium|high|critical
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(500))
    coordinates: Mapped[Optional[str]] = mapped_column(String(100))
    status: Mapped[str] = mapped_column(String(20), default="open")  # open|investigating|resolved|closed
    photo_urls: Mapped[Optional[list]] = mapped_column(JSON)
    police_reported: Mapped[bool] = mapped_column(Boolean, default=False)
    police_report_number: Mapped[Optional[str]] = mapped_column(String(100))
    occurred_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, index=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())

    property = relationship("Property")
    reporter = relationship("User")


class PatrolReport(Base):
    __tablename__ = "patrol_reports"

    id: Mapped[uuid.UUID] = uuid_pk()
    officer_id: Mapped[Optional[uuid.UUID]] = user_fk()
    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("properties.id", ondelete="SET NULL"), index=True)
    shift_type: Mapped[Optional[str]] = mapped_column(String(50))
    start_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    end_time: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())
    checkpoints: Mapped[Optional[list]] = mapped_column(JSON)
    incidents_reported: Mapped[int] = mapped_column(Integer, default=0)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    photo_urls: Mapped[Optional[list]] = mapped_column(JSON)
    weather_conditions: Mapped[Optional[str]] = mapped_column(String(100))
    vehicle_used: Mapped[Optional[str]] = mapped_column(String(100))
    mileage: Mapped[Optional[int]] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(20), default="in_progress")  # in_progress|completed|reviewed
    reviewed_by: Mapped[Optional[uuid.UUID]] = user_fk()
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, index=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())

    property = relationship("Property")
    officer = relationship("User", foreign_keys=[officer_id])


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[uuid.UUID] = uuid_pk()
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), index=True)
    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("properties.id", ondelete="SET NULL"), index=True)
    assigned_officer: Mapped[Optional[uuid.UUID]] = user_fk()
    appointment_type: Mapped[Optional[str]] = mapped_column(String(100))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    scheduled_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
    duration: Mapped[int] = mapped_column(Integer, default=60)  # minutes
    status: Mapped[str] = mapped_column(String(20), default="scheduled")
    location: Mapped[Optional[str]] = mapped_column(String(500))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())


class Activity(Base):
    """Append-only feed of actions taken by users"""
    __tablename__ = "activities"

    id: Mapped[uuid.UUID] = uuid_pk()
    user_id: Mapped[Optional[uuid.UUID]] = user_fk()
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False)  # incident|patrol|report|client_contact|staff
    entity_type: Mapped[Optional[str]] = mapped_column(String(50))
    entity_id: Mapped[Optional[str]] = mapped_column(String(64))
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, index=True)

    __table_args__ = (
        Index("idx_activity_entity", "entity_type", "entity_id"),
    )


class FinancialRecord(Base):
    __tablename__ = "financial_records"

    id: Mapped[uuid.UUID] = uuid_pk()
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), index=True)
    record_type: Mapped[str] = mapped_column(String(20), nullable=False)  # invoice|payment|expense
    amount: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100))
    tax_category: Mapped[Optional[str]] = mapped_column(String(100))
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(String(50))
    reference_number: Mapped[Optional[str]] = mapped_column(String(100))
    status: Mapped[str] = mapped_column(String(20), default="pending")
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())


class FileUpload(Base):
    __tablename__ = "file_uploads"

    id: Mapped[uuid.UUID] = uuid_pk()
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)  # incident|patrol_report|property
    entity_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_type: Mapped[Optional[str]] = mapped_column(String(100))
    file_size: Mapped[Optional[int]] = mapped_column(Integer)
    uploaded_by: Mapped[Optional[uuid.UUID]] = user_fk()
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    uploader = relationship("User")

    __table_args__ = (
        Index("idx_file_uploads_entity", "entity_type", "entity_id"),
    )


class CommunityResource(Base):
    __tablename__ = "community_resources"

    id: Mapped[uuid.UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    address: Mapped[Optional[str]] = mapped_column(String(500))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    website: Mapped[Optional[str]] = mapped_column(String(500))
    hours: Mapped[Optional[str]] = mapped_column(String(255))
    services: Mapped[Optional[list]] = mapped_column(JSON)
    status: Mapped[str] = mapped_column(String(20), default="active")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)


class LawReference(Base):
    __tablename__ = "law_references"

    id: Mapped[uuid.UUID] = uuid_pk()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    full_text: Mapped[Optional[str]] = mapped_column(Text)
    penalties: Mapped[Optional[str]] = mapped_column(Text)
    related_codes: Mapped[Optional[list]] = mapped_column(JSON)
    last_updated: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
