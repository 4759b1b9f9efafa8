import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ..auth.security import require_capability
from ..db import get_db
from ..models.models import Incident, Property, User
from ..schemas.crm import IncidentCreate, IncidentResponse, IncidentUpdate
from ..services.activity import record_activity
from ..services.notifications import INCIDENT_CREATED, notify
from ..services.references import check_references, clean_update, get_or_404


router = APIRouter(prefix="/api/incidents", tags=["incidents"])

CLOSED_STATUSES = ("resolved", "closed")


def _notification_payload(db: Session, inc: Incident, reporter: User) -> dict:
    location = inc.location
    if not location and inc.property_id:
        prop = db.get(Property, inc.property_id)
        location = prop.name if prop else None
    return {
        "incident_type": inc.incident_type,
        "location": location,
        "description": inc.description,
        "severity": inc.severity,
        "reported_by": reporter.full_name,
        "occurred_at": inc.occurred_at,
    }


@router.get("", response_model=List[IncidentResponse])
def list_incidents(
    recent: bool = False,
    status: Optional[str] = None,
    property_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    _=Depends(require_capability("incidents:read")),
):
    query = db.query(Incident)
    if recent:
        since = datetime.now(timezone.utc) - timedelta(hours=24)
        query = query.filter(Incident.created_at >= since)
    if status:
        query = query.filter(Incident.status == status)
    if property_id:
        query = query.filter(Incident.property_id == property_id)
    return query.order_by(Incident.created_at.desc()).all()


@router.get("/{incident_id}", response_model=IncidentResponse)
def get_incident(incident_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_capability("incidents:read"))):
    return get_or_404(db, Incident, incident_id, "Incident")


@router.post("", response_model=IncidentResponse, status_code=201)
def create_incident(
    payload: IncidentCreate,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("incidents:write")),
):
    data = payload.dict()
    check_references(db, data)
    if data.get("occurred_at") is None:
        data["occurred_at"] = datetime.now(timezone.utc)
    if data["status"] in CLOSED_STATUSES:
        data["resolved_at"] = datetime.now(timezone.utc)
    inc = Incident(reported_by=user.id, **data)
    db.add(inc)
    db.commit()
    db.refresh(inc)
    record_activity(
        db, user, "incident",
        f"Reported {inc.severity} severity incident: {inc.incident_type}",
        "incident", inc.id,
    )
    background.add_task(notify, INCIDENT_CREATED, _notification_payload(db, inc, user))
    return inc


@router.put("/{incident_id}", response_model=IncidentResponse)
def update_incident(
    incident_id: uuid.UUID,
    payload: IncidentUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("incidents:write")),
):
    inc = get_or_404(db, Incident, incident_id, "Incident")
    data = clean_update(
        payload.dict(exclude_unset=True),
        required=("incident_type", "description"),
        defaulted=("severity", "status", "police_reported", "occurred_at"),
    )
    check_references(db, data)
    resolving = data.get("status") in CLOSED_STATUSES and inc.status not in CLOSED_STATUSES
    for field, value in data.items():
        setattr(inc, field, value)
    if resolving and inc.resolved_at is None:
        inc.resolved_at = datetime.now(timezone.utc)
    inc.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(inc)
    record_activity(db, user, "incident", f"Updated incident: {inc.incident_type} ({inc.status})", "incident", inc.id)
    return inc
