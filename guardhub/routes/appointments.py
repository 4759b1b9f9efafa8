import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import require_capability
from ..db import get_db
from ..models.models import Appointment, User
from ..schemas.crm import AppointmentCreate, AppointmentResponse, AppointmentUpdate
from ..services.activity import record_activity
from ..services.references import check_references, clean_update, get_or_404
from ..services.time_rules import day_bounds


router = APIRouter(prefix="/api/appointments", tags=["appointments"])


@router.get("", response_model=List[AppointmentResponse])
def list_appointments(
    today: bool = False,
    assigned_officer: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    _=Depends(require_capability("appointments:read")),
):
    query = db.query(Appointment)
    if today:
        start, end = day_bounds()
        query = query.filter(Appointment.scheduled_date >= start, Appointment.scheduled_date < end)
    if assigned_officer:
        query = query.filter(Appointment.assigned_officer == assigned_officer)
    return query.order_by(Appointment.scheduled_date.asc()).all()


@router.post("", response_model=AppointmentResponse, status_code=201)
def create_appointment(
    payload: AppointmentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("appointments:write")),
):
    data = payload.dict()
    check_references(db, data)
    a = Appointment(**data)
    db.add(a)
    db.commit()
    db.refresh(a)
    record_activity(db, user, "client_contact", f"Scheduled appointment: {a.title}", "appointment", a.id)
    return a


@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: uuid.UUID,
    payload: AppointmentUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("appointments:write")),
):
    a = get_or_404(db, Appointment, appointment_id, "Appointment")
    data = clean_update(
        payload.dict(exclude_unset=True),
        required=("title", "scheduled_date"),
        defaulted=("duration", "status"),
    )
    check_references(db, data)
    for field, value in data.items():
        setattr(a, field, value)
    a.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(a)
    record_activity(db, user, "client_contact", f"Updated appointment: {a.title} ({a.status})", "appointment", a.id)
    return a
