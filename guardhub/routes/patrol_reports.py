import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ..auth.capabilities import has_capability
from ..auth.security import require_capability
from ..db import get_db
from ..errors import Forbidden, ValidationError
from ..models.models import PatrolReport, Property, User
from ..schemas.crm import PatrolReportCreate, PatrolReportResponse, PatrolReportUpdate
from ..services.activity import record_activity
from ..services.notifications import PATROL_REPORT_SUBMITTED, notify
from ..services.references import check_references, clean_update, get_or_404
from ..services.time_rules import day_bounds


router = APIRouter(prefix="/api/patrol-reports", tags=["patrol-reports"])


def _check_times(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start and end:
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        if end < start:
            raise ValidationError.for_field("end_time", "End time must not be before start time")


@router.get("", response_model=List[PatrolReportResponse])
def list_patrol_reports(
    today: bool = False,
    officer_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(require_capability("patrol_reports:read")),
):
    query = db.query(PatrolReport)
    if today:
        start, end = day_bounds()
        query = query.filter(PatrolReport.created_at >= start, PatrolReport.created_at < end)
    if officer_id:
        query = query.filter(PatrolReport.officer_id == officer_id)
    if status:
        query = query.filter(PatrolReport.status == status)
    return query.order_by(PatrolReport.created_at.desc()).all()


@router.get("/{report_id}", response_model=PatrolReportResponse)
def get_patrol_report(report_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_capability("patrol_reports:read"))):
    return get_or_404(db, PatrolReport, report_id, "Patrol report")


@router.post("", response_model=PatrolReportResponse, status_code=201)
def create_patrol_report(
    payload: PatrolReportCreate,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("patrol_reports:write")),
):
    data = payload.dict()
    check_references(db, data)
    if data.get("start_time") is None:
        data["start_time"] = datetime.now(timezone.utc)
    _check_times(data["start_time"], data.get("end_time"))
    r = PatrolReport(officer_id=user.id, **data)
    db.add(r)
    db.commit()
    db.refresh(r)
    prop = db.get(Property, r.property_id) if r.property_id else None
    record_activity(
        db, user, "patrol",
        f"Submitted patrol report{' for ' + prop.name if prop else ''}",
        "patrol_report", r.id,
    )
    background.add_task(notify, PATROL_REPORT_SUBMITTED, {
        "officer": user.full_name,
        "property": prop.name if prop else None,
        "checkpoints": r.checkpoints or [],
        "summary": r.summary,
        "start_time": r.start_time,
    })
    return r


@router.put("/{report_id}", response_model=PatrolReportResponse)
def update_patrol_report(
    report_id: uuid.UUID,
    payload: PatrolReportUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("patrol_reports:write")),
):
    r = get_or_404(db, PatrolReport, report_id, "Patrol report")
    # Officers edit their own reports; reviewers may edit any
    if r.officer_id != user.id and not has_capability(user.role, "patrol_reports:review"):
        raise Forbidden()
    if r.status == "reviewed":
        raise ValidationError.for_field("status", "Reviewed reports can no longer be edited")
    data = clean_update(
        payload.dict(exclude_unset=True),
        required=("summary",),
        defaulted=("start_time", "status", "incidents_reported"),
    )
    check_references(db, data)
    _check_times(data.get("start_time", r.start_time), data.get("end_time", r.end_time))
    for field, value in data.items():
        setattr(r, field, value)
    r.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(r)
    record_activity(db, user, "patrol", "Updated patrol report", "patrol_report", r.id)
    return r


@router.post("/{report_id}/review", response_model=PatrolReportResponse)
def review_patrol_report(
    report_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("patrol_reports:review")),
):
    r = get_or_404(db, PatrolReport, report_id, "Patrol report")
    r.status = "reviewed"
    r.reviewed_by = user.id
    r.reviewed_at = datetime.now(timezone.utc)
    r.updated_at = r.reviewed_at
    db.commit()
    db.refresh(r)
    record_activity(db, user, "report", "Reviewed patrol report", "patrol_report", r.id)
    return r
