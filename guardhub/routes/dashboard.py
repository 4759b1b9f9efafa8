from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import require_capability
from ..db import get_db
from ..models.models import Incident, PatrolReport, Property, User, UserStatus
from ..schemas.crm import DashboardStats
from ..services.time_rules import day_bounds


router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(db: Session = Depends(get_db), _=Depends(require_capability("dashboard:read"))):
    start, _end = day_bounds()
    return DashboardStats(
        total_incidents=db.query(Incident).count(),
        active_patrols=db.query(PatrolReport)
        .filter(PatrolReport.status == "in_progress", PatrolReport.start_time >= start)
        .count(),
        properties_secured=db.query(Property).filter(Property.status == "active").count(),
        staff_on_duty=db.query(User).filter(User.status == UserStatus.active.value).count(),
    )
