from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth.security import require_capability
from ..db import get_db
from ..models.models import FinancialRecord, User
from ..schemas.crm import FinancialRecordCreate, FinancialRecordResponse, FinancialSummary
from ..services.activity import record_activity
from ..services.references import check_references
from ..services.time_rules import month_start


router = APIRouter(prefix="/api/financial", tags=["financial"])


def _total(db: Session, record_type: str, since=None) -> float:
    query = db.query(func.coalesce(func.sum(FinancialRecord.amount), 0)).filter(
        FinancialRecord.record_type == record_type
    )
    if since is not None:
        query = query.filter(FinancialRecord.transaction_date >= since)
    return round(float(query.scalar() or 0), 2)


def financial_summary(db: Session) -> FinancialSummary:
    """Revenue counts payments received; invoices are receivables, not revenue."""
    revenue = _total(db, "payment")
    expenses = _total(db, "expense")
    since = month_start()
    return FinancialSummary(
        total_revenue=revenue,
        total_expenses=expenses,
        net_profit=round(revenue - expenses, 2),
        monthly_revenue=_total(db, "payment", since),
        monthly_expenses=_total(db, "expense", since),
    )


@router.get("/summary", response_model=FinancialSummary)
def get_summary(db: Session = Depends(get_db), _=Depends(require_capability("financial:read"))):
    return financial_summary(db)


@router.get("/records", response_model=List[FinancialRecordResponse])
def list_records(
    record_type: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(require_capability("financial:read")),
):
    query = db.query(FinancialRecord)
    if record_type:
        query = query.filter(FinancialRecord.record_type == record_type)
    return query.order_by(FinancialRecord.transaction_date.desc(), FinancialRecord.created_at.desc()).all()


@router.post("/records", response_model=FinancialRecordResponse, status_code=201)
def create_record(
    payload: FinancialRecordCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("financial:write")),
):
    data = payload.dict()
    check_references(db, data)
    rec = FinancialRecord(**data)
    db.add(rec)
    db.commit()
    db.refresh(rec)
    record_activity(db, user, "report", f"Recorded {rec.record_type}: {rec.description}", "financial_record", rec.id)
    return rec
