from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import require_capability
from ..db import get_db
from ..schemas.crm import ActivityResponse
from ..services.activity import list_activities


router = APIRouter(prefix="/api/activities", tags=["activities"])


@router.get("", response_model=List[ActivityResponse])
def get_activities(limit: int = 50, db: Session = Depends(get_db), _=Depends(require_capability("activities:read"))):
    return list_activities(db, limit)
