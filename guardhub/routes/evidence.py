import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import require_capability
from ..db import get_db
from ..errors import ValidationError
from ..models.models import FileUpload, Incident, PatrolReport, Property, User
from ..schemas.crm import EvidenceCreate, FileUploadResponse
from ..services.activity import record_activity


router = APIRouter(prefix="/api", tags=["evidence"])

# entity_type -> model the upload hangs off
ATTACHABLE = {
    "incident": Incident,
    "patrol_report": PatrolReport,
    "property": Property,
}


@router.get("/evidence", response_model=List[FileUploadResponse])
def list_evidence(
    entity_type: Optional[str] = None,
    limit: int = 100,
    db: Session = Depends(get_db),
    _=Depends(require_capability("evidence:read")),
):
    query = db.query(FileUpload)
    if entity_type:
        query = query.filter(FileUpload.entity_type == entity_type)
    limit = min(max(1, limit), 500)
    return query.order_by(FileUpload.created_at.desc()).limit(limit).all()


@router.post("/evidence", response_model=FileUploadResponse, status_code=201)
def create_evidence(
    payload: EvidenceCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("evidence:write")),
):
    model = ATTACHABLE[payload.entity_type]
    if db.get(model, payload.entity_id) is None:
        raise ValidationError.for_field(
            "entity_id", f"{model.__name__} {payload.entity_id} does not exist", "reference_not_found"
        )
    f = FileUpload(uploaded_by=user.id, **payload.dict())
    db.add(f)
    db.commit()
    db.refresh(f)
    record_activity(
        db, user, "report", f"Attached evidence: {f.file_name}", payload.entity_type, payload.entity_id
    )
    return f


@router.get("/files/{entity_type}/{entity_id}", response_model=List[FileUploadResponse])
def list_entity_files(
    entity_type: str,
    entity_id: uuid.UUID,
    db: Session = Depends(get_db),
    _=Depends(require_capability("evidence:read")),
):
    return (
        db.query(FileUpload)
        .filter(FileUpload.entity_type == entity_type, FileUpload.entity_id == entity_id)
        .order_by(FileUpload.created_at.desc())
        .all()
    )
