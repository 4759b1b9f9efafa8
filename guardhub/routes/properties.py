import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import require_capability
from ..db import get_db
from ..models.models import Property, User
from ..schemas.crm import PropertyCreate, PropertyResponse, PropertyUpdate
from ..services.activity import record_activity
from ..services.references import check_references, clean_update, get_or_404


router = APIRouter(prefix="/api/properties", tags=["properties"])


@router.get("", response_model=List[PropertyResponse])
def list_properties(
    client_id: Optional[uuid.UUID] = None,
    zone: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(require_capability("properties:read")),
):
    query = db.query(Property)
    if client_id:
        query = query.filter(Property.client_id == client_id)
    if zone:
        query = query.filter(Property.zone == zone)
    return query.order_by(Property.created_at.desc()).all()


@router.get("/{property_id}", response_model=PropertyResponse)
def get_property(property_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_capability("properties:read"))):
    return get_or_404(db, Property, property_id, "Property")


@router.post("", response_model=PropertyResponse, status_code=201)
def create_property(
    payload: PropertyCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("properties:write")),
):
    data = payload.dict()
    check_references(db, data)
    p = Property(**data)
    db.add(p)
    db.commit()
    db.refresh(p)
    record_activity(db, user, "client_contact", f"Added property: {p.name}", "property", p.id)
    return p


@router.put("/{property_id}", response_model=PropertyResponse)
def update_property(
    property_id: uuid.UUID,
    payload: PropertyUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("properties:write")),
):
    p = get_or_404(db, Property, property_id, "Property")
    data = clean_update(
        payload.dict(exclude_unset=True),
        required=("name", "address"),
        defaulted=("security_level", "coverage_type", "status"),
    )
    check_references(db, data)
    for field, value in data.items():
        setattr(p, field, value)
    p.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(p)
    record_activity(db, user, "client_contact", f"Updated property: {p.name}", "property", p.id)
    return p


@router.delete("/{property_id}")
def delete_property(
    property_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("properties:delete")),
):
    p = get_or_404(db, Property, property_id, "Property")
    name = p.name
    db.delete(p)
    db.commit()
    record_activity(db, user, "client_contact", f"Removed property: {name}", "property", property_id)
    return {"message": "Property deleted successfully"}
