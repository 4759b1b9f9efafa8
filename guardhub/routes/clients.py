import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import require_capability
from ..db import get_db
from ..errors import ValidationError
from ..models.models import Client, User
from ..schemas.crm import ClientCreate, ClientResponse, ClientUpdate
from ..services.activity import record_activity
from ..services.references import clean_update, get_or_404


router = APIRouter(prefix="/api/clients", tags=["clients"])


def _check_contract_dates(data: dict, current: Optional[Client] = None) -> None:
    start = data.get("contract_start", current.contract_start if current else None)
    end = data.get("contract_end", current.contract_end if current else None)
    if start and end and end < start:
        raise ValidationError.for_field("contract_end", "Contract end must not be before contract start")


@router.get("", response_model=List[ClientResponse])
def list_clients(
    status: Optional[str] = None,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(require_capability("clients:read")),
):
    query = db.query(Client)
    if status:
        query = query.filter(Client.status == status)
    if q:
        like = f"%{q}%"
        query = query.filter(
            (Client.name.ilike(like)) | (Client.company.ilike(like)) | (Client.email.ilike(like))
        )
    return query.order_by(Client.created_at.desc()).all()


@router.get("/{client_id}", response_model=ClientResponse)
def get_client(client_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(require_capability("clients:read"))):
    return get_or_404(db, Client, client_id, "Client")


@router.post("", response_model=ClientResponse, status_code=201)
def create_client(
    payload: ClientCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("clients:write")),
):
    data = payload.dict()
    _check_contract_dates(data)
    c = Client(**data)
    db.add(c)
    db.commit()
    db.refresh(c)
    record_activity(db, user, "client_contact", f"Created new client: {c.name}", "client", c.id)
    return c


@router.put("/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: uuid.UUID,
    payload: ClientUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("clients:write")),
):
    c = get_or_404(db, Client, client_id, "Client")
    data = clean_update(payload.dict(exclude_unset=True), required=("name",), defaulted=("status",))
    _check_contract_dates(data, c)
    for field, value in data.items():
        setattr(c, field, value)
    c.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(c)
    record_activity(db, user, "client_contact", f"Updated client: {c.name}", "client", c.id)
    return c


@router.delete("/{client_id}")
def delete_client(
    client_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("clients:delete")),
):
    c = get_or_404(db, Client, client_id, "Client")
    name = c.name
    db.delete(c)
    db.commit()
    record_activity(db, user, "client_contact", f"Deleted client: {name}", "client", client_id)
    return {"message": "Client deleted successfully"}
