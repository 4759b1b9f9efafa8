"""Reference material: community resources and the law library."""
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import require_capability
from ..db import get_db
from ..models.models import CommunityResource, LawReference
from ..schemas.crm import (
    CommunityResourceCreate,
    CommunityResourceResponse,
    LawReferenceCreate,
    LawReferenceResponse,
)


router = APIRouter(prefix="/api", tags=["reference"])


@router.get("/community", response_model=List[CommunityResourceResponse])
def list_community_resources(
    type: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(require_capability("community:read")),
):
    query = db.query(CommunityResource)
    if type:
        query = query.filter(CommunityResource.type == type)
    return query.order_by(CommunityResource.name.asc()).all()


@router.post("/community", response_model=CommunityResourceResponse, status_code=201)
def create_community_resource(
    payload: CommunityResourceCreate,
    db: Session = Depends(get_db),
    _=Depends(require_capability("community:write")),
):
    r = CommunityResource(**payload.dict())
    db.add(r)
    db.commit()
    db.refresh(r)
    return r


@router.get("/law", response_model=List[LawReferenceResponse])
def list_law_references(
    search: Optional[str] = None,
    category: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(require_capability("law:read")),
):
    query = db.query(LawReference)
    if category:
        query = query.filter(LawReference.category == category)
    if search:
        like = f"%{search}%"
        query = query.filter(
            (LawReference.title.ilike(like))
            | (LawReference.code.ilike(like))
            | (LawReference.description.ilike(like))
        )
    return query.order_by(LawReference.code.asc()).all()


@router.post("/law", response_model=LawReferenceResponse, status_code=201)
def create_law_reference(
    payload: LawReferenceCreate,
    db: Session = Depends(get_db),
    _=Depends(require_capability("law:write")),
):
    r = LawReference(**payload.dict())
    db.add(r)
    db.commit()
    db.refresh(r)
    return r
