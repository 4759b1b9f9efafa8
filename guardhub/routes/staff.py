import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ..auth.security import find_user_by_username, require_capability
from ..auth.sessions import destroy_user_sessions
from ..db import get_db
from ..errors import ValidationError
from ..models.models import User, UserStatus
from ..schemas.auth import StaffCreate, StaffResponse, StaffStatusUpdate, StaffUpdate
from ..services.activity import record_activity
from ..services.bootstrap import create_user
from ..services.notifications import USER_REGISTERED, notify
from ..services.references import get_or_404


router = APIRouter(prefix="/api/staff", tags=["staff"])


def _email_taken(db: Session, email: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
    query = db.query(User).filter(User.email == email.strip().lower())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _set_status(db: Session, target: User, status: str) -> None:
    target.status = status
    target.updated_at = datetime.now(timezone.utc)
    db.commit()
    if status != UserStatus.active.value:
        # Existing logins die with the account
        destroy_user_sessions(db, target.id)


@router.get("", response_model=List[StaffResponse])
def list_staff(
    role: Optional[str] = None,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(require_capability("staff:read")),
):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if q:
        like = f"%{q}%"
        query = query.filter(
            (User.username.ilike(like))
            | (User.email.ilike(like))
            | (User.first_name.ilike(like))
            | (User.last_name.ilike(like))
        )
    return query.order_by(User.last_name.asc(), User.username.asc()).all()


@router.get("/active", response_model=List[StaffResponse])
def list_active_staff(db: Session = Depends(get_db), _=Depends(require_capability("staff:read"))):
    return (
        db.query(User)
        .filter(User.status == UserStatus.active.value)
        .order_by(User.last_name.asc(), User.username.asc())
        .all()
    )


@router.post("", response_model=StaffResponse, status_code=201)
def create_staff(
    payload: StaffCreate,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("staff:write")),
):
    if find_user_by_username(db, payload.username) is not None:
        raise ValidationError.for_field("username", "Username already exists", "duplicate")
    if _email_taken(db, payload.email):
        raise ValidationError.for_field("email", "Email already in use", "duplicate")
    data = payload.dict(exclude={"username", "email", "password", "role"})
    staff = create_user(
        db,
        username=payload.username,
        email=payload.email,
        password=payload.password,
        role=payload.role.value,
        **data,
    )
    record_activity(db, user, "staff", f"Registered staff member: {staff.full_name}", "user", staff.id)
    background.add_task(notify, USER_REGISTERED, {
        "username": staff.username,
        "email": staff.email,
        "role": staff.role,
        "created_at": staff.created_at,
    })
    return staff


@router.patch("/{user_id}", response_model=StaffResponse)
def update_staff(
    user_id: uuid.UUID,
    payload: StaffUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("staff:write")),
):
    target = get_or_404(db, User, user_id, "Staff member")
    data = payload.dict(exclude_unset=True)
    if "email" in data:
        if data["email"] is None:
            raise ValidationError.for_field("email", "email cannot be empty")
        if _email_taken(db, data["email"], exclude_id=target.id):
            raise ValidationError.for_field("email", "Email already in use", "duplicate")
        data["email"] = data["email"].strip().lower()
    if "role" in data:
        if data["role"] is None:
            data.pop("role")
        else:
            data["role"] = data["role"].value
    for field, value in data.items():
        setattr(target, field, value)
    target.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(target)
    record_activity(db, user, "staff", f"Updated staff member: {target.full_name}", "user", target.id)
    return target


@router.patch("/{user_id}/status", response_model=StaffResponse)
def update_staff_status(
    user_id: uuid.UUID,
    payload: StaffStatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("staff:status")),
):
    target = get_or_404(db, User, user_id, "Staff member")
    if target.id == user.id and payload.status != UserStatus.active:
        raise ValidationError.for_field("status", "You cannot deactivate your own account")
    _set_status(db, target, payload.status.value)
    db.refresh(target)
    record_activity(db, user, "staff", f"Set {target.full_name} to {target.status}", "user", target.id)
    return target


@router.delete("/{user_id}")
def deactivate_staff(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability("staff:write")),
):
    target = get_or_404(db, User, user_id, "Staff member")
    if target.id == user.id:
        raise ValidationError.for_field("user_id", "You cannot deactivate your own account")
    _set_status(db, target, UserStatus.inactive.value)
    record_activity(db, user, "staff", f"Deactivated staff member: {target.full_name}", "user", target.id)
    return {"message": "Staff member deactivated"}
