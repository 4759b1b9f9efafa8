import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import Depends, Request
from passlib.context import CryptContext
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..errors import Forbidden, InvalidCredentials, Unauthenticated
from ..models.models import User
from . import sessions
from .capabilities import roles_for


log = structlog.get_logger()

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Verified against when the username is unknown so both failure paths cost one hash
_DUMMY_HASH = pwd_context.hash("guardhub-timing-equalizer")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        # Unrecognized or corrupt hash
        return False


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


def find_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.username) == normalize_username(username)).first()


def verify_credentials(db: Session, username: str, password: str) -> User:
    """
    Check a username/password pair.

    Unknown usernames, inactive accounts and wrong passwords all raise the same
    InvalidCredentials so callers cannot tell which accounts exist.
    """
    if not username or not password:
        raise InvalidCredentials()
    user = find_user_by_username(db, username)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    if not user.is_active:
        raise InvalidCredentials()
    return user


def session_token_from(request: Request) -> Optional[str]:
    return request.cookies.get(settings.session_cookie_name)


def _load_user(db: Session, user_id_raw) -> Optional[User]:
    try:
        user_uuid = uuid.UUID(str(user_id_raw))
    except (TypeError, ValueError):
        return None
    return db.get(User, user_uuid)


def resolve_user(db: Session, token: Optional[str]) -> Optional[User]:
    """Map a session token to an active user, dropping sessions whose account is gone or disabled."""
    row = sessions.resolve_session(db, token)
    if row is None:
        return None
    user = _load_user(db, sessions.session_user_id(row))
    if user is None or not user.is_active:
        log.info("session_rejected", reason="user_inactive_or_missing")
        sessions.destroy_session(db, token)
        return None
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    user = resolve_user(db, session_token_from(request))
    if user is None:
        raise Unauthenticated()
    request.state.user = user
    structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return user


def require_roles(*allowed_roles: str):
    allowed = frozenset(allowed_roles)

    def _dep(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            log.info("access_forbidden", role=user.role, required=sorted(allowed))
            raise Forbidden()
        return user

    return _dep


def require_capability(capability: str):
    """Guard a route with a named capability from the capability matrix."""
    return require_roles(*roles_for(capability))


def mark_login(db: Session, user: User) -> None:
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
