"""
Server-side session store.

The cookie carries an opaque random token; the ``sessions`` table is keyed by
the token's SHA-256 digest so a leaked table cannot be replayed as cookies.
"""
import hashlib
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy.orm import Session as DbSession

from ..config import settings
from ..models.models import Session, User


log = structlog.get_logger()

# token_urlsafe(32) yields 43 url-safe base64 characters
_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]{32,128}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def is_well_formed(token: Optional[str]) -> bool:
    return bool(token) and bool(_TOKEN_RE.match(token))


def create_session(
    db: DbSession,
    user: User,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
    ttl_seconds: Optional[int] = None,
) -> str:
    """Persist a new session for ``user`` and return the cookie token."""
    token = secrets.token_urlsafe(32)
    now = _utcnow()
    ttl = settings.session_ttl_seconds if ttl_seconds is None else ttl_seconds
    row = Session(
        id=hash_token(token),
        user_id=user.id,
        payload={"user_id": str(user.id)},
        created_at=now,
        expires_at=now + timedelta(seconds=ttl),
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
    )
    db.add(row)
    db.commit()
    return token


def resolve_session(db: DbSession, token: Optional[str]) -> Optional[Session]:
    """Return the live session for ``token``; expired rows are purged and treated as absent."""
    if not is_well_formed(token):
        return None
    row = db.get(Session, hash_token(token))
    if row is None:
        return None
    if _aware(row.expires_at) <= _utcnow():
        db.delete(row)
        db.commit()
        return None
    return row


def destroy_session(db: DbSession, token: Optional[str]) -> None:
    if not is_well_formed(token):
        return
    db.query(Session).filter(Session.id == hash_token(token)).delete(synchronize_session=False)
    db.commit()


def destroy_user_sessions(db: DbSession, user_id) -> int:
    count = db.query(Session).filter(Session.user_id == user_id).delete(synchronize_session=False)
    db.commit()
    return int(count)


def purge_expired_sessions(db: DbSession) -> int:
    count = db.query(Session).filter(Session.expires_at <= _utcnow()).delete(synchronize_session=False)
    db.commit()
    if count:
        log.info("sessions_purged", count=int(count))
    return int(count)


def session_user_id(row: Session) -> Optional[str]:
    return (row.payload or {}).get("user_id")
