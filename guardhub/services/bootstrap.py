"""
Startup tasks: table creation, expired-session cleanup and the bootstrap admin.
"""
from typing import Optional

import structlog
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ..auth.security import find_user_by_username, get_password_hash, normalize_username
from ..auth.sessions import purge_expired_sessions
from ..config import settings
from ..db import Base
from ..models.models import User, UserRole, UserStatus


log = structlog.get_logger()


def ensure_tables(engine: Engine) -> None:
    existing = set(inspect(engine).get_table_names())
    missing = set(Base.metadata.tables.keys()) - existing
    if missing:
        log.info("creating_tables", count=len(missing))
        Base.metadata.create_all(bind=engine)


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    role: str = UserRole.security_officer.value,
    **fields,
) -> User:
    user = User(
        username=normalize_username(username),
        email=email.strip().lower(),
        password_hash=get_password_hash(password),
        role=role,
        status=UserStatus.active.value,
        **fields,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def ensure_admin_user(db: Session) -> Optional[User]:
    """Create the configured bootstrap admin if it does not exist yet."""
    username = settings.bootstrap_admin_username
    password = settings.bootstrap_admin_password
    if not username or not password:
        return None
    existing = find_user_by_username(db, username)
    if existing is not None:
        return existing
    user = create_user(
        db,
        username=username,
        email=settings.bootstrap_admin_email,
        password=password,
        role=UserRole.admin.value,
        first_name="Admin",
        last_name="User",
    )
    log.info("bootstrap_admin_created", username=user.username)
    return user


def run_startup(engine: Engine, db: Session) -> None:
    if settings.auto_create_db:
        ensure_tables(engine)
    purge_expired_sessions(db)
    ensure_admin_user(db)
