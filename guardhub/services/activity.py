"""
Activity feed service.
Append-only record of what each user did to which entity.
"""
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from ..models.models import Activity, User


def record_activity(
    db: Session,
    user: Optional[User],
    activity_type: str,
    description: str,
    entity_type: Optional[str] = None,
    entity_id=None,
    commit: bool = True,
) -> Activity:
    """
    Append an activity entry.

    Args:
        db: Database session
        user: Acting user (None for system actions)
        activity_type: incident|patrol|report|client_contact|staff
        description: Human readable summary shown in the feed
        entity_type: Type of entity touched (client|property|incident|patrol_report|appointment|user)
        entity_id: Entity ID
        commit: Commit immediately; pass False to ride along with the caller's transaction
    """
    entry = Activity(
        user_id=user.id if user is not None else None,
        activity_type=activity_type,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        description=description[:1000],
    )
    db.add(entry)
    if commit:
        db.commit()
    structlog.get_logger().info(
        "activity_recorded",
        activity_type=activity_type,
        entity_type=entity_type,
        entity_id=entry.entity_id,
    )
    return entry


def list_activities(db: Session, limit: int = 50):
    limit = max(1, min(500, limit))
    return db.query(Activity).order_by(Activity.created_at.desc()).limit(limit).all()
