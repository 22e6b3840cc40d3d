"""
Activity logging service.
Append-only activity trail written as a side effect of mutations.
"""
from datetime import datetime
from typing import Optional, List

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.models import ActivityLog, utcnow


logger = structlog.get_logger(__name__)


def create_activity_log(
    db: Session,
    user_id: int,
    action: str,
    description: str,
    related_id: Optional[int] = None,
    related_type: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> ActivityLog:
    """
    Create an activity log entry. Errors propagate to the caller.

    Args:
        db: Database session
        user_id: User who performed the action
        action: Action key (maintenance_created|part_added|order_placed|...)
        description: Human readable summary
        related_id: ID of the entity the action touched
        related_type: Type of that entity (vehicle|part|maintenance|order|...)
        timestamp: When it happened (defaults to now)

    Returns:
        Created ActivityLog object
    """
    entry = ActivityLog(
        user_id=user_id,
        action=action,
        description=description,
        timestamp=timestamp or utcnow(),
        related_id=related_id,
        related_type=related_type,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def record_activity(
    db: Session,
    user_id: Optional[int],
    action: str,
    description: str,
    related_id: Optional[int] = None,
    related_type: Optional[str] = None,
) -> Optional[ActivityLog]:
    """
    Fire-and-forget variant used after a mutation has been committed.
    A failure here is logged and never reaches the caller.
    """
    if user_id is None:
        return None
    try:
        return create_activity_log(db, user_id, action, description, related_id, related_type)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("activity_log_failed", action=action, related_type=related_type, related_id=related_id, error=str(e))
        return None


def get_activity_logs(db: Session, limit: Optional[int] = None) -> List[ActivityLog]:
    """Activity logs, newest first."""
    query = db.query(ActivityLog).order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def get_recent_activity_logs(db: Session, limit: int) -> List[ActivityLog]:
    return get_activity_logs(db, limit=limit)
