"""
Notification service.
Per-user in-app notifications; the only state transition is unread -> read.
"""
from typing import Optional, List

import structlog
from sqlalchemy.orm import Session

from ..models.models import Notification, Maintenance, User, utcnow


logger = structlog.get_logger(__name__)


def create_notification(
    db: Session,
    user_id: int,
    title: str,
    message: str,
    notification_type: str,
    related_id: Optional[int] = None,
    related_type: Optional[str] = None,
    link: Optional[str] = None,
) -> Optional[Notification]:
    """
    Create an unread notification.
    Skipped (returns None) when the user has notifications turned off.

    Args:
        db: Database session
        user_id: Recipient
        title: Short title
        message: Body text
        notification_type: maintenance|approval|assignment|...
        related_id: ID of the related entity
        related_type: Type of the related entity
        link: In-app path to navigate to

    Returns:
        Notification object if created, None if skipped
    """
    user = db.get(User, user_id)
    if user is not None and user.notification_enabled is False:
        return None

    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=notification_type,
        is_read=False,
        created_at=utcnow(),
        related_id=related_id,
        related_type=related_type,
        link=link,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def get_user_notifications(db: Session, user_id: int, unread_only: bool = False) -> List[Notification]:
    """Notifications for a user, newest first."""
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def get_unread_user_notifications(db: Session, user_id: int) -> List[Notification]:
    return get_user_notifications(db, user_id, unread_only=True)


def mark_notification_as_read(db: Session, notification_id: int) -> Optional[Notification]:
    notification = db.get(Notification, notification_id)
    if notification is None:
        return None
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


def notify_maintenance_assignment(db: Session, task: Maintenance) -> Optional[Notification]:
    if not task.assigned_to:
        return None
    return create_notification(
        db,
        task.assigned_to,
        title="Maintenance assigned",
        message=f"You have been assigned '{task.type}' maintenance for vehicle {task.vehicle_id}",
        notification_type="assignment",
        related_id=task.id,
        related_type="maintenance",
        link=f"/maintenance/{task.id}",
    )


def notify_maintenance_decision(db: Session, task: Maintenance) -> Optional[Notification]:
    if not task.assigned_to:
        return None
    return create_notification(
        db,
        task.assigned_to,
        title=f"Unscheduled maintenance {task.approval_status}",
        message=f"Your unscheduled '{task.type}' request for vehicle {task.vehicle_id} was {task.approval_status}",
        notification_type="approval",
        related_id=task.id,
        related_type="maintenance",
        link=f"/maintenance/{task.id}",
    )
