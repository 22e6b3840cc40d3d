from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..db import get_db
from ..exceptions import NotFoundError
from ..schemas.activity import NotificationResponse
from ..services.notifications import mark_notification_as_read
from ..services.store import Store, get_store


router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/{notification_id}", response_model=NotificationResponse)
def get_notification(notification_id: int, store: Store = Depends(get_store)):
    return store.notifications.get_or_404(notification_id)


@router.put("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(notification_id: int, db: Session = Depends(get_db)):
    notification = mark_notification_as_read(db, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    return notification


@router.delete("/{notification_id}", status_code=204)
def delete(notification_id: int, store: Store = Depends(get_store)):
    if not store.notifications.delete(notification_id):
        raise NotFoundError("Notification not found")
    return Response(status_code=204)
