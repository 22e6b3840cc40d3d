from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..auth.security import get_optional_user
from ..db import get_db
from ..exceptions import NotFoundError
from ..models.models import User
from ..schemas.activity import NotificationResponse
from ..schemas.auth import UserCreate, UserResponse, UserUpdate
from ..schemas.fleet import MaintenanceReminder, VehicleResponse
from ..services.activity import record_activity
from ..services.maintenance import get_maintenance_reminders
from ..services.notifications import get_user_notifications
from ..services.store import Store, get_store
from ..services.users import create_user, get_user_by_username, update_user
from ..services.vehicles import get_vehicles_by_user


router = APIRouter(prefix="/users", tags=["users"])


def _actor_id(user: Optional[User]) -> Optional[int]:
    return user.id if user else None


@router.get("", response_model=List[UserResponse])
def list_users(store: Store = Depends(get_store)):
    return store.users.list()


@router.get("/by-username/{username}", response_model=UserResponse)
def get_by_username(username: str, db: Session = Depends(get_db)):
    user = get_user_by_username(db, username)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, store: Store = Depends(get_store)):
    return store.users.get_or_404(user_id)


@router.post("", response_model=UserResponse, status_code=201)
def create(payload: UserCreate, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_optional_user)):
    user = create_user(db, payload.model_dump())
    record_activity(db, _actor_id(actor), "user_created", f"Created user {user.username}", user.id, "user")
    return user


@router.put("/{user_id}", response_model=UserResponse)
def update(user_id: int, payload: UserUpdate, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_optional_user)):
    user = update_user(db, user_id, payload.model_dump(exclude_unset=True))
    if user is None:
        raise NotFoundError("User not found")
    record_activity(db, _actor_id(actor), "user_updated", f"Updated user {user.username}", user.id, "user")
    return user


@router.delete("/{user_id}", status_code=204)
def delete(user_id: int, store: Store = Depends(get_store)):
    if not store.users.delete(user_id):
        raise NotFoundError("User not found")
    return Response(status_code=204)


@router.get("/{user_id}/vehicles", response_model=List[VehicleResponse])
def list_user_vehicles(user_id: int, db: Session = Depends(get_db)):
    return get_vehicles_by_user(db, user_id)


@router.get("/{user_id}/notifications", response_model=List[NotificationResponse])
def list_user_notifications(
    user_id: int,
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
):
    """Newest first"""
    return get_user_notifications(db, user_id, unread_only=unread_only)


@router.get("/{user_id}/maintenance-reminders", response_model=List[MaintenanceReminder])
def list_maintenance_reminders(user_id: int, store: Store = Depends(get_store)):
    store.users.get_or_404(user_id)
    return get_maintenance_reminders(store.db, user_id)
