from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..exceptions import ValidationError
from ..models.models import User
from ..schemas.activity import ActivityLogCreate, ActivityLogResponse
from ..services.activity import create_activity_log, get_activity_logs, get_recent_activity_logs


router = APIRouter(prefix="/activity-logs", tags=["activity"])


@router.get("", response_model=List[ActivityLogResponse])
def list_activity_logs(db: Session = Depends(get_db)):
    return get_activity_logs(db)


@router.get("/recent", response_model=List[ActivityLogResponse])
def list_recent(limit: Optional[int] = Query(None), db: Session = Depends(get_db)):
    if limit is None:
        limit = settings.recent_activity_default
    if limit <= 0:
        raise ValidationError("limit must be a positive integer")
    return get_recent_activity_logs(db, limit)


@router.post("", response_model=ActivityLogResponse, status_code=201)
def create(payload: ActivityLogCreate, db: Session = Depends(get_db)):
    if db.get(User, payload.user_id) is None:
        raise ValidationError(f"User {payload.user_id} does not exist")
    return create_activity_log(db, **payload.model_dump())
