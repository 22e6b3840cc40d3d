from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ActivityLogCreate(BaseModel):
    user_id: int
    action: str = Field(min_length=1)
    description: str
    related_id: Optional[int] = None
    related_type: Optional[str] = None


class ActivityLogResponse(ActivityLogCreate):
    id: int
    timestamp: datetime

    class Config:
        from_attributes = True


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    is_read: bool
    created_at: datetime
    related_id: Optional[int] = None
    related_type: Optional[str] = None
    link: Optional[str] = None

    class Config:
        from_attributes = True
