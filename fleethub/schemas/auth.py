from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class UserRole(str, Enum):
    company_admin = "company_admin"
    driver = "driver"


class UserBase(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1)
    role: UserRole = UserRole.driver
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    profile_image: Optional[str] = None
    notification_enabled: bool = True

    class Config:
        use_enum_values = True

    @field_validator("email", "phone", "profile_image", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class UserCreate(UserBase):
    password: str = Field(min_length=8)


class UserUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=1, max_length=100)
    password: Optional[str] = Field(default=None, min_length=8)
    name: Optional[str] = None
    role: Optional[UserRole] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    profile_image: Optional[str] = None
    notification_enabled: Optional[bool] = None

    class Config:
        extra = "forbid"
        use_enum_values = True


class UserResponse(UserBase):
    """Never carries the password or its hash."""
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"
