"""User schemas for the identity endpoint and admin user management."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128

UserStatus = Literal["active", "inactive", "pending"]


class UserIdentity(BaseModel):
    id: int
    email: EmailStr
    name: str
    company: str
    role: str


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    company: str = ""
    phone: Optional[str] = None
    access_count: Optional[int] = Field(default=None, ge=0)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    company: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[UserStatus] = None
    access_count: Optional[int] = Field(default=None, ge=0)
    password: Optional[str] = Field(default=None, min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


class UserRead(BaseModel):
    id: int
    email: EmailStr
    name: str
    company: str
    phone: Optional[str] = None
    role: str
    status: str
    access_count: int
    last_activity: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
