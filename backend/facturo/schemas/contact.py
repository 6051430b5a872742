"""Contact (client record) schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

ContactStatus = Literal["active", "inactive", "pending"]


class ContactCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    company: str = Field(min_length=1)
    phone: str = ""
    address: str = ""


class ContactUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    company: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    address: Optional[str] = None
    status: Optional[ContactStatus] = None


class ContactRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    contact_code: str
    name: str
    email: str
    phone: str
    company: str
    address: str
    status: str
    created_at: datetime
    updated_at: datetime
