"""Authentication request/response schemas."""

from pydantic import BaseModel, EmailStr

from backend.facturo.schemas.user import UserIdentity


class LoginRequest(BaseModel):
    """Payload for login attempts."""

    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    success: bool = True
    user: UserIdentity


class ChangePasswordRequest(BaseModel):
    current_password: str = ""
    new_password: str = ""
    confirm_new_password: str = ""
