"""Admin user management endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.facturo.core.security import get_password_hash
from backend.facturo.core.settings import get_settings
from backend.facturo.db.session import get_db
from backend.facturo.dependencies.auth import get_current_admin
from backend.facturo.models.user import User
from backend.facturo.schemas.common import DataResponse, MessageResponse
from backend.facturo.schemas.user import UserCreate, UserRead, UserUpdate
from backend.facturo.services.tokens import revoke_other_refresh_tokens

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/", response_model=DataResponse[List[UserRead]])
def list_users(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    users = db.query(User).order_by(User.id.asc()).all()
    return DataResponse(data=[UserRead.model_validate(user) for user in users])


@router.post("/", response_model=DataResponse[UserRead], status_code=status.HTTP_201_CREATED)
def create_user(user_in: UserCreate, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    email = user_in.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    access_count = user_in.access_count
    if access_count is None:
        access_count = get_settings().default_access_count
    user = User(
        email=email,
        password_hash=get_password_hash(user_in.password),
        name=user_in.name,
        company=user_in.company,
        phone=user_in.phone,
        role="user",
        status="active",
        access_count=access_count,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Admin %s created user %s", current_admin.id, user.id)
    return DataResponse(data=UserRead.model_validate(user))


@router.put("/{user_id}", response_model=DataResponse[UserRead])
def update_user(
    user_id: int,
    update: UserUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    user = _get_user(db, user_id)
    if user_id == current_admin.id and update.status == "inactive":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot deactivate your own account")

    update_data = update.model_dump(exclude_unset=True)
    password = update_data.pop("password", None)
    for field, value in update_data.items():
        if value is None and field != "phone":
            continue
        setattr(user, field, value)
    if password:
        user.password_hash = get_password_hash(password)
    db.commit()
    db.refresh(user)

    if password or user.status == "inactive" or user.access_count == 0:
        revoke_other_refresh_tokens(db, user.id)
    return DataResponse(data=UserRead.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    if user_id == current_admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete your own account")
    user = _get_user(db, user_id)
    db.delete(user)
    db.commit()
    logger.info("Admin %s deleted user %s", current_admin.id, user_id)
    return MessageResponse(message="User deleted")
