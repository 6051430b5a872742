"""Per-user settings endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.facturo.db.session import get_db
from backend.facturo.dependencies.auth import get_current_user
from backend.facturo.models.user import User
from backend.facturo.schemas.common import DataResponse
from backend.facturo.schemas.settings import SettingsRead, SettingsUpdate
from backend.facturo.services.user_settings import read_settings, reset_settings, save_settings

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=DataResponse[SettingsRead])
def get_user_settings(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return DataResponse(data=read_settings(db, current_user.id))


@router.post("/", response_model=DataResponse[SettingsRead])
def save_user_settings(
    update: SettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    row = save_settings(db, current_user.id, update)
    return DataResponse(data=SettingsRead.model_validate(row))


@router.put("/", response_model=DataResponse[SettingsRead])
def reset_user_settings(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    row = reset_settings(db, current_user.id)
    return DataResponse(data=SettingsRead.model_validate(row))
