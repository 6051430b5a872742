"""Per-user settings storage with defaults for accounts that never saved any."""

from typing import Optional

from sqlalchemy.orm import Session

from backend.facturo.models.user_settings import UserSettings
from backend.facturo.schemas.settings import (
    GeneralSettings,
    InvoiceSettings,
    ProfileSettings,
    SettingsRead,
    SettingsUpdate,
)


def default_settings() -> SettingsRead:
    return SettingsRead(
        profile_settings=ProfileSettings(),
        invoice_settings=InvoiceSettings(),
        general_settings=GeneralSettings(),
    )


def get_settings_row(db: Session, user_id: int) -> Optional[UserSettings]:
    return db.query(UserSettings).filter(UserSettings.user_id == user_id).first()


def read_settings(db: Session, user_id: int) -> SettingsRead:
    row = get_settings_row(db, user_id)
    if row is None:
        return default_settings()
    return SettingsRead.model_validate(row)


def load_invoice_settings(db: Session, user_id: int) -> InvoiceSettings:
    return read_settings(db, user_id).invoice_settings


def save_settings(db: Session, user_id: int, update: SettingsUpdate) -> UserSettings:
    """Upsert the sections present in ``update``; missing sections keep their value."""
    current = read_settings(db, user_id)
    row = get_settings_row(db, user_id)
    if row is None:
        row = UserSettings(user_id=user_id)
        db.add(row)
    row.profile_settings = (update.profile_settings or current.profile_settings).model_dump()
    row.invoice_settings = (update.invoice_settings or current.invoice_settings).model_dump()
    row.general_settings = (update.general_settings or current.general_settings).model_dump()
    db.commit()
    db.refresh(row)
    return row


def reset_settings(db: Session, user_id: int) -> UserSettings:
    defaults = default_settings()
    return save_settings(
        db,
        user_id,
        SettingsUpdate(
            profile_settings=defaults.profile_settings,
            invoice_settings=defaults.invoice_settings,
            general_settings=defaults.general_settings,
        ),
    )
