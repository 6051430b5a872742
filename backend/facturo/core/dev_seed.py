import logging
import os

from sqlalchemy.orm import Session

from backend.facturo.core.security import get_password_hash
from backend.facturo.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_DEV_PASSWORD = "Secret123!"
DEFAULT_DEV_ADMIN_EMAIL = "admin@facturo.dev"


def ensure_default_dev_admin(db: Session) -> None:
    """
    Create a default admin account for local development if it does not exist.
    Skips execution when running under pytest to avoid altering test expectations.
    """
    if os.getenv("PYTEST_CURRENT_TEST"):
        return

    existing = db.query(User).filter(User.email == DEFAULT_DEV_ADMIN_EMAIL).first()
    if existing:
        return

    db.add(
        User(
            email=DEFAULT_DEV_ADMIN_EMAIL,
            password_hash=get_password_hash(DEFAULT_DEV_PASSWORD),
            name="Admin",
            company="Facturo",
            role="admin",
            status="active",
        )
    )
    db.commit()
    logger.info("Created development admin %s", DEFAULT_DEV_ADMIN_EMAIL)
