"""Refresh token persistence and single-use rotation."""

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.orm import Session

from backend.facturo.core.errors import InvalidTokenError
from backend.facturo.core.security import (
    build_claims,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
)
from backend.facturo.core.settings import get_settings
from backend.facturo.core.time import as_utc, utc_now
from backend.facturo.models.refresh_token import RefreshToken
from backend.facturo.models.user import User
from backend.facturo.services.sessions import touch_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def store_refresh_token(db: Session, user_id: int, token: str) -> RefreshToken:
    settings = get_settings()
    record = RefreshToken(
        user_id=user_id,
        token=token,
        expires_at=utc_now() + timedelta(days=settings.refresh_token_expire_days),
    )
    db.add(record)
    return record


def issue_token_pair(db: Session, user: User, session_id: str) -> TokenPair:
    """Sign a fresh access/refresh pair for ``user`` and persist the refresh token."""
    claims = build_claims(user, session_id)
    pair = TokenPair(access_token=create_access_token(claims), refresh_token=create_refresh_token(claims))
    store_refresh_token(db, user.id, pair.refresh_token)
    user.last_activity = utc_now()
    db.commit()
    return pair


def rotate_refresh_token(db: Session, old_token: str) -> TokenPair:
    """Exchange a refresh token for a new pair; the old token can never be used again."""
    try:
        payload = decode_refresh_token(old_token)
        user_id = int(payload["sub"])
    except (ValueError, KeyError) as exc:
        raise InvalidTokenError(str(exc)) from exc

    record = (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id, RefreshToken.token == old_token)
        .first()
    )
    if record is None:
        raise InvalidTokenError("Refresh token not found")
    if as_utc(record.expires_at) <= utc_now():
        db.delete(record)
        db.commit()
        raise InvalidTokenError("Refresh token expired")

    deleted = (
        db.query(RefreshToken)
        .filter(RefreshToken.id == record.id)
        .delete(synchronize_session=False)
    )
    if deleted != 1:
        db.rollback()
        raise InvalidTokenError("Refresh token already used")

    user = db.get(User, user_id)
    if user is None or user.status == "inactive" or user.access_count <= 0:
        db.commit()
        raise InvalidTokenError("Account is no longer allowed to sign in")

    session_id = payload.get("sid") or ""
    touch_session(db, session_id)
    pair = issue_token_pair(db, user, session_id)
    logger.info("Rotated refresh token for user %s", user_id)
    return pair


def revoke_refresh_token(db: Session, token: str) -> int:
    deleted = db.query(RefreshToken).filter(RefreshToken.token == token).delete(synchronize_session=False)
    db.commit()
    return deleted


def revoke_other_refresh_tokens(db: Session, user_id: int, keep_token: str | None = None) -> int:
    query = db.query(RefreshToken).filter(RefreshToken.user_id == user_id)
    if keep_token:
        query = query.filter(RefreshToken.token != keep_token)
    deleted = query.delete(synchronize_session=False)
    db.commit()
    return deleted
