"""Login sessions and the per-account device cap."""

import logging
import secrets
from datetime import timedelta

from sqlalchemy import DateTime, Integer, String, func, insert, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.facturo.core.errors import AccessBlocked, SessionLimitReached
from backend.facturo.core.settings import get_settings
from backend.facturo.core.time import utc_now
from backend.facturo.models.user import User
from backend.facturo.models.user_session import UserSession

logger = logging.getLogger(__name__)


def _reuse_ip_session(db: Session, user_id: int, ip_address: str, session_id: str, now) -> bool:
    updated = (
        db.query(UserSession)
        .filter(UserSession.user_id == user_id, UserSession.ip_address == ip_address)
        .update({UserSession.session_token: session_id, UserSession.last_active: now}, synchronize_session=False)
    )
    return updated > 0


def open_session(db: Session, user: User, ip_address: str) -> str:
    """
    Open (or re-open) the login session for ``user`` from ``ip_address``.

    A new IP is admitted by one INSERT ... SELECT whose WHERE clause counts the
    user's live sessions, so the cap check and the insert cannot interleave
    with another login. Returns the session id placed in the token claims.
    """
    if user.access_count <= 0:
        raise AccessBlocked("Access to this account has been blocked")

    now = utc_now()
    cutoff = now - timedelta(days=get_settings().refresh_token_expire_days)
    db.query(UserSession).filter(UserSession.user_id == user.id, UserSession.last_active < cutoff).delete(
        synchronize_session=False
    )

    session_id = secrets.token_hex(16)
    if _reuse_ip_session(db, user.id, ip_address, session_id, now):
        db.commit()
        return session_id

    live_sessions = (
        select(func.count(UserSession.id))
        .where(UserSession.user_id == user.id)
        .correlate(None)
        .scalar_subquery()
    )
    admit = select(
        literal(user.id, Integer),
        literal(ip_address, String),
        literal(session_id, String),
        literal(now, DateTime(timezone=True)),
        literal(now, DateTime(timezone=True)),
    ).where(live_sessions < user.access_count)
    stmt = insert(UserSession).from_select(
        ["user_id", "ip_address", "session_token", "last_active", "created_at"],
        admit,
    )

    try:
        result = db.execute(stmt)
    except IntegrityError:
        # A concurrent login from the same IP inserted first.
        db.rollback()
        _reuse_ip_session(db, user.id, ip_address, session_id, now)
        db.commit()
        return session_id

    if result.rowcount == 0:
        db.rollback()
        logger.warning("Device limit of %s reached for user %s", user.access_count, user.id)
        raise SessionLimitReached("Maximum number of devices reached for this account")

    db.commit()
    return session_id


def touch_session(db: Session, session_id: str) -> None:
    if not session_id:
        return
    db.query(UserSession).filter(UserSession.session_token == session_id).update(
        {UserSession.last_active: utc_now()}, synchronize_session=False
    )


def close_session(db: Session, session_id: str) -> int:
    if not session_id:
        return 0
    deleted = db.query(UserSession).filter(UserSession.session_token == session_id).delete(synchronize_session=False)
    db.commit()
    return deleted
