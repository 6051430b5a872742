"""Security utilities for Facturo: password hashing and JWT token operations.

Access tokens carry the caller's identity plus a ``last_activity`` timestamp and
are rejected once that timestamp is older than the inactivity window, even when
the signed ``exp`` has not elapsed yet. Refresh tokens are signed with their own
secret, live for days instead of minutes and are checked for signature and
expiry only; their single-use rotation is handled in ``services.tokens``.
"""

import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from backend.facturo.core.settings import get_settings
from backend.facturo.core.time import utc_now

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
IDENTITY_CLAIMS = ("sub", "email", "role", "name", "company", "sid")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def build_claims(user, session_id: str) -> Dict[str, Any]:
    """Identity claims embedded in both token kinds for ``user``."""
    return {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "name": user.name or "",
        "company": user.company or "",
        "sid": session_id,
    }


def identity_from(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: payload.get(key) for key in IDENTITY_CLAIMS}


def _encode(claims: Dict[str, Any], secret: str, token_type: str, lifetime: timedelta, now: datetime) -> str:
    payload = identity_from(claims)
    payload.update(
        {
            "type": token_type,
            "jti": secrets.token_hex(16),
            "iat": now,
            "exp": now + lifetime,
        }
    )
    if token_type == ACCESS_TOKEN_TYPE:
        payload["last_activity"] = int(now.timestamp())
    return jwt.encode(payload, secret, algorithm=get_settings().jwt_algorithm)


def _decode(token: str, secret: str, token_type: str) -> Dict[str, Any]:
    settings = get_settings()
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise ValueError("Expired token") from exc
    except jwt.InvalidTokenError as exc:
        raise ValueError("Invalid token") from exc
    if payload.get("type") != token_type or not payload.get("sub"):
        raise ValueError("Invalid token")
    return payload


def create_access_token(claims: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    return _encode(claims, settings.jwt_secret, ACCESS_TOKEN_TYPE, timedelta(minutes=minutes), utc_now())


def create_refresh_token(claims: Dict[str, Any], expires_days: Optional[int] = None) -> str:
    settings = get_settings()
    days = expires_days if expires_days is not None else settings.refresh_token_expire_days
    return _encode(claims, settings.jwt_refresh_secret, REFRESH_TOKEN_TYPE, timedelta(days=days), utc_now())


def decode_access_token(token: str) -> Dict[str, Any]:
    settings = get_settings()
    payload = _decode(token, settings.jwt_secret, ACCESS_TOKEN_TYPE)
    last_activity = payload.get("last_activity") or payload.get("iat") or 0
    idle_seconds = int(utc_now().timestamp()) - int(last_activity)
    if idle_seconds > settings.inactivity_minutes * 60:
        raise ValueError("Token expired due to inactivity")
    return payload


def decode_refresh_token(token: str) -> Dict[str, Any]:
    return _decode(token, get_settings().jwt_refresh_secret, REFRESH_TOKEN_TYPE)
