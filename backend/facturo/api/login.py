"""Authentication endpoints: login, token refresh, logout and password changes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from backend.facturo.core.errors import AccessBlocked, InvalidTokenError, SessionLimitReached
from backend.facturo.core.security import (
    decode_access_token,
    decode_refresh_token,
    get_password_hash,
    pwd_context,
    verify_password,
)
from backend.facturo.db.session import get_db
from backend.facturo.dependencies.auth import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    clear_auth_cookies,
    client_ip,
    get_current_user,
    set_auth_cookies,
)
from backend.facturo.models.user import User
from backend.facturo.schemas.common import MessageResponse
from backend.facturo.schemas.login import ChangePasswordRequest, LoginRequest, LoginResponse
from backend.facturo.schemas.user import PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH, UserIdentity
from backend.facturo.services.sessions import close_session, open_session
from backend.facturo.services.tokens import (
    issue_token_pair,
    revoke_other_refresh_tokens,
    revoke_refresh_token,
    rotate_refresh_token,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _identity(user: User) -> UserIdentity:
    return UserIdentity(
        id=user.id,
        email=user.email,
        name=user.name or "",
        company=user.company or "",
        role=user.role,
    )


@router.post("/login", response_model=LoginResponse)
def login(credentials: LoginRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    email = credentials.email.lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not user.password_hash:
        pwd_context.dummy_verify()
        logger.warning("Login failed: unknown account")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not verify_password(credentials.password, user.password_hash):
        logger.warning("Login failed: wrong password for user %s", user.id)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if user.status == "inactive":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")

    try:
        session_id = open_session(db, user, client_ip(request))
    except (AccessBlocked, SessionLimitReached) as exc:
        logger.warning("Login refused for user %s: %s", user.id, exc)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))

    pair = issue_token_pair(db, user, session_id)
    set_auth_cookies(response, pair.access_token, pair.refresh_token)
    logger.info("User %s logged in", user.id)
    return LoginResponse(user=_identity(user))


@router.post("/refresh", response_model=LoginResponse)
def refresh(request: Request, response: Response, db: Session = Depends(get_db)):
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No refresh token")
    try:
        pair = rotate_refresh_token(db, token)
    except InvalidTokenError as exc:
        logger.info("Refresh rejected: %s", exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    payload = decode_refresh_token(pair.refresh_token)
    user = db.get(User, int(payload["sub"]))
    set_auth_cookies(response, pair.access_token, pair.refresh_token)
    return LoginResponse(user=_identity(user))


def _session_id_from(request: Request) -> str:
    refresh_token = request.cookies.get(REFRESH_COOKIE)
    access_token = request.cookies.get(ACCESS_COOKIE)
    for token, decode in ((refresh_token, decode_refresh_token), (access_token, decode_access_token)):
        if not token:
            continue
        try:
            return decode(token).get("sid") or ""
        except ValueError:
            continue
    return ""


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request, response: Response, db: Session = Depends(get_db)):
    session_id = _session_id_from(request)
    if session_id:
        close_session(db, session_id)
    refresh_token = request.cookies.get(REFRESH_COOKIE)
    if refresh_token:
        revoke_refresh_token(db, refresh_token)
    clear_auth_cookies(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=LoginResponse)
def read_me(current_user: User = Depends(get_current_user)):
    return LoginResponse(user=_identity(current_user))


@router.api_route("/change-password", methods=["POST", "PUT"], response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not payload.current_password or not payload.new_password or not payload.confirm_new_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="All password fields are required")
    if payload.new_password != payload.confirm_new_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="New passwords do not match")
    if not PASSWORD_MIN_LENGTH <= len(payload.new_password) <= PASSWORD_MAX_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters",
        )
    # 400 rather than 401: the 401 handler clears the session cookies.
    if not current_user.password_hash or not verify_password(payload.current_password, current_user.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    current_user.password_hash = get_password_hash(payload.new_password)
    db.commit()
    revoke_other_refresh_tokens(db, current_user.id, keep_token=request.cookies.get(REFRESH_COOKIE))
    logger.info("User %s changed password", current_user.id)
    return MessageResponse(message="Password changed successfully")
