import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.config import settings
from app.database import get_session
from app.errors import Conflict, Forbidden, Unauthorized
from app.models.user import Role, User
from app.schemas.auth_schemas import (
    AdminTokenResponse,
    LoginRequest,
    MeResponse,
    SignupRequest,
    TokenResponse,
    UserPublic,
)
from app.utils.hash import hash_password, verify_password
from app.utils.token import create_access_token, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_CREDENTIALS = "Invalid credentials"


def _create_user(session: Session, payload: SignupRequest, role: Role = Role.user) -> User:
    email = payload.email.lower()
    existing_user = session.exec(select(User).where(User.email == email)).first()
    if existing_user:
        raise Conflict("Email already registered", reason="email_taken")

    user = User(
        email=email,
        password=hash_password(payload.password),
        name=payload.name,
        role=role,
    )

    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # lost a race with a concurrent signup for the same address
        session.rollback()
        raise Conflict("Email already registered", reason="email_taken")
    session.refresh(user)

    logger.info(f"Registered {role.value} account {user.id}")
    return user


def _public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        created_at=user.created_at,
    )


@router.post("/signup", response_model=TokenResponse)
def signup(payload: SignupRequest, session: Session = Depends(get_session)):
    user = _create_user(session, payload)
    return TokenResponse(token=create_access_token(user))


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == payload.email.lower())).first()

    # same answer for unknown email and wrong password
    if not user or not verify_password(payload.password, user.password):
        raise Unauthorized(INVALID_CREDENTIALS, reason="invalid_credentials")

    if not user.can_login:
        raise Forbidden("User account is disabled")

    return TokenResponse(token=create_access_token(user))


@router.get("/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)):
    return MeResponse(user=_public(current_user))


@router.post("/create-admin", response_model=AdminTokenResponse)
def create_admin(
    payload: SignupRequest,
    bootstrap_key: Optional[str] = Header(None, alias="X-Admin-Bootstrap-Key"),
    session: Session = Depends(get_session),
):
    """Bootstrap an admin account.

    Only available when ADMIN_BOOTSTRAP_KEY is configured, and only to callers
    presenting that key.
    """
    expected = settings.ADMIN_BOOTSTRAP_KEY
    if not expected:
        raise Forbidden("Admin bootstrap is disabled", reason="bootstrap_disabled")
    if not bootstrap_key or not hmac.compare_digest(bootstrap_key.encode(), expected.encode()):
        raise Forbidden("Invalid bootstrap key")

    user = _create_user(session, payload, role=Role.admin)
    return AdminTokenResponse(token=create_access_token(user), user=_public(user))
