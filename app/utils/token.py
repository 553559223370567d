from dataclasses import dataclass
from jose import jwt, JWTError
from datetime import datetime, timedelta
from typing import Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session
from app.config import settings
from app.database import get_session
from app.errors import Forbidden, Unauthorized
from app.models.user import Role, User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


@dataclass(frozen=True)
class SessionIdentity:
    user_id: int
    role: Role
    email: str


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.utcnow() + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.access_token_expire_minutes)
    )

    to_encode = {
        "sub": str(user.id),
        "id": user.id,
        "role": Role(user.role).value,
        "email": user.email,
        "exp": expire,
    }

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.algorithm
    )


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
    except JWTError:
        raise Unauthorized("Could not validate credentials")


def verify_session(token: str | None) -> SessionIdentity:
    """Resolve a bearer token to the identity it was issued for.

    Malformed, foreign-signed and expired tokens all raise Unauthorized.
    """
    if not token:
        raise Unauthorized("Missing bearer token")

    payload = decode_access_token(token)

    try:
        return SessionIdentity(
            user_id=int(payload["sub"]),
            role=Role(payload["role"]),
            email=payload["email"],
        )
    except (KeyError, TypeError, ValueError):
        raise Unauthorized("Invalid token payload")


def require_role(identity: SessionIdentity | User, role: Role):
    if Role(identity.role) is not role:
        raise Forbidden(f"{role.value} access required")


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    session: Session = Depends(get_session)
) -> User:
    identity = verify_session(token)

    user = session.get(User, identity.user_id)

    if user is None:
        raise Unauthorized("User not found")

    if not user.can_login:
        raise Forbidden("User account is disabled")

    return user
