import logging
import secrets
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.errors import InternalError, TokenRejected
from app.models.access_token import AccessToken
from app.models.video import Video

logger = logging.getLogger(__name__)

MINT_MAX_ATTEMPTS = 5


class TokenState(str, Enum):
    active = "ok"
    invalid = "invalid"
    revoked = "revoked"
    expired = "expired"
    limit = "limit"


def _generate_token() -> str:
    # 192 bits
    return secrets.token_hex(24)


def token_state(qr: Optional[AccessToken], now: Optional[datetime] = None) -> TokenState:
    if qr is None:
        return TokenState.invalid
    now = now or datetime.utcnow()
    if qr.is_revoked:
        return TokenState.revoked
    if qr.expires_at <= now:
        return TokenState.expired
    if qr.download_count >= qr.max_downloads:
        return TokenState.limit
    return TokenState.active


def get_token(session: Session, token: str) -> Optional[AccessToken]:
    if not token:
        return None
    return session.exec(select(AccessToken).where(AccessToken.token == token)).first()


def mint_token(
    session: Session,
    *,
    user_id: int,
    video_id: int,
    ttl: timedelta,
    max_downloads: int,
    transaction_id: Optional[int] = None,
    commit: bool = True,
) -> AccessToken:
    """Create a fresh access token; a colliding token string is regenerated."""
    for attempt in range(1, MINT_MAX_ATTEMPTS + 1):
        qr = AccessToken(
            user_id=user_id,
            video_id=video_id,
            transaction_id=transaction_id,
            token=_generate_token(),
            expires_at=datetime.utcnow() + ttl,
            max_downloads=max_downloads,
            download_count=0,
        )
        try:
            with session.begin_nested():
                session.add(qr)
        except IntegrityError:
            logger.warning(f"Access token collision on attempt {attempt}, regenerating")
            continue

        if commit:
            session.commit()
            session.refresh(qr)
        return qr

    raise InternalError("Could not mint a unique access token")


def verify_token(session: Session, token: str) -> tuple[AccessToken, Video]:
    """Check a token without touching its redemption count."""
    qr = get_token(session, token)
    state = token_state(qr)
    if state is not TokenState.active:
        raise TokenRejected(state)

    video = session.get(Video, qr.video_id)
    if video is None:
        raise TokenRejected(TokenState.invalid)
    return qr, video


def consume_token(session: Session, token: str) -> AccessToken:
    """Redeem one download; the check and the increment are one UPDATE."""
    now = datetime.utcnow()
    result = session.execute(
        update(AccessToken)
        .where(AccessToken.token == token)
        .where(AccessToken.is_revoked == False)  # noqa: E712
        .where(AccessToken.expires_at > now)
        .where(AccessToken.download_count < AccessToken.max_downloads)
        .values(download_count=AccessToken.download_count + 1)
        .execution_options(synchronize_session=False)
    )
    session.commit()

    qr = session.exec(
        select(AccessToken)
        .where(AccessToken.token == token)
        .execution_options(populate_existing=True)
    ).first()

    if result.rowcount != 1:
        state = token_state(qr, now)
        if state is TokenState.active:
            # changed between the update and the re-read
            state = TokenState.limit
        raise TokenRejected(state)

    logger.info(f"Access token {qr.id} redeemed ({qr.download_count}/{qr.max_downloads})")
    return qr


def revoke_token(session: Session, qr: AccessToken, commit: bool = True) -> AccessToken:
    qr.is_revoked = True
    session.add(qr)
    if commit:
        session.commit()
        session.refresh(qr)
    return qr
