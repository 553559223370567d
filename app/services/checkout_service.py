"""
Two-phase purchase flow.

Phase 1 opens a gateway order and records a ``created`` transaction.
Phase 2 checks the gateway's payment signature, flips the transaction to
``paid`` exactly once, mints the access token and queues its email.
"""
import logging
from datetime import datetime, timedelta
from typing import Iterable, Mapping, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from app.config import settings
from app.errors import (
    AppError,
    Conflict,
    Forbidden,
    InvalidSignature,
    NotFound,
    ValidationError,
)
from app.models.access_token import AccessToken
from app.models.transaction import Transaction, TransactionStatus
from app.models.user import User
from app.models.video import Video
from app.services.access_token_service import mint_token
from app.services.email_outbox import deliver_entry, enqueue_email
from app.services.qr import make_qr_data_uri
from app.utils.template import render_template

logger = logging.getLogger(__name__)


def to_minor_units(price: int) -> int:
    return int(round(price * 100))


def initiate_checkout(session: Session, gateway, user: User, video_id: int) -> dict:
    video = session.get(Video, video_id)
    if not video or not video.is_active:
        raise NotFound("Video not found")

    amount = to_minor_units(video.price)
    order_id = gateway.open_order(
        amount,
        settings.CURRENCY,
        receipt=f"vid_{video.id}",
        notes={"user_id": user.id, "video_id": video.id},
    )

    txn = Transaction(
        user_id=user.id,
        video_id=video.id,
        razorpay_order_id=order_id,
        amount=video.price,
        currency=settings.CURRENCY,
        status=TransactionStatus.created,
    )
    session.add(txn)
    session.commit()
    session.refresh(txn)

    logger.info(f"Transaction {txn.id} created for order {order_id} (video {video.id}, user {user.id})")

    return {
        "order_id": order_id,
        "amount": amount,
        "currency": txn.currency,
        "transaction_id": txn.id,
        "key_id": getattr(gateway, "key_id", None),
    }


def _receipt(qr: AccessToken, txn: Transaction, replayed: bool = False) -> dict:
    return {
        "ok": True,
        "token": qr.token,
        "transaction_id": txn.id,
        "expires_at": qr.expires_at,
        "downloads_remaining": qr.downloads_remaining,
        "already_processed": replayed,
    }


def _token_for_transaction(session: Session, txn: Transaction) -> Optional[AccessToken]:
    return session.exec(
        select(AccessToken)
        .where(AccessToken.transaction_id == txn.id)
        .order_by(AccessToken.id)
    ).first()


def _queue_token_email(session: Session, user: User, video: Optional[Video], qr: AccessToken):
    try:
        html = render_template(
            "user_emails/access_token_issued.html",
            video_title=video.title if video else "your video",
            token=qr.token,
            qr_data_uri=make_qr_data_uri(qr.token),
            expires_at=qr.expires_at,
            downloads_remaining=qr.downloads_remaining,
            store_name=settings.STORE_NAME,
        )
    except Exception:
        logger.exception(f"Could not render access email for token {qr.id}")
        return None

    return enqueue_email(
        session,
        to_email=user.email,
        subject="Your video access QR",
        html=html,
        related_token_id=qr.id,
    )


def finalize_checkout(
    session: Session,
    gateway,
    mailer,
    user: User,
    *,
    order_id: str,
    payment_id: str,
    signature: str,
    video_id: Optional[int] = None,
) -> dict:
    if not gateway.verify_signature(order_id, payment_id, signature):
        logger.warning(f"Signature mismatch for order {order_id}")
        raise InvalidSignature("Invalid signature")

    txn = session.exec(
        select(Transaction).where(Transaction.razorpay_order_id == order_id)
    ).first()
    if not txn:
        raise NotFound("Transaction not found")

    if txn.user_id != user.id:
        raise Forbidden("This order belongs to another user")

    if video_id is not None and video_id != txn.video_id:
        raise ValidationError("Video does not match the order", reason="video_mismatch")

    # created -> paid happens once per order; replays fall through below
    result = session.execute(
        update(Transaction)
        .where(Transaction.id == txn.id)
        .where(Transaction.status == TransactionStatus.created)
        .values(
            status=TransactionStatus.paid,
            razorpay_payment_id=payment_id,
            razorpay_signature=signature,
            updated_at=datetime.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        session.rollback()
        session.refresh(txn)
        if txn.status == TransactionStatus.paid:
            existing = _token_for_transaction(session, txn)
            if existing:
                logger.info(f"Order {order_id} already paid, returning existing token")
                return _receipt(existing, txn, replayed=True)
        raise Conflict(f"Transaction is {txn.status.value}", reason="transaction_closed")

    qr = mint_token(
        session,
        user_id=txn.user_id,
        video_id=txn.video_id,
        ttl=timedelta(days=settings.PURCHASE_TOKEN_TTL_DAYS),
        max_downloads=settings.PURCHASE_TOKEN_MAX_DOWNLOADS,
        transaction_id=txn.id,
        commit=False,
    )
    session.flush()

    entry = _queue_token_email(session, user, session.get(Video, txn.video_id), qr)
    session.commit()
    session.refresh(txn)
    session.refresh(qr)

    logger.info(f"Transaction {txn.id} paid, token {qr.id} issued")

    if entry is not None:
        # best effort: a failed send stays pending in the outbox
        deliver_entry(session, mailer, entry)

    return _receipt(qr, txn)


def _failure(index: int, error: AppError) -> dict:
    return {"index": index, "error": error.reason, "detail": error.detail}


def initiate_batch(session: Session, gateway, user: User, video_ids: Iterable[int]) -> dict:
    """Phase 1 for each cart item in order, stopping at the first failure."""
    results = []
    for index, video_id in enumerate(video_ids):
        try:
            results.append(initiate_checkout(session, gateway, user, video_id))
        except AppError as e:
            session.rollback()
            return {"results": results, "failed": _failure(index, e)}
    return {"results": results, "failed": None}


def finalize_batch(
    session: Session,
    gateway,
    mailer,
    user: User,
    items: Iterable[Mapping],
) -> dict:
    """Phase 2 for each item in order; committed items are kept on failure."""
    results = []
    for index, item in enumerate(items):
        try:
            results.append(
                finalize_checkout(
                    session,
                    gateway,
                    mailer,
                    user,
                    order_id=item["razorpay_order_id"],
                    payment_id=item["razorpay_payment_id"],
                    signature=item["razorpay_signature"],
                    video_id=item.get("video_id"),
                )
            )
        except AppError as e:
            session.rollback()
            return {"results": results, "failed": _failure(index, e)}
    return {"results": results, "failed": None}
