from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from app.database import get_session
from app.dependencies.admin import require_admin
from app.errors import NotFound
from app.models.email import EmailOutbox, EmailStatus
from app.models.transaction import Transaction, TransactionStatus
from app.models.user import User
from app.models.video import Video
from app.services.access_token_service import get_token, revoke_token
from app.services.email_outbox import deliver_pending
from app.services.email_service import get_mailer
from app.services.refund_service import refund_transaction
from app.utils.pagination import paginate

router = APIRouter(dependencies=[Depends(require_admin)])


# -------------------------------
# Ledger
# -------------------------------
@router.get("/transactions")
def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    status: TransactionStatus | None = None,
    session: Session = Depends(get_session),
):
    query = (
        select(Transaction, User.email, Video.title)
        .join(User, User.id == Transaction.user_id)
        .join(Video, Video.id == Transaction.video_id)
    )

    if status:
        query = query.where(Transaction.status == status)

    query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc())

    data = paginate(session=session, query=query, page=page, limit=limit)
    data["items"] = [
        {
            "id": txn.id,
            "user_id": txn.user_id,
            "user_email": email,
            "video_id": txn.video_id,
            "video_title": title,
            "razorpay_order_id": txn.razorpay_order_id,
            "razorpay_payment_id": txn.razorpay_payment_id,
            "amount": txn.amount,
            "currency": txn.currency,
            "status": txn.status,
            "created_at": txn.created_at,
        }
        for txn, email, title in data["items"]
    ]
    return data


@router.post("/transactions/{transaction_id}/refund")
def refund(transaction_id: int, session: Session = Depends(get_session)):
    txn = session.get(Transaction, transaction_id)
    if not txn:
        raise NotFound("Transaction not found")
    return refund_transaction(session, txn)


# -------------------------------
# Catalog
# -------------------------------
@router.get("/videos")
def list_videos(folder: str | None = None, session: Session = Depends(get_session)):
    query = select(Video)
    if folder:
        query = query.where(Video.folder == folder)
    items = session.exec(query.order_by(Video.created_at.desc(), Video.id.desc())).all()
    return {"items": items}


@router.get("/folders")
def list_folders(session: Session = Depends(get_session)):
    folders = session.exec(select(Video.folder).distinct().order_by(Video.folder)).all()
    return {"items": folders}


# -------------------------------
# Tokens
# -------------------------------
@router.post("/tokens/{token}/revoke")
def revoke(token: str, session: Session = Depends(get_session)):
    qr = get_token(session, token)
    if not qr:
        raise NotFound("Token not found")
    qr = revoke_token(session, qr)
    return {"ok": True, "token": qr.token, "is_revoked": qr.is_revoked}


# -------------------------------
# Email outbox
# -------------------------------
@router.get("/outbox")
def list_outbox(
    status: EmailStatus | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    session: Session = Depends(get_session),
):
    query = select(EmailOutbox)
    if status:
        query = query.where(EmailOutbox.status == status)
    query = query.order_by(EmailOutbox.created_at.desc(), EmailOutbox.id.desc())

    data = paginate(session=session, query=query, page=page, limit=limit)
    data["items"] = [
        {
            "id": e.id,
            "to_email": e.to_email,
            "subject": e.subject,
            "status": e.status,
            "attempts": e.attempts,
            "last_error": e.last_error,
            "created_at": e.created_at,
            "sent_at": e.sent_at,
        }
        for e in data["items"]
    ]
    return data


@router.post("/outbox/deliver")
def deliver_outbox(
    limit: int = Query(50, ge=1, le=500),
    session: Session = Depends(get_session),
    mailer=Depends(get_mailer),
):
    return deliver_pending(session, mailer, limit=limit)
