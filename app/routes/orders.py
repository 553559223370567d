from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.database import get_session
from app.models.transaction import Transaction
from app.models.user import User
from app.models.video import Video
from app.schemas.order_schemas import (
    CreateBatchRequest,
    CreateOrderRequest,
    VerifyBatchRequest,
    VerifyPaymentRequest,
)
from app.services.checkout_service import (
    finalize_batch,
    finalize_checkout,
    initiate_batch,
    initiate_checkout,
)
from app.services.email_service import get_mailer
from app.services.payment_service import get_payment_gateway
from app.utils.token import get_current_user

router = APIRouter()


@router.post("/create")
def create_order(
    payload: CreateOrderRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway=Depends(get_payment_gateway),
):
    return initiate_checkout(session, gateway, current_user, payload.video_id)


@router.post("/verify")
def verify_payment(
    payload: VerifyPaymentRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway=Depends(get_payment_gateway),
    mailer=Depends(get_mailer),
):
    return finalize_checkout(
        session,
        gateway,
        mailer,
        current_user,
        order_id=payload.razorpay_order_id,
        payment_id=payload.razorpay_payment_id,
        signature=payload.razorpay_signature,
        video_id=payload.video_id,
    )


@router.post("/create-batch")
def create_orders_batch(
    payload: CreateBatchRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway=Depends(get_payment_gateway),
):
    return initiate_batch(session, gateway, current_user, payload.video_ids)


@router.post("/verify-batch")
def verify_payments_batch(
    payload: VerifyBatchRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway=Depends(get_payment_gateway),
    mailer=Depends(get_mailer),
):
    return finalize_batch(
        session,
        gateway,
        mailer,
        current_user,
        [item.model_dump() for item in payload.items],
    )


@router.get("/my-transactions")
def my_transactions(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    rows = session.exec(
        select(Transaction, Video)
        .join(Video, Video.id == Transaction.video_id)
        .where(Transaction.user_id == current_user.id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
    ).all()

    return {
        "items": [
            {
                "id": txn.id,
                "razorpay_order_id": txn.razorpay_order_id,
                "razorpay_payment_id": txn.razorpay_payment_id,
                "amount": txn.amount,
                "currency": txn.currency,
                "status": txn.status,
                "created_at": txn.created_at,
                "video": {
                    "id": video.id,
                    "title": video.title,
                    "price": video.price,
                    "file_url": video.file_url,
                },
            }
            for txn, video in rows
        ]
    }
