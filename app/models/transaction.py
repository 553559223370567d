from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class TransactionStatus(str, Enum):
    created = "created"
    paid = "paid"
    failed = "failed"
    refunded = "refunded"


class Transaction(SQLModel, table=True):
    __tablename__ = "transactions"

    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="user.id", index=True)
    video_id: int = Field(foreign_key="video.id", index=True)

    razorpay_order_id: str = Field(index=True, unique=True)
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None

    amount: int = Field(nullable=False)
    currency: str = Field(default="INR")
    status: TransactionStatus = Field(default=TransactionStatus.created, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
