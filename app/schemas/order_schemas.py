from pydantic import BaseModel, Field
from typing import List, Optional


class CreateOrderRequest(BaseModel):
    video_id: int


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)
    video_id: Optional[int] = None


class CreateBatchRequest(BaseModel):
    video_ids: List[int] = Field(min_length=1)


class VerifyBatchRequest(BaseModel):
    items: List[VerifyPaymentRequest] = Field(min_length=1)
