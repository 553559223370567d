from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint
from typing import Optional
from datetime import datetime


class Video(SQLModel, table=True):
    __table_args__ = (CheckConstraint("price >= 1", name="ck_video_price_positive"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None

    # whole INR units
    price: int

    folder: str = Field(default="General", index=True)

    thumbnail_url: Optional[str] = None
    preview_url: str
    file_url: str

    # permanent preview token minted on upload
    qr_token: Optional[str] = None

    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
