from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class VideoCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    price: int = Field(ge=1)
    folder: str = "General"
    preview_url: str
    file_url: str
    thumbnail_url: Optional[str] = None


class VideoUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[int] = Field(default=None, ge=1)
    folder: Optional[str] = None
    is_active: Optional[bool] = None


class FeedItem(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    preview_url: str
    price: int
    folder: str
    created_at: datetime


class FeedResponse(BaseModel):
    items: List[FeedItem]
    page: int
    limit: int
    total: int
    has_more: bool
    next_cursor: Optional[str] = None


class OwnedToken(BaseModel):
    token: str
    expires_at: datetime
    max_downloads: int
    download_count: int


class PurchasedVideo(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    file_url: str
    thumbnail_url: Optional[str] = None
    price: int
    created_at: datetime
    purchase_date: Optional[datetime] = None
    qr_tokens: List[OwnedToken] = []
