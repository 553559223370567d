from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint
from typing import Optional
from datetime import datetime


class AccessToken(SQLModel, table=True):
    __tablename__ = "access_token"
    __table_args__ = (
        CheckConstraint("download_count <= max_downloads", name="ck_access_token_budget"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="user.id", index=True)
    video_id: int = Field(foreign_key="video.id", index=True)
    transaction_id: Optional[int] = Field(default=None, foreign_key="transactions.id", index=True)

    token: str = Field(index=True, unique=True)
    expires_at: datetime
    max_downloads: int = Field(default=1)
    download_count: int = Field(default=0)
    is_revoked: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def downloads_remaining(self) -> int:
        return max(0, self.max_downloads - self.download_count)
