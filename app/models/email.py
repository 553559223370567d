from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, SQLModel


class EmailStatus(str, Enum):
    pending = "pending"
    sent = "sent"
    failed = "failed"


class EmailOutbox(SQLModel, table=True):
    __tablename__ = "email_outbox"

    id: Optional[int] = Field(default=None, primary_key=True)
    to_email: str
    subject: str
    html: str
    status: EmailStatus = Field(default=EmailStatus.pending, index=True)
    attempts: int = Field(default=0)
    last_error: Optional[str] = None
    related_token_id: Optional[int] = Field(default=None, foreign_key="access_token.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    sent_at: Optional[datetime] = None
