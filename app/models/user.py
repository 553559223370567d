from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Role(str, Enum):
    user = "user"
    admin = "admin"


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password: str
    name: Optional[str] = None
    role: Role = Field(default=Role.user)
    can_login: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
