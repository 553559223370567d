from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from app.models.user import Role


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    name: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"


class UserPublic(BaseModel):
    id: int
    email: EmailStr
    name: Optional[str] = None
    role: Role
    created_at: Optional[datetime] = None


class AdminTokenResponse(TokenResponse):
    user: UserPublic


class MeResponse(BaseModel):
    user: UserPublic
