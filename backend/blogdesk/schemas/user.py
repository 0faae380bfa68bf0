"""User 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime

Role = Literal["employee", "admin"]


class UserBrief(BaseModel):
    user_id: int
    username: str
    email: str

    model_config = {"from_attributes": True}


class UserOut(UserBrief):
    role: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: str = Field(..., min_length=3, max_length=120, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=128)


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthPayload(BaseModel):
    user: UserOut
    token: str


class UserCreate(RegisterRequest):
    role: Role = "employee"


class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[str] = Field(None, min_length=3, max_length=120, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    role: Optional[Role] = None


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6, max_length=128)
