"""
Pydantic schemas for users and authentication
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


class TemporaryUserCreate(BaseModel):
    """Email capture after the quiz"""
    email: EmailStr
    firstName: Optional[str] = Field(None, max_length=100)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SignupRequest(BaseModel):
    """Finish a paid signup; the payment must already be completed"""
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    paymentReference: str = Field(..., min_length=1, max_length=100)
    firstName: Optional[str] = Field(None, max_length=100)
    lastName: Optional[str] = Field(None, max_length=100)


class UserResponse(BaseModel):
    """Public view of a user, never includes the password hash"""
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_paid: bool
    is_temporary: bool
    expires_at: Optional[datetime] = None
    has_unlocked_first_report: bool
    created_at: datetime

    class Config:
        from_attributes = True
