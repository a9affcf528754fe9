"""
Pydantic schemas for payments
"""
from pydantic import BaseModel
from typing import Optional
from decimal import Decimal
from datetime import datetime


class PaymentCreate(BaseModel):
    """quizAttemptId set: report unlock. Omitted: account upgrade."""
    quizAttemptId: Optional[int] = None


class PaymentResponse(BaseModel):
    id: int
    user_id: int
    quiz_attempt_id: Optional[int] = None
    amount: Decimal
    currency: str
    status: str
    provider: str
    reference: str
    created_at: datetime
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReapResponse(BaseModel):
    users: int
    attempts: int
    payments: int
    failed: int
    total: int
