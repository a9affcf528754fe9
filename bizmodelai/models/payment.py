"""
Payment model - completed purchases unlock a report or upgrade an account
"""
from sqlalchemy import Column, Integer, String, Numeric, TIMESTAMP, ForeignKey
from sqlalchemy.orm import relationship

from bizmodelai.database import Base
from bizmodelai.utils.clock import utcnow

PAYMENT_PENDING = "pending"
PAYMENT_COMPLETED = "completed"
PAYMENT_FAILED = "failed"


class Payment(Base):
    """
    Payments table - written by the payment provider bridge

    quiz_attempt_id set: unlocks that report. NULL: account upgrade.
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    quiz_attempt_id = Column(Integer, ForeignKey("quiz_attempts.id"), nullable=True, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="usd")
    status = Column(String(20), nullable=False, default=PAYMENT_PENDING, index=True)
    provider = Column(String(20), nullable=False, default="stripe")
    reference = Column(String(100), unique=True, nullable=False, index=True)
    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)
    completed_at = Column(TIMESTAMP, nullable=True)

    user = relationship("User", back_populates="payments")
    quiz_attempt = relationship("QuizAttempt", back_populates="payments")

    def __repr__(self):
        return f"<Payment(id={self.id}, user_id={self.user_id}, status={self.status}, amount={self.amount})>"
