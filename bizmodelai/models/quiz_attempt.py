"""
QuizAttempt model - stores quiz submissions and their score snapshot
"""
from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from bizmodelai.database import Base
from bizmodelai.utils.clock import utcnow

JSONType = JSON().with_variant(JSONB(), "postgresql")


class QuizAttempt(Base):
    """
    Quiz attempts table - answers plus the ranking computed at submit time
    """
    __tablename__ = "quiz_attempts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    session_id = Column(String(64), nullable=True, index=True)  # guest owner
    quiz_response = Column(JSONType, nullable=False)
    score_snapshot = Column(JSONType, nullable=False)  # ranked BusinessModelScore list
    is_report_unlocked = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP, nullable=False, default=utcnow, index=True)
    expires_at = Column(TIMESTAMP, nullable=True, index=True)

    user = relationship("User", back_populates="attempts")
    payments = relationship("Payment", back_populates="quiz_attempt")

    def __repr__(self):
        return f"<QuizAttempt(id={self.id}, user_id={self.user_id}, unlocked={self.is_report_unlocked})>"
