"""
User model - temporary (email only) and paid accounts
"""
from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP, CheckConstraint
from sqlalchemy.orm import relationship

from bizmodelai.database import Base
from bizmodelai.utils.clock import utcnow


class User(Base):
    """
    Users table - one row shape for both temporary and paid accounts

    Guests are never stored here; a row appears once an email is captured.
    """
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "NOT (is_temporary AND is_paid)",
            name="ck_users_temporary_not_paid",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    is_paid = Column(Boolean, nullable=False, default=False)
    is_temporary = Column(Boolean, nullable=False, default=True)
    session_id = Column(String(64), nullable=True, index=True)
    expires_at = Column(TIMESTAMP, nullable=True, index=True)
    has_unlocked_first_report = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=utcnow, onupdate=utcnow)

    attempts = relationship("QuizAttempt", back_populates="user")
    payments = relationship("Payment", back_populates="user")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, paid={self.is_paid}, temporary={self.is_temporary})>"
