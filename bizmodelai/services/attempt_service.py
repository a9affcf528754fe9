"""
Quiz attempt store
Scores at write time and enforces ownership on every read
"""
import logging
from datetime import datetime, timedelta
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from bizmodelai.exceptions import Forbidden, NotFound, UserNotFound
from bizmodelai.models import QuizAttempt, User
from bizmodelai.services.scoring_service import scoring_service
from bizmodelai.utils.clock import utcnow

logger = logging.getLogger(__name__)


class AttemptService:
    """
    Service for persisting and reading quiz attempts

    Retention is fixed when the attempt is written:
    - guest (no user yet): 24 hours
    - temporary user: 90 days
    - paid user: never expires
    """

    GUEST_RETENTION = timedelta(hours=24)
    TEMPORARY_RETENTION = timedelta(days=90)

    def __init__(self, scorer=scoring_service):
        self.scorer = scorer

    def expires_at_for(
        self,
        user: Optional[User],
        now: datetime,
        guest_retention: Optional[timedelta] = None,
        temporary_retention: Optional[timedelta] = None,
    ) -> Optional[datetime]:
        if user is None:
            return now + (guest_retention or self.GUEST_RETENTION)
        if user.is_paid:
            return None
        return now + (temporary_retention or self.TEMPORARY_RETENTION)

    def record_attempt(
        self,
        db: Session,
        user_id: int,
        response: Any,
        temporary_retention: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> QuizAttempt:
        """
        Score a quiz response and store it for a user

        Raises:
            InvalidResponseShape: malformed response (nothing is stored)
            UserNotFound: unknown user
        """
        now = now or utcnow()
        normalized = self.scorer.normalize_response(response)
        snapshot = self.scorer.score(normalized)

        user = db.get(User, user_id)
        if user is None:
            raise UserNotFound()

        attempt = QuizAttempt(
            user_id=user.id,
            quiz_response=dict(response),
            score_snapshot=snapshot,
            is_report_unlocked=False,
            created_at=now,
            expires_at=self.expires_at_for(user, now, temporary_retention=temporary_retention),
        )
        db.add(attempt)
        db.commit()
        db.refresh(attempt)

        logger.info(
            f"Quiz attempt saved: {attempt.id} for user {user_id}, "
            f"top match: {snapshot[0]['businessModelId']}"
        )
        return attempt

    def record_guest_attempt(
        self,
        db: Session,
        session_id: str,
        response: Any,
        guest_retention: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> QuizAttempt:
        """Store an attempt for a guest session; it is adopted once an email is given"""
        now = now or utcnow()
        normalized = self.scorer.normalize_response(response)
        snapshot = self.scorer.score(normalized)

        attempt = QuizAttempt(
            user_id=None,
            session_id=session_id,
            quiz_response=dict(response),
            score_snapshot=snapshot,
            is_report_unlocked=False,
            created_at=now,
            expires_at=self.expires_at_for(None, now, guest_retention=guest_retention),
        )
        db.add(attempt)
        db.commit()
        db.refresh(attempt)

        logger.info(f"Guest quiz attempt saved: {attempt.id}")
        return attempt

    def get_attempt(self, db: Session, attempt_id: int, requesting_user_id: int) -> QuizAttempt:
        """
        Raises:
            NotFound: no such attempt
            Forbidden: the attempt belongs to someone else
        """
        attempt = db.get(QuizAttempt, attempt_id)
        if attempt is None:
            raise NotFound()
        if attempt.user_id is None or attempt.user_id != requesting_user_id:
            logger.warning(f"User {requesting_user_id} denied access to quiz attempt {attempt_id}")
            raise Forbidden()
        return attempt

    def get_guest_attempt(self, db: Session, attempt_id: int, session_id: str) -> QuizAttempt:
        """Same rules as get_attempt, keyed on the guest session"""
        attempt = db.get(QuizAttempt, attempt_id)
        if attempt is None:
            raise NotFound()
        if attempt.user_id is not None or not session_id or attempt.session_id != session_id:
            raise Forbidden()
        return attempt

    def list_attempts(self, db: Session, user_id: int) -> List[QuizAttempt]:
        """A user's attempts, newest first"""
        return (
            db.query(QuizAttempt)
            .filter(QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.created_at.desc(), QuizAttempt.id.desc())
            .all()
        )

    def first_attempt_id(self, db: Session, user_id: int) -> Optional[int]:
        """Id of the user's chronologically first attempt"""
        row = (
            db.query(QuizAttempt.id)
            .filter(QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.created_at.asc(), QuizAttempt.id.asc())
            .first()
        )
        return row.id if row else None


# Global instance
attempt_service = AttemptService()
