"""
Report unlock gate
Decides whether a quiz attempt's full report may be shown
"""
import logging

from sqlalchemy.orm import Session

from bizmodelai.exceptions import PaymentNotCompleted, UserNotFound
from bizmodelai.models import Payment, QuizAttempt, User
from bizmodelai.models.payment import PAYMENT_COMPLETED
from bizmodelai.services.attempt_service import attempt_service

logger = logging.getLogger(__name__)


class UnlockService:
    """
    Entitlement checks, evaluated in order:
    1. paid users see every report
    2. a completed payment for this attempt
    3. the attempt was already unlocked (payment or free first report)
    4. first report free: the user's chronologically first attempt, claimed
       once per user with a compare-and-swap on has_unlocked_first_report
    """

    def __init__(self, attempts=attempt_service):
        self.attempts = attempts

    def has_completed_payment(self, db: Session, attempt_id: int) -> bool:
        return db.query(Payment.id).filter(
            Payment.quiz_attempt_id == attempt_id,
            Payment.status == PAYMENT_COMPLETED,
        ).first() is not None

    def claim_first_report(self, db: Session, user_id: int) -> bool:
        """
        Atomically consume the user's free report

        Returns True only for the single caller whose update flipped the flag.
        Does not commit.
        """
        claimed = db.query(User).filter(
            User.id == user_id,
            User.has_unlocked_first_report.is_(False),
        ).update(
            {"has_unlocked_first_report": True},
            synchronize_session=False,
        )
        return claimed == 1

    def is_unlocked(self, db: Session, user_id: int, attempt_id: int) -> bool:
        """
        Raises:
            NotFound: no such attempt
            Forbidden: the attempt belongs to someone else
            UserNotFound: unknown user
        """
        attempt = self.attempts.get_attempt(db, attempt_id, user_id)
        user = db.get(User, user_id)
        if user is None:
            raise UserNotFound()

        if user.is_paid:
            return True

        if self.has_completed_payment(db, attempt_id):
            return True

        if attempt.is_report_unlocked:
            return True

        if user.has_unlocked_first_report:
            # the free report may have gone to this attempt after it was loaded
            return self._persisted_unlock(db, attempt_id)

        if self.attempts.first_attempt_id(db, user_id) != attempt_id:
            return False

        if self.claim_first_report(db, user_id):
            db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id).update(
                {"is_report_unlocked": True},
                synchronize_session=False,
            )
            db.commit()
            db.expire_all()
            logger.info(f"Free first report unlocked: user {user_id}, attempt {attempt_id}")
            return True

        # Lost the race: another request consumed the flag, possibly for this attempt
        db.rollback()
        db.expire_all()
        return self._persisted_unlock(db, attempt_id)

    def _persisted_unlock(self, db: Session, attempt_id: int) -> bool:
        unlocked = db.query(QuizAttempt.is_report_unlocked).filter(QuizAttempt.id == attempt_id).scalar()
        return bool(unlocked)

    def require_unlocked(self, db: Session, user_id: int, attempt_id: int) -> None:
        if not self.is_unlocked(db, user_id, attempt_id):
            raise PaymentNotCompleted()


# Global instance
unlock_service = UnlockService()
