"""
Payment ledger
Pending payments are created by the app; the provider bridge completes them
"""
import logging
import secrets
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from bizmodelai.exceptions import NotFound, UserNotFound
from bizmodelai.models import Payment, QuizAttempt, User
from bizmodelai.models.payment import PAYMENT_COMPLETED, PAYMENT_FAILED, PAYMENT_PENDING
from bizmodelai.services.attempt_service import attempt_service
from bizmodelai.utils.clock import utcnow

logger = logging.getLogger(__name__)


class PaymentNotFound(NotFound):
    """Payment not found"""


class PaymentService:
    """
    Card processing and webhook verification live with the provider. This
    service only records the intent and the provider's verdict.
    """

    def create_payment(
        self,
        db: Session,
        user_id: int,
        amount: float,
        quiz_attempt_id: Optional[int] = None,
        currency: str = "usd",
        provider: str = "stripe",
    ) -> Payment:
        """
        Record a pending payment for a report unlock (quiz_attempt_id set)
        or an account upgrade (quiz_attempt_id None)

        Raises:
            UserNotFound: unknown user
            NotFound / Forbidden: the attempt is missing or not the user's
        """
        if db.get(User, user_id) is None:
            raise UserNotFound()
        if quiz_attempt_id is not None:
            attempt_service.get_attempt(db, quiz_attempt_id, user_id)

        payment = Payment(
            user_id=user_id,
            quiz_attempt_id=quiz_attempt_id,
            amount=Decimal(str(amount)),
            currency=currency,
            status=PAYMENT_PENDING,
            provider=provider,
            reference=f"pay_{secrets.token_hex(12)}",
        )
        db.add(payment)
        db.commit()
        db.refresh(payment)

        logger.info(
            f"Payment created: {payment.reference} user={user_id} "
            f"attempt={quiz_attempt_id} amount={payment.amount}"
        )
        return payment

    def get_by_reference(self, db: Session, reference: str) -> Payment:
        payment = db.query(Payment).filter(Payment.reference == reference).first()
        if payment is None:
            raise PaymentNotFound()
        return payment

    def complete_payment(self, db: Session, reference: str, now: Optional[datetime] = None) -> Payment:
        """
        pending -> completed; completing twice is a no-op

        A report payment also marks its attempt unlocked.
        """
        now = now or utcnow()
        updated = db.query(Payment).filter(
            Payment.reference == reference,
            Payment.status == PAYMENT_PENDING,
        ).update(
            {"status": PAYMENT_COMPLETED, "completed_at": now},
            synchronize_session=False,
        )

        payment = db.query(Payment).filter(Payment.reference == reference).first()
        if payment is None:
            db.rollback()
            raise PaymentNotFound()

        if updated and payment.quiz_attempt_id is not None:
            db.query(QuizAttempt).filter(QuizAttempt.id == payment.quiz_attempt_id).update(
                {"is_report_unlocked": True},
                synchronize_session=False,
            )
        db.commit()
        db.expire_all()

        if updated:
            logger.info(f"Payment completed: {reference}")
        else:
            logger.info(f"Payment {reference} already {payment.status}, nothing to complete")
        return self.get_by_reference(db, reference)

    def fail_payment(self, db: Session, reference: str) -> Payment:
        updated = db.query(Payment).filter(
            Payment.reference == reference,
            Payment.status == PAYMENT_PENDING,
        ).update({"status": PAYMENT_FAILED}, synchronize_session=False)
        db.commit()
        db.expire_all()

        payment = self.get_by_reference(db, reference)
        if updated:
            logger.warning(f"Payment failed: {reference}")
        return payment

    def list_payments(self, db: Session, user_id: int) -> List[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.user_id == user_id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .all()
        )


# Global instance
payment_service = PaymentService()
