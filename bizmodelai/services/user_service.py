"""
User lifecycle service
Guest -> Temporary (email only, expiring) -> Paid (password, permanent)
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from bizmodelai.exceptions import (
    AlreadyPaid,
    DuplicateEmail,
    InvalidCredentials,
    PaymentNotCompleted,
    TemporaryUserCannotLogin,
    UserNotFound,
)
from bizmodelai.models import Payment, QuizAttempt, User
from bizmodelai.models.payment import PAYMENT_COMPLETED
from bizmodelai.utils.clock import utcnow
from bizmodelai.utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass
class ReapSummary:
    """Rows removed by one reaper run"""
    users: int = 0
    attempts: int = 0
    payments: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        """Users plus quiz attempts deleted"""
        return self.users + self.attempts


class UserService:
    """
    Service for the temporary -> paid user lifecycle

    Every check-then-write is a single conditional statement or leans on the
    unique email constraint, so concurrent requests for the same user cannot
    both win.
    """

    TEMPORARY_RETENTION = timedelta(days=90)

    def get_user(self, db: Session, user_id: int) -> User:
        user = db.get(User, user_id)
        if user is None:
            raise UserNotFound()
        return user

    def get_user_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == normalize_email(email)).first()

    def create_temporary_user(
        self,
        db: Session,
        email: str,
        session_id: Optional[str] = None,
        first_name: Optional[str] = None,
        retention: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> User:
        """
        Create an email-only user that expires after the retention period

        An expired temporary user holding the same email is removed first.
        Guest attempts recorded under session_id are adopted by the new user.

        Raises:
            DuplicateEmail: a live user already owns this email
        """
        now = now or utcnow()
        email = normalize_email(email)
        expires_at = now + (retention or self.TEMPORARY_RETENTION)

        stale_ids = [
            row.id for row in db.query(User.id).filter(
                User.email == email,
                User.is_temporary.is_(True),
                User.is_paid.is_(False),
                User.expires_at <= now,
            )
        ]
        for stale_id in stale_ids:
            logger.info(f"Replacing expired temporary user {stale_id} for {email}")
            self._delete_user_with_dependents(db, stale_id, now)

        user = User(
            email=email,
            first_name=first_name,
            password_hash=None,
            is_paid=False,
            is_temporary=True,
            session_id=session_id,
            expires_at=expires_at,
            has_unlocked_first_report=False,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.info(f"Temporary user rejected, email already registered: {email}")
            raise DuplicateEmail()

        if session_id:
            adopted = db.query(QuizAttempt).filter(
                QuizAttempt.session_id == session_id,
                QuizAttempt.user_id.is_(None),
            ).update(
                {"user_id": user.id, "expires_at": expires_at},
                synchronize_session=False,
            )
            if adopted:
                logger.info(f"User {user.id} adopted {adopted} guest quiz attempts")

        db.commit()
        db.refresh(user)
        logger.info(f"Temporary user created: {user.id}, expires {expires_at.isoformat()}")
        return user

    def promote_to_paid(
        self,
        db: Session,
        user_id: int,
        password: str,
        bcrypt_rounds: int = 12,
        now: Optional[datetime] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> User:
        """
        Temporary -> Paid, exactly once

        Sets the password (and the name, when given), clears every expiry the
        user and their attempts carry and flips the flags in one transaction.

        Raises:
            UserNotFound: no such user
            AlreadyPaid: the user was already promoted
        """
        now = now or utcnow()
        password_hash = hash_password(password, rounds=bcrypt_rounds)
        values = {
            "password_hash": password_hash,
            "is_paid": True,
            "is_temporary": False,
            "expires_at": None,
            "updated_at": now,
        }
        if first_name:
            values["first_name"] = first_name
        if last_name:
            values["last_name"] = last_name

        updated = db.query(User).filter(
            User.id == user_id,
            User.is_paid.is_(False),
        ).update(values, synchronize_session=False)
        if updated == 0:
            db.rollback()
            if db.query(User.id).filter(User.id == user_id).first() is None:
                raise UserNotFound()
            raise AlreadyPaid()

        db.query(QuizAttempt).filter(QuizAttempt.user_id == user_id).update(
            {"expires_at": None},
            synchronize_session=False,
        )
        db.commit()
        db.expire_all()

        logger.info(f"User {user_id} promoted to paid")
        return db.get(User, user_id)

    def complete_signup(
        self,
        db: Session,
        email: str,
        password: str,
        payment_reference: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        bcrypt_rounds: int = 12,
    ) -> User:
        """
        Finish the paid signup of a temporary user

        Raises:
            UserNotFound: no user with this email
            AlreadyPaid: account is already paid
            PaymentNotCompleted: no completed payment with this reference
        """
        user = self.get_user_by_email(db, email)
        if user is None:
            raise UserNotFound()
        if user.is_paid:
            raise AlreadyPaid()

        payment = db.query(Payment).filter(
            Payment.reference == payment_reference,
            Payment.user_id == user.id,
            Payment.status == PAYMENT_COMPLETED,
        ).first()
        if payment is None:
            raise PaymentNotCompleted("Complete the payment before creating your account")

        return self.promote_to_paid(
            db,
            user.id,
            password,
            bcrypt_rounds=bcrypt_rounds,
            first_name=first_name,
            last_name=last_name,
        )

    def authenticate(self, db: Session, email: str, password: str) -> User:
        """
        Password login

        Raises:
            TemporaryUserCannotLogin: the email belongs to a temporary user,
                whatever password was given
            InvalidCredentials: unknown email or wrong password
        """
        user = self.get_user_by_email(db, email)
        if user is None:
            raise InvalidCredentials()
        if user.is_temporary:
            raise TemporaryUserCannotLogin()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        return user

    def reap_expired(
        self,
        db: Session,
        now: Optional[datetime] = None,
        batch_size: int = 100,
    ) -> ReapSummary:
        """
        Delete expired unpaid users and expired quiz attempts

        Each user goes in its own transaction together with its attempts and
        payments. A user that fails is logged and left for the next run.
        """
        now = now or utcnow()
        summary = ReapSummary()

        last_id = 0
        while True:
            user_ids = [
                row.id for row in db.query(User.id).filter(
                    User.is_paid.is_(False),
                    User.expires_at.isnot(None),
                    User.expires_at <= now,
                    User.id > last_id,
                ).order_by(User.id).limit(batch_size)
            ]
            if not user_ids:
                break

            for user_id in user_ids:
                try:
                    counts = self._delete_user_with_dependents(db, user_id, now)
                    if counts is None:
                        db.rollback()
                        continue
                    db.commit()
                    attempts, payments = counts
                    summary.users += 1
                    summary.attempts += attempts
                    summary.payments += payments
                except SQLAlchemyError:
                    db.rollback()
                    summary.failed += 1
                    logger.exception(f"Failed to reap expired user {user_id}")

            last_id = user_ids[-1]
            if len(user_ids) < batch_size:
                break

        self._reap_expired_attempts(db, now, batch_size, summary)
        db.expire_all()

        logger.info(
            f"Reaper finished: users={summary.users}, attempts={summary.attempts}, "
            f"payments={summary.payments}, failed={summary.failed}"
        )
        return summary

    def _reap_expired_attempts(self, db: Session, now: datetime, batch_size: int, summary: ReapSummary) -> None:
        """Expired attempts of guests and unpaid users, one batch per transaction"""
        unpaid_users = select(User.id).where(User.is_paid.is_(False))
        last_id = 0
        while True:
            attempt_ids = [
                row.id for row in db.query(QuizAttempt.id).filter(
                    QuizAttempt.expires_at.isnot(None),
                    QuizAttempt.expires_at <= now,
                    or_(QuizAttempt.user_id.is_(None), QuizAttempt.user_id.in_(unpaid_users)),
                    QuizAttempt.id > last_id,
                ).order_by(QuizAttempt.id).limit(batch_size)
            ]
            if not attempt_ids:
                break

            try:
                payments = db.query(Payment).filter(
                    Payment.quiz_attempt_id.in_(attempt_ids)
                ).delete(synchronize_session="fetch")
                attempts = db.query(QuizAttempt).filter(
                    QuizAttempt.id.in_(attempt_ids),
                    QuizAttempt.expires_at <= now,
                ).delete(synchronize_session="fetch")
                db.commit()
                summary.attempts += attempts
                summary.payments += payments
            except SQLAlchemyError:
                db.rollback()
                summary.failed += len(attempt_ids)
                logger.exception(f"Failed to reap expired quiz attempts {attempt_ids[0]}..{attempt_ids[-1]}")

            last_id = attempt_ids[-1]
            if len(attempt_ids) < batch_size:
                break

    def _delete_user_with_dependents(self, db: Session, user_id: int, now: datetime):
        """
        Delete a user's payments, attempts and the user row, without committing

        Returns (attempts, payments) deleted, or None when the user no longer
        matches the expiry predicate (e.g. promoted meanwhile); the caller
        must then roll back.
        """
        user_attempts = select(QuizAttempt.id).where(QuizAttempt.user_id == user_id)

        payments = db.query(Payment).filter(
            or_(Payment.user_id == user_id, Payment.quiz_attempt_id.in_(user_attempts))
        ).delete(synchronize_session="fetch")
        attempts = db.query(QuizAttempt).filter(
            QuizAttempt.user_id == user_id
        ).delete(synchronize_session="fetch")
        users = db.query(User).filter(
            User.id == user_id,
            User.is_paid.is_(False),
            User.expires_at.isnot(None),
            User.expires_at <= now,
        ).delete(synchronize_session="fetch")

        if users == 0:
            return None
        return attempts, payments


# Global instance
user_service = UserService()
