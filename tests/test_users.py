from datetime import timedelta

import pytest

from bizmodelai.exceptions import (
    AlreadyPaid,
    DuplicateEmail,
    InvalidCredentials,
    PaymentNotCompleted,
    TemporaryUserCannotLogin,
    UserNotFound,
)
from bizmodelai.models import QuizAttempt, User
from bizmodelai.services.attempt_service import attempt_service
from bizmodelai.services.payment_service import payment_service
from bizmodelai.services.user_service import user_service
from bizmodelai.utils.clock import utcnow


def test_temporary_user_expires_in_90_days(db):
    now = utcnow()
    user = user_service.create_temporary_user(db, "  New@Example.com ", now=now)

    assert user.email == "new@example.com"
    assert user.is_temporary and not user.is_paid
    assert user.password_hash is None
    assert user.expires_at == now + timedelta(days=90)


def test_duplicate_email_is_rejected(db, temp_user):
    with pytest.raises(DuplicateEmail):
        user_service.create_temporary_user(db, "temp@example.com")
    assert db.query(User).count() == 1


def test_expired_temporary_user_is_replaced(db, expired_user):
    attempt_service.record_attempt(db, expired_user.id, {}, now=utcnow() - timedelta(days=91))

    user = user_service.create_temporary_user(db, "old@example.com")

    assert user.expires_at > utcnow()
    assert db.query(User).count() == 1
    assert db.query(QuizAttempt).count() == 0


def test_guest_attempts_are_adopted(db):
    attempt = attempt_service.record_guest_attempt(db, "guest-abc", {"techSkillsRating": 4})
    user = user_service.create_temporary_user(db, "guest@example.com", session_id="guest-abc")

    db.refresh(attempt)
    assert attempt.user_id == user.id
    assert attempt.expires_at == user.expires_at


def test_promote_to_paid_clears_expiry(db, temp_user):
    attempt = attempt_service.record_attempt(db, temp_user.id, {})
    assert attempt.expires_at is not None

    user = user_service.promote_to_paid(db, temp_user.id, "s3cret!", bcrypt_rounds=4)

    assert user.is_paid and not user.is_temporary
    assert user.expires_at is None
    assert user.password_hash and user.password_hash != "s3cret!"
    assert db.get(QuizAttempt, attempt.id).expires_at is None


def test_promote_twice_raises_already_paid(db, temp_user):
    user_service.promote_to_paid(db, temp_user.id, "s3cret!", bcrypt_rounds=4)
    with pytest.raises(AlreadyPaid):
        user_service.promote_to_paid(db, temp_user.id, "other-pass", bcrypt_rounds=4)


def test_promote_unknown_user(db):
    with pytest.raises(UserNotFound):
        user_service.promote_to_paid(db, 999, "s3cret!", bcrypt_rounds=4)


def test_never_temporary_and_paid(db, temp_user):
    user_service.promote_to_paid(db, temp_user.id, "s3cret!", bcrypt_rounds=4)
    user_service.create_temporary_user(db, "other@example.com")

    for user in db.query(User).all():
        assert not (user.is_temporary and user.is_paid)


def test_temporary_user_cannot_log_in(db, temp_user):
    with pytest.raises(TemporaryUserCannotLogin):
        user_service.authenticate(db, "temp@example.com", "")
    with pytest.raises(TemporaryUserCannotLogin):
        user_service.authenticate(db, "temp@example.com", "anything")


def test_paid_user_login(db, temp_user):
    user_service.promote_to_paid(db, temp_user.id, "s3cret!", bcrypt_rounds=4)

    assert user_service.authenticate(db, "TEMP@example.com", "s3cret!").id == temp_user.id
    with pytest.raises(InvalidCredentials):
        user_service.authenticate(db, "temp@example.com", "wrong")
    with pytest.raises(InvalidCredentials):
        user_service.authenticate(db, "nobody@example.com", "s3cret!")


def test_complete_signup_requires_completed_payment(db, temp_user):
    payment = payment_service.create_payment(db, temp_user.id, 9.99)

    with pytest.raises(PaymentNotCompleted):
        user_service.complete_signup(db, temp_user.email, "s3cret!", payment.reference, bcrypt_rounds=4)

    payment_service.complete_payment(db, payment.reference)
    user = user_service.complete_signup(
        db, temp_user.email, "s3cret!", payment.reference,
        first_name="Tess", last_name="Ter", bcrypt_rounds=4,
    )
    assert user.is_paid
    assert user.last_name == "Ter"


def test_promote_paid_user_keeps_name(db, temp_user):
    user_service.promote_to_paid(
        db, temp_user.id, "s3cret!", bcrypt_rounds=4, first_name="Tess", last_name="Ter",
    )

    with pytest.raises(AlreadyPaid):
        user_service.promote_to_paid(
            db, temp_user.id, "other-pass", bcrypt_rounds=4, first_name="Mallory", last_name="Evil",
        )

    db.expire_all()
    user = db.get(User, temp_user.id)
    assert user.first_name == "Tess"
    assert user.last_name == "Ter"
    assert user_service.authenticate(db, temp_user.email, "s3cret!").id == temp_user.id
