import threading
from datetime import timedelta

import pytest

from bizmodelai.database import Database
from bizmodelai.exceptions import Forbidden, PaymentNotCompleted
from bizmodelai.models import QuizAttempt, User
from bizmodelai.models.payment import PAYMENT_COMPLETED, PAYMENT_FAILED, PAYMENT_PENDING
from bizmodelai.services.attempt_service import attempt_service
from bizmodelai.services.payment_service import PaymentNotFound, payment_service
from bizmodelai.services.unlock_service import unlock_service
from bizmodelai.services.user_service import user_service
from bizmodelai.utils.clock import utcnow


@pytest.fixture
def two_attempts(db, temp_user):
    now = utcnow()
    first = attempt_service.record_attempt(db, temp_user.id, {}, now=now - timedelta(minutes=5))
    second = attempt_service.record_attempt(db, temp_user.id, {}, now=now)
    return first, second


def test_first_report_is_free_once(db, temp_user, two_attempts):
    first, second = two_attempts

    assert unlock_service.is_unlocked(db, temp_user.id, first.id)
    assert not unlock_service.is_unlocked(db, temp_user.id, second.id)
    # the free report stays unlocked on later checks
    assert unlock_service.is_unlocked(db, temp_user.id, first.id)
    assert db.get(User, temp_user.id).has_unlocked_first_report


def test_later_attempt_is_not_free(db, temp_user, two_attempts):
    first, second = two_attempts

    assert not unlock_service.is_unlocked(db, temp_user.id, second.id)
    assert not db.get(User, temp_user.id).has_unlocked_first_report
    assert unlock_service.is_unlocked(db, temp_user.id, first.id)


def test_free_report_claimed_once_under_concurrent_checks(tmp_path, monkeypatch):
    database = Database(f"sqlite:///{tmp_path / 'unlock.db'}").open()
    try:
        with database.session() as setup:
            user = user_service.create_temporary_user(setup, "race@example.com")
            attempt = attempt_service.record_attempt(setup, user.id, {})
            user_id, attempt_id = user.id, attempt.id

        claims = []
        claim = unlock_service.claim_first_report

        def counting_claim(db, uid):
            claimed = claim(db, uid)
            if claimed:
                claims.append(uid)
            return claimed

        monkeypatch.setattr(unlock_service, "claim_first_report", counting_claim)

        workers = 8
        barrier = threading.Barrier(workers)
        results, errors = [], []

        def check():
            try:
                with database.session() as session:
                    barrier.wait()
                    results.append(unlock_service.is_unlocked(session, user_id, attempt_id))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=check) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert results == [True] * workers
        assert claims == [user_id]

        with database.session() as fresh:
            assert fresh.get(User, user_id).has_unlocked_first_report
            assert fresh.get(QuizAttempt, attempt_id).is_report_unlocked
    finally:
        database.close()


def test_stale_session_sees_report_unlocked_elsewhere(database, temp_user, two_attempts):
    first, _ = two_attempts

    with database.session() as stale, database.session() as other:
        # stale has the attempt cached as locked before other claims it
        assert not stale.get(QuizAttempt, first.id).is_report_unlocked

        assert unlock_service.is_unlocked(other, temp_user.id, first.id)

        # stale now reads the consumed flag but still holds the locked attempt
        assert stale.get(User, temp_user.id).has_unlocked_first_report
        assert unlock_service.is_unlocked(stale, temp_user.id, first.id)


def test_require_unlocked(db, temp_user, two_attempts):
    first, second = two_attempts

    unlock_service.require_unlocked(db, temp_user.id, first.id)
    with pytest.raises(PaymentNotCompleted):
        unlock_service.require_unlocked(db, temp_user.id, second.id)


def test_other_users_attempt_is_forbidden(db, temp_user, two_attempts):
    other = user_service.create_temporary_user(db, "other@example.com")
    with pytest.raises(Forbidden):
        unlock_service.is_unlocked(db, other.id, two_attempts[0].id)


def test_completed_payment_unlocks_attempt(db, temp_user, two_attempts):
    _, second = two_attempts
    payment = payment_service.create_payment(db, temp_user.id, 4.99, quiz_attempt_id=second.id)
    assert payment.status == PAYMENT_PENDING
    assert not unlock_service.is_unlocked(db, temp_user.id, second.id)

    completed = payment_service.complete_payment(db, payment.reference)

    assert completed.status == PAYMENT_COMPLETED
    assert completed.completed_at is not None
    assert unlock_service.has_completed_payment(db, second.id)
    assert unlock_service.is_unlocked(db, temp_user.id, second.id)


def test_complete_payment_is_idempotent(db, temp_user, two_attempts):
    payment = payment_service.create_payment(db, temp_user.id, 4.99, quiz_attempt_id=two_attempts[1].id)
    once = payment_service.complete_payment(db, payment.reference)
    twice = payment_service.complete_payment(db, payment.reference)
    assert once.completed_at == twice.completed_at
    assert twice.status == PAYMENT_COMPLETED


def test_failed_payment_does_not_unlock(db, temp_user, two_attempts):
    _, second = two_attempts
    payment = payment_service.create_payment(db, temp_user.id, 4.99, quiz_attempt_id=second.id)

    assert payment_service.fail_payment(db, payment.reference).status == PAYMENT_FAILED
    # a failed payment cannot be completed afterwards
    assert payment_service.complete_payment(db, payment.reference).status == PAYMENT_FAILED
    assert not unlock_service.is_unlocked(db, temp_user.id, second.id)


def test_unknown_payment_reference(db):
    with pytest.raises(PaymentNotFound):
        payment_service.complete_payment(db, "pay_missing")


def test_paid_user_sees_every_report(db, temp_user, two_attempts):
    user_service.promote_to_paid(db, temp_user.id, "s3cret!", bcrypt_rounds=4)
    assert all(unlock_service.is_unlocked(db, temp_user.id, a.id) for a in two_attempts)
