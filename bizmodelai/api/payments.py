"""
Payment API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
import logging

from bizmodelai.api.deps import get_current_user, get_settings, require_api_key
from bizmodelai.config import Settings
from bizmodelai.database import get_db
from bizmodelai.exceptions import AlreadyPaid
from bizmodelai.models import User
from bizmodelai.schemas.payment import PaymentCreate, PaymentResponse
from bizmodelai.services.payment_service import payment_service


router = APIRouter(prefix="/api/payments", tags=["payments"])
logger = logging.getLogger(__name__)


@router.post("", response_model=PaymentResponse, status_code=201)
async def create_payment(
    body: PaymentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    """
    Start a payment

    With quizAttemptId: unlock that report. Without: upgrade the account.
    The provider bridge later completes or fails it by reference.
    """
    if body.quizAttemptId is None:
        if user.is_paid:
            raise AlreadyPaid()
        amount = settings.ACCOUNT_UPGRADE_PRICE
    else:
        amount = settings.REPORT_UNLOCK_PRICE

    return payment_service.create_payment(
        db,
        user.id,
        amount,
        quiz_attempt_id=body.quizAttemptId,
        currency=settings.PAYMENT_CURRENCY,
    )


@router.get("", response_model=List[PaymentResponse])
async def list_payments(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return payment_service.list_payments(db, user.id)


@router.post(
    "/{reference}/complete",
    response_model=PaymentResponse,
    dependencies=[Depends(require_api_key)],
)
async def complete_payment(reference: str, db: Session = Depends(get_db)):
    """Provider bridge: mark a payment completed (idempotent)"""
    return payment_service.complete_payment(db, reference)


@router.post(
    "/{reference}/fail",
    response_model=PaymentResponse,
    dependencies=[Depends(require_api_key)],
)
async def fail_payment(reference: str, db: Session = Depends(get_db)):
    """Provider bridge: mark a pending payment failed"""
    return payment_service.fail_payment(db, reference)
