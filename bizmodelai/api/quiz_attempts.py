"""
Quiz attempt API endpoints: storage, unlock status, reports, insights and email
"""
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import timedelta
import logging

from bizmodelai.api.deps import (
    ensure_guest_session,
    get_guest_session,
    get_insight_service,
    get_mailer,
    get_optional_user,
    get_current_user,
    get_settings,
)
from bizmodelai.config import Settings
from bizmodelai.database import get_db
from bizmodelai.exceptions import EmailRequired
from bizmodelai.models import QuizAttempt, User
from bizmodelai.schemas.quiz import (
    EmailResultsRequest,
    EmailResultsResponse,
    InsightResponse,
    QuizAttemptResponse,
    QuizSubmission,
    ReportResponse,
    UnlockStatusResponse,
)
from bizmodelai.services.attempt_service import attempt_service
from bizmodelai.services.email_service import Mailer
from bizmodelai.services.insight_service import InsightService
from bizmodelai.services.report_service import report_service
from bizmodelai.services.unlock_service import unlock_service


router = APIRouter(prefix="/api/quiz-attempts", tags=["quiz-attempts"])
logger = logging.getLogger(__name__)


def _load_attempt(
    db: Session, attempt_id: int, user: Optional[User], guest_session: Optional[str]
) -> QuizAttempt:
    if user is not None:
        return attempt_service.get_attempt(db, attempt_id, user.id)
    return attempt_service.get_guest_attempt(db, attempt_id, guest_session)


def _is_unlocked(db: Session, attempt: QuizAttempt, user: Optional[User]) -> bool:
    # guests have no entitlements until they give an email
    if user is None:
        return False
    return unlock_service.is_unlocked(db, user.id, attempt.id)


@router.post("", response_model=QuizAttemptResponse, status_code=201)
async def record_attempt(
    submission: QuizSubmission,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
    settings: Settings = Depends(get_settings),
):
    """
    Score and store a quiz attempt

    - Signed in: stored for the user (90 days while temporary, forever once paid)
    - Guest: stored under the guest session cookie for 24 hours
    """
    if user is not None:
        attempt = attempt_service.record_attempt(
            db,
            user.id,
            submission.quizData,
            temporary_retention=timedelta(days=settings.TEMPORARY_USER_RETENTION_DAYS),
        )
    else:
        session_id = ensure_guest_session(request, response, settings)
        attempt = attempt_service.record_guest_attempt(
            db,
            session_id,
            submission.quizData,
            guest_retention=timedelta(hours=settings.GUEST_ATTEMPT_RETENTION_HOURS),
        )

    return attempt


@router.get("", response_model=List[QuizAttemptResponse])
async def list_attempts(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """The signed-in user's attempts, newest first"""
    return attempt_service.list_attempts(db, user.id)


@router.get("/{attempt_id}", response_model=QuizAttemptResponse)
async def get_attempt(
    attempt_id: int,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
    guest_session: Optional[str] = Depends(get_guest_session),
):
    return _load_attempt(db, attempt_id, user, guest_session)


@router.get("/{attempt_id}/unlock-status", response_model=UnlockStatusResponse)
async def unlock_status(
    attempt_id: int,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
    guest_session: Optional[str] = Depends(get_guest_session),
):
    """
    Whether the full report is available

    The first call for a user's first attempt claims the free report.
    """
    attempt = _load_attempt(db, attempt_id, user, guest_session)
    return UnlockStatusResponse(quizAttemptId=attempt.id, unlocked=_is_unlocked(db, attempt, user))


@router.get("/{attempt_id}/report", response_model=ReportResponse)
async def get_report(
    attempt_id: int,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
    guest_session: Optional[str] = Depends(get_guest_session),
    settings: Settings = Depends(get_settings),
):
    """
    Report for an attempt

    Locked: preview of the top matches. Unlocked: full ranking plus the
    printable report URL.
    """
    attempt = _load_attempt(db, attempt_id, user, guest_session)
    unlocked = _is_unlocked(db, attempt, user)
    report = report_service.build_report(attempt, unlocked)

    pdf_url = None
    if unlocked:
        pdf_url = report_service.build_pdf_url(report, user.email, settings.FRONTEND_URL)

    return ReportResponse(report=report, pdfUrl=pdf_url)


# plain def: runs in the threadpool because the Gemini call blocks
@router.get("/{attempt_id}/insights/{model_id}", response_model=InsightResponse)
def get_insights(
    attempt_id: int,
    model_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    insights: InsightService = Depends(get_insight_service),
):
    """AI insights for one business model; requires an unlocked report"""
    unlock_service.require_unlocked(db, user.id, attempt_id)
    attempt = attempt_service.get_attempt(db, attempt_id, user.id)
    return insights.generate_model_insights(attempt.quiz_response, model_id)


# plain def: runs in the threadpool because the httpx send blocks
@router.post("/{attempt_id}/email", response_model=EmailResultsResponse)
def email_results(
    attempt_id: int,
    body: Optional[EmailResultsRequest] = None,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
    guest_session: Optional[str] = Depends(get_guest_session),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Email the results to the user

    Returns success false with rateLimitInfo while the recipient's
    cooldown is running.
    """
    attempt = _load_attempt(db, attempt_id, user, guest_session)
    to = (body.email if body and body.email else None) or (user.email if user else None)
    if not to:
        raise EmailRequired()

    unlocked = _is_unlocked(db, attempt, user)
    result = mailer.send_quiz_results(to, attempt.id, attempt.score_snapshot, unlocked)
    return EmailResultsResponse(**result.to_dict())
