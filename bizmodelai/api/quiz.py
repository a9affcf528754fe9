"""
Quiz scoring API endpoint
"""
from fastapi import APIRouter
import logging

from bizmodelai.schemas.quiz import QuizSubmission, ScoreResponse
from bizmodelai.services.scoring_service import scoring_service


router = APIRouter(prefix="/api/quiz", tags=["quiz"])
logger = logging.getLogger(__name__)


@router.post("/score", response_model=ScoreResponse)
async def score_quiz(submission: QuizSubmission):
    """
    Rank every business model for a quiz response

    Nothing is stored. Malformed answers return 400.
    """
    scores = scoring_service.score(submission.quizData)

    return ScoreResponse(
        scores=scores,
        topMatches=scores[:3],
        bottomMatches=list(reversed(scores))[:3],
    )
