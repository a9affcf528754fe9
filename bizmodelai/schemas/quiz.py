"""
Pydantic schemas for quiz scoring and quiz attempts
"""
from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional
from datetime import datetime


class QuizSubmission(BaseModel):
    """Quiz answers keyed by question; shape is checked by the scorer"""
    quizData: Any = Field(..., description="Mapping of question key to answer")


class BusinessModelScore(BaseModel):
    """One ranked business model"""
    businessModelId: str
    name: str
    fitScore: int = Field(..., ge=0, le=100)
    rank: int = Field(..., ge=1)


class ScoreResponse(BaseModel):
    """Ranking without persistence"""
    scores: List[BusinessModelScore]
    topMatches: List[BusinessModelScore]
    bottomMatches: List[BusinessModelScore]


class QuizAttemptResponse(BaseModel):
    """Stored quiz attempt"""
    id: int
    user_id: Optional[int] = None
    quiz_response: Dict[str, Any]
    score_snapshot: List[BusinessModelScore]
    is_report_unlocked: bool
    created_at: datetime
    expires_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UnlockStatusResponse(BaseModel):
    quizAttemptId: int
    unlocked: bool


class ReportResponse(BaseModel):
    """Report payload (preview or full) plus the printable report URL"""
    report: Dict[str, Any]
    pdfUrl: Optional[str] = None


class InsightResponse(BaseModel):
    businessModelId: str
    fitScore: int
    fitCategory: str
    summary: str
    strengths: List[str]
    challenges: List[str]
    source: str


class EmailResultsRequest(BaseModel):
    """Recipient override; defaults to the account email"""
    email: Optional[str] = None


class EmailResultsResponse(BaseModel):
    success: bool
    rateLimitInfo: Optional[Dict[str, Any]] = None
