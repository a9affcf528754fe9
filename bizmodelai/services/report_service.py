"""
Report assembly for quiz attempts
"""
import base64
import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from bizmodelai.models import QuizAttempt
from bizmodelai.services.scoring_service import scoring_service

logger = logging.getLogger(__name__)


class ReportService:
    """
    Builds the report payload from an attempt's stored score snapshot

    Locked reports carry only the top matches as a preview; unlocked reports
    carry the full ranking with fit categories and the weakest matches.
    """

    PREVIEW_SIZE = 3

    def __init__(self, scorer=scoring_service):
        self.scorer = scorer

    def build_report(self, attempt: QuizAttempt, unlocked: bool) -> Dict[str, Any]:
        scores = list(attempt.score_snapshot or [])
        top = scores[0] if scores else None

        report = {
            "quizAttemptId": attempt.id,
            "unlocked": unlocked,
            "createdAt": attempt.created_at.isoformat() if attempt.created_at else None,
            "topBusinessPath": self._with_category(top) if top else None,
        }

        if not unlocked:
            report["preview"] = [self._with_category(s) for s in scores[:self.PREVIEW_SIZE]]
            report["lockedCount"] = max(0, len(scores) - self.PREVIEW_SIZE)
            return report

        report["businessScores"] = [self._with_category(s) for s in scores]
        report["bottomMatches"] = [
            self._with_category(s) for s in list(reversed(scores))[:self.PREVIEW_SIZE]
        ]
        report["quizData"] = attempt.quiz_response
        return report

    def _with_category(self, score: Dict[str, Any]) -> Dict[str, Any]:
        return {**score, "fitCategory": self.scorer.fit_category(score["fitScore"])}

    def build_pdf_url(self, report: Dict[str, Any], email: Optional[str], frontend_url: str) -> str:
        """
        URL of the printable report page that the PDF renderer loads

        The report travels inside the URL as a url-encoded base64 JSON data URL.
        """
        payload = {
            "quizData": report.get("quizData"),
            "userEmail": email,
            "topBusinessPath": report.get("topBusinessPath"),
            "businessScores": report.get("businessScores", report.get("preview", [])),
        }
        encoded = base64.b64encode(json.dumps(payload, default=str).encode("utf-8")).decode("ascii")
        data_url = quote(f"data:application/json;base64,{encoded}", safe="")
        return f"{frontend_url.rstrip('/')}/pdf-report?data={data_url}"


# Global instance
report_service = ReportService()
