"""
Results email delivery through the Resend HTTP API
"""
import html
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    """Outcome of a send; rate_limit is set when a cooldown blocked it"""
    success: bool
    rate_limit: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "rateLimitInfo": self.rate_limit}


class Mailer:
    """
    Sends quiz result emails

    Each recipient gets a short cooldown between emails for their first few
    sends and a longer one after that. Failures are logged and reported in
    the result; nothing here raises to the caller.
    """

    CLEANUP_AFTER = 60 * 60  # forget recipients idle for an hour

    def __init__(
        self,
        api_key: str,
        api_url: str,
        sender: str,
        frontend_url: str,
        initial_cooldown: int = 60,
        extended_cooldown: int = 300,
        initial_limit: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.sender = sender
        self.frontend_url = frontend_url.rstrip("/")
        self.initial_cooldown = initial_cooldown
        self.extended_cooldown = extended_cooldown
        self.initial_limit = initial_limit
        self.clock = clock
        self.client: Optional[httpx.Client] = None
        self._history: Dict[str, Dict[str, float]] = {}
        self._lock = threading.Lock()

    def open(self) -> "Mailer":
        if not self.api_key:
            logger.info("RESEND_API_KEY not set, emails will not be sent")
        self.client = httpx.Client(
            timeout=10.0,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        return self

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
        self.client = None

    def check_rate_limit(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Record a send for this recipient if its cooldown has passed

        Returns None when allowed, otherwise {"remainingTime", "type"} with
        the remaining seconds.
        """
        now = self.clock()
        key = email.strip().lower()

        with self._lock:
            self._cleanup(now)
            entry = self._history.get(key)
            if entry is None:
                self._history[key] = {"last_sent": now, "count": 1}
                return None

            within_initial = entry["count"] <= self.initial_limit
            cooldown = self.initial_cooldown if within_initial else self.extended_cooldown
            elapsed = now - entry["last_sent"]
            if elapsed < cooldown:
                limit_type = "cooldown" if within_initial else "extended"
                logger.info(f"Email rate limit hit for {key} ({limit_type} period)")
                return {"remainingTime": int(cooldown - elapsed + 0.999), "type": limit_type}

            entry["last_sent"] = now
            entry["count"] += 1
            return None

    def _cleanup(self, now: float) -> None:
        stale = [k for k, v in self._history.items() if now - v["last_sent"] > self.CLEANUP_AFTER]
        for key in stale:
            del self._history[key]

    def send_quiz_results(
        self,
        to: str,
        attempt_id: int,
        scores: List[Dict[str, Any]],
        unlocked: bool,
    ) -> SendResult:
        """Email the quiz results: the top matches, or the full ranking when unlocked"""
        if not self.api_key or self.client is None:
            logger.warning(f"Email for quiz attempt {attempt_id} not sent: email provider not configured")
            return SendResult(success=False)

        rate_limit = self.check_rate_limit(to)
        if rate_limit is not None:
            return SendResult(success=False, rate_limit=rate_limit)

        subject = (
            "Your Complete Business Report - BizModelAI"
            if unlocked else
            "Your Business Model Matches - BizModelAI"
        )
        payload = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": self._results_html(attempt_id, scores, unlocked),
        }

        try:
            response = self.client.post(self.api_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Resend API error: {e.response.status_code} - {e.response.text}")
            return SendResult(success=False)
        except httpx.HTTPError as e:
            logger.error(f"Email request failed: {str(e)}")
            return SendResult(success=False)

        logger.info(f"Results email sent for quiz attempt {attempt_id}")
        return SendResult(success=True)

    def _results_html(self, attempt_id: int, scores: List[Dict[str, Any]], unlocked: bool) -> str:
        shown = scores if unlocked else scores[:3]
        rows = "".join(
            f"<li>{html.escape(str(s['name']))}: {s['fitScore']}% fit</li>"
            for s in shown
        )
        link = f"{self.frontend_url}/results?attempt={attempt_id}"
        footer = (
            "" if unlocked else
            "<p>Unlock your full report to see every business model and a detailed breakdown.</p>"
        )
        return (
            "<h1>Your BizModelAI results</h1>"
            f"<ol>{rows}</ol>"
            f"{footer}"
            f'<p><a href="{html.escape(link)}">View your results</a></p>'
        )
