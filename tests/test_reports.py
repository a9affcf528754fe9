import base64
import json
from unittest.mock import MagicMock
from urllib.parse import unquote

import pytest

from bizmodelai.services.attempt_service import attempt_service
from bizmodelai.services.email_service import Mailer
from bizmodelai.services.insight_service import BusinessModelNotFound, InsightService
from bizmodelai.services.report_service import report_service
from bizmodelai.utils.cache import CacheService


@pytest.fixture
def attempt(db, temp_user):
    return attempt_service.record_attempt(db, temp_user.id, {"techSkillsRating": 4})


def test_locked_report_is_a_preview(attempt):
    report = report_service.build_report(attempt, unlocked=False)

    assert len(report["preview"]) == 3
    assert report["lockedCount"] == 9
    assert "businessScores" not in report
    assert "quizData" not in report
    assert report["topBusinessPath"]["businessModelId"] == attempt.score_snapshot[0]["businessModelId"]


def test_unlocked_report_has_full_ranking(attempt):
    report = report_service.build_report(attempt, unlocked=True)

    assert len(report["businessScores"]) == 12
    assert all("fitCategory" in s for s in report["businessScores"])
    assert report["bottomMatches"][0] == report["businessScores"][-1]
    assert report["quizData"] == {"techSkillsRating": 4}


def test_pdf_url_carries_report_data(attempt):
    report = report_service.build_report(attempt, unlocked=True)
    url = report_service.build_pdf_url(report, "temp@example.com", "https://app.example.com/")

    prefix = "https://app.example.com/pdf-report?data="
    assert url.startswith(prefix)
    data_url = unquote(url[len(prefix):])
    assert data_url.startswith("data:application/json;base64,")
    payload = json.loads(base64.b64decode(data_url.split(",", 1)[1]))
    assert payload["userEmail"] == "temp@example.com"
    assert len(payload["businessScores"]) == 12


def test_insights_fall_back_without_api_key():
    insights = InsightService("", "gemini-1.5-flash").open()

    result = insights.generate_model_insights({"selfMotivationLevel": 5, "riskComfortLevel": 1}, "freelancing")

    assert result["source"] == "fallback"
    assert result["businessModelId"] == "freelancing"
    assert "High self-motivation" in result["strengths"]
    assert "Low comfort with financial risk" in result["challenges"]


def test_insights_fall_back_when_model_fails():
    insights = InsightService("key", "gemini-1.5-flash")
    insights.model = MagicMock()
    insights.model.generate_content.side_effect = RuntimeError("quota exceeded")

    assert insights.generate_model_insights({}, "blogging")["source"] == "fallback"


def test_insights_parse_model_json():
    insights = InsightService("key", "gemini-1.5-flash")
    insights.model = MagicMock()
    insights.model.generate_content.return_value.text = (
        '```json\n{"summary": "Good fit.", "strengths": ["Writing"], "challenges": ["Patience"]}\n```'
    )

    result = insights.generate_model_insights({}, "blogging")

    assert result["source"] == "ai"
    assert result["summary"] == "Good fit."
    assert result["strengths"] == ["Writing"]


def test_insights_unknown_model():
    with pytest.raises(BusinessModelNotFound):
        InsightService("", "gemini-1.5-flash").generate_model_insights({}, "lemonade-stand")


def _mailer(clock):
    mailer = Mailer("re_test", "https://email.test/emails", "team@test", "https://app.test", clock=clock)
    mailer.client = MagicMock()
    return mailer


def test_email_not_sent_without_api_key():
    mailer = Mailer("", "https://email.test/emails", "team@test", "https://app.test").open()
    try:
        result = mailer.send_quiz_results("a@example.com", 1, [], unlocked=False)
    finally:
        mailer.close()
    assert not result.success


def test_email_cooldown_per_recipient():
    now = [1000.0]
    mailer = _mailer(lambda: now[0])
    scores = [{"name": "Blogging", "fitScore": 80}]

    assert mailer.send_quiz_results("a@example.com", 1, scores, unlocked=False).success
    blocked = mailer.send_quiz_results("A@example.com", 1, scores, unlocked=False)
    assert not blocked.success
    assert blocked.rate_limit == {"remainingTime": 60, "type": "cooldown"}
    assert mailer.send_quiz_results("b@example.com", 1, scores, unlocked=False).success

    now[0] += 61
    assert mailer.send_quiz_results("a@example.com", 1, scores, unlocked=True).success
    assert mailer.client.post.call_count == 3


def test_email_extended_cooldown_after_initial_limit():
    now = [0.0]
    mailer = _mailer(lambda: now[0])

    for _ in range(6):
        assert mailer.send_quiz_results("a@example.com", 1, [], unlocked=False).success
        now[0] += 61

    blocked = mailer.send_quiz_results("a@example.com", 1, [], unlocked=False)
    assert blocked.rate_limit["type"] == "extended"


def test_clear_model_insights_removes_only_that_model():
    cache = CacheService("redis://cache.test")
    cache.redis_client = MagicMock()
    cache.redis_client.scan_iter.return_value = iter(["insights:blogging:a", "insights:blogging:b"])

    assert cache.clear_model_insights("blogging") == 2
    cache.redis_client.scan_iter.assert_called_once_with(match="insights:blogging:*")
    cache.redis_client.delete.assert_called_once_with("insights:blogging:a", "insights:blogging:b")


def test_clear_model_insights_without_redis():
    assert CacheService("").open().clear_model_insights("blogging") == 0
