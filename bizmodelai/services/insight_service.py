"""
Gemini AI service for personalized business model insights
Falls back to static text whenever the model is unavailable
"""
import json
import logging
from typing import Any, Dict, List, Optional

import google.generativeai as genai

from bizmodelai.catalog import BUSINESS_MODELS_BY_ID, BusinessModel
from bizmodelai.exceptions import NotFound
from bizmodelai.services.scoring_service import scoring_service
from bizmodelai.utils.cache import CacheService

logger = logging.getLogger(__name__)


class BusinessModelNotFound(NotFound):
    """Business model not found"""


class InsightService:
    """
    Service for AI report enrichment

    The report never depends on this: a missing API key, a failed call or an
    unparseable answer all produce the static fallback insights.
    """

    def __init__(self, api_key: str, model_name: str, cache: Optional[CacheService] = None):
        self.api_key = api_key
        self.model_name = model_name
        self.cache = cache
        self.model = None

    def open(self) -> "InsightService":
        if not self.api_key:
            logger.info("GEMINI_API_KEY not set, insights will use fallback content")
            return self
        try:
            genai.configure(api_key=self.api_key)
            self.model = genai.GenerativeModel(self.model_name)
            logger.info(f"Gemini model ready: {self.model_name}")
        except Exception as e:
            logger.warning(f"Failed to configure Gemini: {str(e)}")
            self.model = None
        return self

    def close(self) -> None:
        self.model = None

    def generate_model_insights(self, quiz_response: Dict[str, Any], business_model_id: str) -> Dict[str, Any]:
        """
        Personalized insights for one business model

        Args:
            quiz_response: The attempt's stored answers
            business_model_id: Catalog id of the model to explain

        Returns:
            Dict with summary, strengths, challenges and source ("ai" or "fallback")
        """
        business_model = BUSINESS_MODELS_BY_ID.get(business_model_id)
        if business_model is None:
            raise BusinessModelNotFound()

        cache_key = None
        if self.cache is not None:
            cache_key = self.cache.generate_insight_key(quiz_response, business_model_id)
            cached = self.cache.get(cache_key)
            if cached:
                return cached

        normalized = scoring_service.normalize_response(quiz_response)
        fit_score = scoring_service.model_fit(business_model, normalized)

        insights = None
        if self.model is not None:
            try:
                insights = self._generate_with_ai(normalized, business_model, fit_score)
            except Exception as e:
                logger.error(f"Failed to generate AI insights: {str(e)}")

        if insights is None:
            insights = self._fallback_insights(normalized, business_model, fit_score)
        elif cache_key is not None:
            # fallback text is cheap to rebuild, only AI output is cached
            self.cache.set(cache_key, insights)

        return insights

    def _generate_with_ai(
        self,
        normalized: Dict[str, Any],
        business_model: BusinessModel,
        fit_score: int,
    ) -> Optional[Dict[str, Any]]:
        prompt = self._create_insight_prompt(normalized, business_model, fit_score)
        response = self.model.generate_content(prompt)
        parsed = self._parse_json(response.text)
        if not parsed or not isinstance(parsed.get("summary"), str):
            logger.warning("Gemini insight response missing summary, using fallback")
            return None

        return {
            "businessModelId": business_model.id,
            "fitScore": fit_score,
            "fitCategory": scoring_service.fit_category(fit_score),
            "summary": parsed["summary"],
            "strengths": [str(s) for s in parsed.get("strengths", [])][:5],
            "challenges": [str(c) for c in parsed.get("challenges", [])][:5],
            "source": "ai",
        }

    def _create_insight_prompt(
        self,
        normalized: Dict[str, Any],
        business_model: BusinessModel,
        fit_score: int,
    ) -> str:
        """Create structured prompt for insight generation"""

        profile = "\n".join(
            f"- {key}: {value}" for key, value in sorted(normalized.items())
        )

        return f"""
You are a business consultant explaining why a business model fits a person.
Address the user directly with "you" and "your".

Business model: {business_model.name} - {business_model.description}
Computed fit score: {fit_score}/100

Quiz answers (ratings are 1-5):
{profile}

Return ONLY valid JSON in this exact format (no markdown, no preamble):
{{
  "summary": "Two or three sentences on how well this model fits you.",
  "strengths": ["strength 1", "strength 2", "strength 3"],
  "challenges": ["challenge 1", "challenge 2", "challenge 3"]
}}
"""

    def _parse_json(self, response_text: str) -> Optional[Dict[str, Any]]:
        cleaned = (response_text or "").strip()

        # Remove markdown code blocks
        if cleaned.startswith("```json"):
            cleaned = cleaned[7:-3].strip()
        elif cleaned.startswith("```"):
            cleaned = cleaned[3:-3].strip()

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse insight JSON: {str(e)}")
            logger.error(f"Response text: {cleaned[:500]}")
            return None
        return parsed if isinstance(parsed, dict) else None

    def _fallback_insights(
        self,
        normalized: Dict[str, Any],
        business_model: BusinessModel,
        fit_score: int,
    ) -> Dict[str, Any]:
        """Static insights built from the strongest and weakest answers"""
        category = scoring_service.fit_category(fit_score)

        return {
            "businessModelId": business_model.id,
            "fitScore": fit_score,
            "fitCategory": category,
            "summary": (
                f"{business_model.name} is a {category} fit for you with a score of "
                f"{fit_score}/100, based on how your answers line up with what this model demands."
            ),
            "strengths": self._strengths(normalized),
            "challenges": self._challenges(normalized),
            "source": "fallback",
        }

    def _strengths(self, data: Dict[str, Any]) -> List[str]:
        strengths = []
        if data.get("selfMotivationLevel", 3) >= 4:
            strengths.append("High self-motivation")
        if data.get("techSkillsRating", 3) >= 4:
            strengths.append("Strong technical skills")
        if data.get("directCommunicationEnjoyment", 3) >= 4:
            strengths.append("Enjoys working directly with people")
        if data.get("creativeWorkEnjoyment", 3) >= 4:
            strengths.append("Creative mindset")
        if data.get("longTermConsistency", 3) >= 4:
            strengths.append("Consistent over the long term")
        return strengths or ["Balanced skill set"]

    def _challenges(self, data: Dict[str, Any]) -> List[str]:
        challenges = []
        if data.get("riskComfortLevel", 3) <= 2:
            challenges.append("Low comfort with financial risk")
        if data.get("organizationLevel", 3) <= 2:
            challenges.append("Staying organized as the work grows")
        if data.get("discouragementResilience", 3) <= 2:
            challenges.append("Keeping going through slow early results")
        if data.get("weeklyTimeCommitment", 20) < 10:
            challenges.append("Limited weekly time to build momentum")
        return challenges or ["Building the first few months of traction"]
