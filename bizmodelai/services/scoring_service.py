"""
Business model scoring service
Weighted distance between quiz answers and each model's ideal profile
"""
import logging
import math
from collections.abc import Mapping
from typing import Any, Dict, List, Sequence

from bizmodelai.catalog import (
    AMOUNT,
    BUSINESS_MODELS,
    CHOICE,
    MULTI,
    NEUTRAL_FIT,
    QUESTION_DIMENSIONS,
    RATING,
    RATING_KEYS,
    BusinessModel,
    Dimension,
    Target,
)
from bizmodelai.exceptions import InvalidResponseShape

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid numeric answer
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ScoringService:
    """
    Pure scorer over a fixed business model catalog

    For every model:
    - each targeted question yields a 0-100 fit (100 inside the ideal range,
      falling linearly with distance over the question's scale)
    - the model's fit is the weighted mean of those fits, rounded to an int

    Results are sorted by fit, descending; equal fits keep catalog order.
    """

    FIT_CATEGORIES = (
        (70, "best"),
        (50, "strong"),
        (30, "possible"),
    )

    def __init__(self, catalog: Sequence[BusinessModel] = BUSINESS_MODELS):
        self.catalog = tuple(catalog)

    def normalize_response(self, response: Any) -> Dict[str, Any]:
        """
        Validate a quiz response and fill neutral defaults

        Raises:
            InvalidResponseShape: not a mapping, or a value of the wrong type
        """
        if not isinstance(response, Mapping):
            raise InvalidResponseShape("Quiz response must be an object of question keys to answers")

        normalized: Dict[str, Any] = {}
        for key, value in response.items():
            if not isinstance(key, str):
                raise InvalidResponseShape(f"Question keys must be strings, got {key!r}")
            dimension = QUESTION_DIMENSIONS.get(key)
            if dimension is None or value is None:
                if value is not None:
                    normalized[key] = value
                continue
            normalized[key] = self._check_value(dimension, value)

        for key, dimension in QUESTION_DIMENSIONS.items():
            if key not in normalized and dimension.neutral is not None:
                normalized[key] = dimension.neutral

        return normalized

    def _check_value(self, dimension: Dimension, value: Any) -> Any:
        if dimension.kind in (RATING, AMOUNT):
            if not _is_number(value) or (isinstance(value, float) and math.isnan(value)):
                raise InvalidResponseShape(f"'{dimension.key}' must be a number")
            return min(max(value, dimension.low), dimension.high)

        if dimension.kind == CHOICE:
            if not isinstance(value, str):
                raise InvalidResponseShape(f"'{dimension.key}' must be a string")
            return value

        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise InvalidResponseShape(f"'{dimension.key}' must be a list of strings")
        return list(value)

    def dimension_fit(self, dimension: Dimension, target: Target, answer: Any) -> float:
        """Fit (0-100) of one answer against one target"""
        if dimension.kind in (RATING, AMOUNT):
            if isinstance(target.ideal, tuple):
                low, high = target.ideal
            else:
                low = high = target.ideal
            distance = max(0.0, low - answer, answer - high)
            if dimension.span <= 0:
                return 100.0 if distance == 0 else 0.0
            return max(0.0, 100.0 * (1.0 - distance / dimension.span))

        if answer is None:
            return NEUTRAL_FIT

        preferred = set(target.ideal)
        if dimension.kind == CHOICE:
            return 100.0 if answer in preferred else 0.0

        if not preferred:
            return NEUTRAL_FIT
        matches = len(preferred.intersection(answer))
        return 100.0 * matches / len(preferred)

    def model_fit(self, model: BusinessModel, normalized: Dict[str, Any]) -> int:
        total_weight = 0.0
        weighted = 0.0
        for key, target in model.targets.items():
            dimension = QUESTION_DIMENSIONS[key]
            fit = self.dimension_fit(dimension, target, normalized.get(key))
            weighted += fit * target.weight
            total_weight += target.weight

        if total_weight == 0:
            return _round_half_up(NEUTRAL_FIT)
        return min(100, max(0, _round_half_up(weighted / total_weight)))

    def score(self, response: Any) -> List[Dict[str, Any]]:
        """
        Rank every business model for a quiz response

        Args:
            response: Mapping of question key to answer

        Returns:
            List of {businessModelId, name, fitScore, rank}, best first
        """
        normalized = self.normalize_response(response)

        scored = [
            (model, self.model_fit(model, normalized))
            for model in self.catalog
        ]
        # sorted() is stable, so ties keep catalog declaration order
        scored = sorted(scored, key=lambda item: item[1], reverse=True)

        results = [
            {
                "businessModelId": model.id,
                "name": model.name,
                "fitScore": fit,
                "rank": rank,
            }
            for rank, (model, fit) in enumerate(scored, start=1)
        ]

        logger.debug(
            f"Scored {len(results)} business models, top: "
            f"{results[0]['businessModelId'] if results else None}"
        )
        return results

    def top_matches(self, response: Any, n: int = 3) -> List[Dict[str, Any]]:
        return self.score(response)[:n]

    def bottom_matches(self, response: Any, n: int = 3) -> List[Dict[str, Any]]:
        """Weakest n fits, worst first"""
        return list(reversed(self.score(response)))[:n]

    def fit_category(self, fit_score: float) -> str:
        for threshold, category in self.FIT_CATEGORIES:
            if fit_score >= threshold:
                return category
        return "poor"

    def neutral_response(self) -> Dict[str, Any]:
        """Every 1-5 rating question answered with the midpoint"""
        return {key: QUESTION_DIMENSIONS[key].neutral for key in RATING_KEYS}


# Global instance
scoring_service = ScoringService()
