import pytest

from bizmodelai.catalog import BUSINESS_MODELS
from bizmodelai.exceptions import InvalidResponseShape
from bizmodelai.services.scoring_service import ScoringService, scoring_service
from tests.conftest import neutral_answers

# fit of every model for an all-midpoint response, in ranked order
NEUTRAL_BASELINE = [
    ("e-commerce", 85),
    ("freelancing", 84),
    ("affiliate-marketing", 83),
    ("dropshipping", 83),
    ("social-media-management", 83),
    ("copywriting", 82),
    ("ghostwriting", 81),
    ("amazon-fba", 80),
    ("consulting", 79),
    ("online-course", 78),
    ("blogging", 74),
    ("podcasting", 69),
]


def test_neutral_response_matches_baseline():
    scores = scoring_service.score(neutral_answers())
    assert [(s["businessModelId"], s["fitScore"]) for s in scores] == NEUTRAL_BASELINE
    assert [s["rank"] for s in scores] == list(range(1, len(BUSINESS_MODELS) + 1))


def test_empty_response_uses_neutral_defaults():
    assert scoring_service.score({}) == scoring_service.score(neutral_answers())
    assert scoring_service.neutral_response() == neutral_answers()


def test_ties_keep_catalog_order():
    scores = scoring_service.score({})
    tied = [s["businessModelId"] for s in scores if s["fitScore"] == 83]
    assert tied == ["affiliate-marketing", "dropshipping", "social-media-management"]


def test_scores_cover_catalog_once_and_stay_in_range():
    answers = neutral_answers()
    answers.update({
        "techSkillsRating": 5,
        "riskComfortLevel": 1,
        "weeklyTimeCommitment": 5,
        "upfrontInvestment": 4000,
        "familiarTools": ["shopify", "canva"],
        "mainMotivation": "passion",
    })
    scores = scoring_service.score(answers)

    ids = [s["businessModelId"] for s in scores]
    assert sorted(ids) == sorted(m.id for m in BUSINESS_MODELS)
    assert len(set(ids)) == len(ids)
    assert all(0 <= s["fitScore"] <= 100 for s in scores)
    fits = [s["fitScore"] for s in scores]
    assert fits == sorted(fits, reverse=True)


def test_scoring_is_deterministic():
    answers = {"techSkillsRating": 2, "successIncomeGoal": 7500, "familiarTools": ["wordpress"]}
    assert scoring_service.score(answers) == scoring_service.score(dict(answers))


def test_ideal_profile_scores_100():
    answers = {
        "directCommunicationEnjoyment": 5,
        "brandFaceComfort": 5,
        "feedbackRejectionResponse": 5,
        "organizationLevel": 5,
        "meaningfulContributionImportance": 5,
        "successIncomeGoal": 5000,
        "upfrontInvestment": 0,
        "mainMotivation": "impact",
        "workCollaborationPreference": "balanced",
    }
    scores = scoring_service.score(answers)
    consulting = next(s for s in scores if s["businessModelId"] == "consulting")
    assert consulting["fitScore"] == 100
    assert scores[0]["businessModelId"] == "consulting"


def test_out_of_range_values_are_clamped():
    assert scoring_service.score({"techSkillsRating": 50}) == scoring_service.score({"techSkillsRating": 5})
    assert scoring_service.score({"upfrontInvestment": -10}) == scoring_service.score({"upfrontInvestment": 0})


def test_huge_integers_are_clamped():
    assert scoring_service.score({"techSkillsRating": 10**400}) == scoring_service.score({"techSkillsRating": 5})
    assert scoring_service.normalize_response({"upfrontInvestment": -10**400})["upfrontInvestment"] == 0


def test_unknown_keys_and_nulls_are_ignored():
    assert scoring_service.score({"favouriteColour": "blue", "techSkillsRating": None}) == scoring_service.score({})


@pytest.mark.parametrize("response", [
    None,
    "techSkillsRating=5",
    [("techSkillsRating", 5)],
    {"techSkillsRating": "five"},
    {"techSkillsRating": True},
    {"weeklyTimeCommitment": float("nan")},
    {"mainMotivation": 3},
    {"familiarTools": "shopify"},
    {"familiarTools": ["shopify", 2]},
    {1: 3},
])
def test_malformed_response_raises(response):
    with pytest.raises(InvalidResponseShape):
        scoring_service.score(response)


def test_fit_categories():
    assert scoring_service.fit_category(100) == "best"
    assert scoring_service.fit_category(70) == "best"
    assert scoring_service.fit_category(69) == "strong"
    assert scoring_service.fit_category(50) == "strong"
    assert scoring_service.fit_category(30) == "possible"
    assert scoring_service.fit_category(29) == "poor"


def test_top_and_bottom_matches():
    top = scoring_service.top_matches({}, 3)
    bottom = scoring_service.bottom_matches({}, 2)
    assert [s["businessModelId"] for s in top] == ["e-commerce", "freelancing", "affiliate-marketing"]
    assert [s["businessModelId"] for s in bottom] == ["podcasting", "blogging"]


def test_custom_catalog_subset():
    scorer = ScoringService(BUSINESS_MODELS[:2])
    scores = scorer.score({})
    assert [s["businessModelId"] for s in scores] == ["freelancing", "affiliate-marketing"]
