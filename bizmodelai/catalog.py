"""
Question dimensions and the business model catalog used by the scorer

Each business model declares, per question key, an ideal value or an ideal
(low, high) range and a weight. Choice and multi-select questions declare
the answers the model prefers.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Union

RATING = "rating"
AMOUNT = "amount"
CHOICE = "choice"
MULTI = "multi"

# Fit contributed by a choice/multi question the user skipped
NEUTRAL_FIT = 50.0


@dataclass(frozen=True)
class Dimension:
    key: str
    kind: str
    low: float = 0.0
    high: float = 0.0
    neutral: Optional[float] = None

    @property
    def span(self) -> float:
        return self.high - self.low


def _rating(key: str) -> Dimension:
    return Dimension(key, RATING, 1, 5, 3)


# 1-5 self ratings; missing answers default to the midpoint
RATING_KEYS = (
    "passionIdentityAlignment",
    "passiveIncomeImportance",
    "longTermConsistency",
    "trialErrorComfort",
    "systemsRoutinesEnjoyment",
    "discouragementResilience",
    "organizationLevel",
    "selfMotivationLevel",
    "uncertaintyHandling",
    "brandFaceComfort",
    "competitivenessLevel",
    "creativeWorkEnjoyment",
    "directCommunicationEnjoyment",
    "techSkillsRating",
    "internetDeviceReliability",
    "riskComfortLevel",
    "feedbackRejectionResponse",
    "controlImportance",
    "socialMediaInterest",
    "meaningfulContributionImportance",
)

QUESTION_DIMENSIONS: Dict[str, Dimension] = {key: _rating(key) for key in RATING_KEYS}
QUESTION_DIMENSIONS.update({
    # dollars per month
    "successIncomeGoal": Dimension("successIncomeGoal", AMOUNT, 500, 10000, 3500),
    # dollars, one-off
    "upfrontInvestment": Dimension("upfrontInvestment", AMOUNT, 0, 5000, 1000),
    # hours per week
    "weeklyTimeCommitment": Dimension("weeklyTimeCommitment", AMOUNT, 0, 40, 20),
    "mainMotivation": Dimension("mainMotivation", CHOICE),
    "firstIncomeTimeline": Dimension("firstIncomeTimeline", CHOICE),
    "workCollaborationPreference": Dimension("workCollaborationPreference", CHOICE),
    "learningPreference": Dimension("learningPreference", CHOICE),
    "familiarTools": Dimension("familiarTools", MULTI),
})

Ideal = Union[float, Tuple[float, float], Tuple[str, ...]]


@dataclass(frozen=True)
class Target:
    ideal: Ideal
    weight: float = 1.0


@dataclass(frozen=True)
class BusinessModel:
    id: str
    name: str
    description: str
    targets: Dict[str, Target] = field(default_factory=dict)


T = Target

# Declaration order is the tie-break order for equal fit scores.
BUSINESS_MODELS: Tuple[BusinessModel, ...] = (
    BusinessModel(
        id="freelancing",
        name="Freelancing",
        description="Sell a skill you already have to clients on a per-project basis.",
        targets={
            "techSkillsRating": T((3, 5), 2),
            "selfMotivationLevel": T((4, 5), 3),
            "directCommunicationEnjoyment": T((3, 5), 2),
            "organizationLevel": T(4, 1),
            "brandFaceComfort": T((2, 5), 1),
            "riskComfortLevel": T((1, 3), 1),
            "weeklyTimeCommitment": T((10, 40), 2),
            "upfrontInvestment": T((0, 500), 2),
            "firstIncomeTimeline": T(("under-1-month", "1-3-months"), 2),
            "familiarTools": T(("basic-computer", "google-workspace"), 1),
        },
    ),
    BusinessModel(
        id="affiliate-marketing",
        name="Affiliate Marketing",
        description="Earn commissions by recommending other companies' products.",
        targets={
            "creativeWorkEnjoyment": T((3, 5), 2),
            "passiveIncomeImportance": T((4, 5), 3),
            "longTermConsistency": T((4, 5), 3),
            "directCommunicationEnjoyment": T((1, 3), 1),
            "techSkillsRating": T((3, 5), 2),
            "discouragementResilience": T((4, 5), 2),
            "socialMediaInterest": T((3, 5), 1),
            "firstIncomeTimeline": T(("3-6-months", "no-rush"), 2),
            "upfrontInvestment": T((0, 1000), 1),
            "weeklyTimeCommitment": T((10, 30), 1),
        },
    ),
    BusinessModel(
        id="dropshipping",
        name="Dropshipping",
        description="Run an online store that ships products straight from suppliers.",
        targets={
            "riskComfortLevel": T((3, 5), 2),
            "upfrontInvestment": T((500, 3000), 2),
            "techSkillsRating": T((3, 5), 2),
            "organizationLevel": T((4, 5), 2),
            "uncertaintyHandling": T((4, 5), 2),
            "competitivenessLevel": T((4, 5), 1),
            "trialErrorComfort": T((4, 5), 2),
            "familiarTools": T(("shopify", "google-ads", "facebook-ads"), 2),
            "successIncomeGoal": T((2000, 10000), 1),
        },
    ),
    BusinessModel(
        id="consulting",
        name="Consulting",
        description="Advise businesses in an area where you have deep expertise.",
        targets={
            "directCommunicationEnjoyment": T((4, 5), 3),
            "brandFaceComfort": T((4, 5), 2),
            "feedbackRejectionResponse": T((4, 5), 1),
            "organizationLevel": T((4, 5), 2),
            "meaningfulContributionImportance": T((3, 5), 1),
            "successIncomeGoal": T((3500, 10000), 2),
            "upfrontInvestment": T((0, 1000), 1),
            "mainMotivation": T(("financial-freedom", "impact"), 1),
            "workCollaborationPreference": T(("balanced", "team-focused"), 1),
        },
    ),
    BusinessModel(
        id="online-course",
        name="Online Course Creation",
        description="Package what you know into a course and sell it to learners.",
        targets={
            "brandFaceComfort": T((4, 5), 3),
            "creativeWorkEnjoyment": T((3, 5), 2),
            "passiveIncomeImportance": T((4, 5), 2),
            "longTermConsistency": T((3, 5), 2),
            "meaningfulContributionImportance": T((4, 5), 2),
            "techSkillsRating": T((2, 5), 1),
            "firstIncomeTimeline": T(("3-6-months", "no-rush"), 2),
            "learningPreference": T(("reading", "video", "hands-on"), 1),
        },
    ),
    BusinessModel(
        id="social-media-management",
        name="Social Media Management",
        description="Run social accounts and content calendars for small businesses.",
        targets={
            "socialMediaInterest": T((4, 5), 3),
            "creativeWorkEnjoyment": T((4, 5), 2),
            "organizationLevel": T((3, 5), 2),
            "directCommunicationEnjoyment": T((3, 5), 2),
            "systemsRoutinesEnjoyment": T((3, 5), 1),
            "upfrontInvestment": T((0, 300), 1),
            "weeklyTimeCommitment": T((15, 40), 1),
            "familiarTools": T(("canva", "instagram", "tiktok"), 2),
        },
    ),
    BusinessModel(
        id="amazon-fba",
        name="Amazon FBA",
        description="Source private-label products and sell them through Amazon's fulfillment network.",
        targets={
            "upfrontInvestment": T((2000, 5000), 3),
            "riskComfortLevel": T((4, 5), 2),
            "systemsRoutinesEnjoyment": T((4, 5), 2),
            "organizationLevel": T((4, 5), 2),
            "uncertaintyHandling": T((3, 5), 1),
            "passiveIncomeImportance": T((3, 5), 1),
            "successIncomeGoal": T((3500, 10000), 1),
            "firstIncomeTimeline": T(("3-6-months", "no-rush"), 1),
        },
    ),
    BusinessModel(
        id="podcasting",
        name="Podcasting",
        description="Build an audience around a show and monetize through sponsors.",
        targets={
            "brandFaceComfort": T((4, 5), 2),
            "directCommunicationEnjoyment": T((4, 5), 2),
            "passionIdentityAlignment": T((4, 5), 3),
            "longTermConsistency": T((4, 5), 2),
            "discouragementResilience": T((4, 5), 1),
            "firstIncomeTimeline": T(("no-rush",), 2),
            "mainMotivation": T(("passion", "impact"), 1),
        },
    ),
    BusinessModel(
        id="blogging",
        name="Blogging",
        description="Publish helpful articles and earn from ads and affiliate links.",
        targets={
            "creativeWorkEnjoyment": T((4, 5), 2),
            "longTermConsistency": T((4, 5), 3),
            "passiveIncomeImportance": T((4, 5), 2),
            "brandFaceComfort": T((1, 3), 1),
            "techSkillsRating": T((2, 4), 1),
            "upfrontInvestment": T((0, 500), 1),
            "firstIncomeTimeline": T(("no-rush",), 2),
            "familiarTools": T(("wordpress", "google-workspace"), 1),
        },
    ),
    BusinessModel(
        id="copywriting",
        name="Copywriting",
        description="Write persuasive sales and marketing copy for brands.",
        targets={
            "creativeWorkEnjoyment": T((4, 5), 3),
            "feedbackRejectionResponse": T((3, 5), 2),
            "selfMotivationLevel": T((3, 5), 2),
            "brandFaceComfort": T((1, 3), 1),
            "directCommunicationEnjoyment": T((2, 4), 1),
            "upfrontInvestment": T((0, 300), 1),
            "firstIncomeTimeline": T(("under-1-month", "1-3-months"), 2),
            "workCollaborationPreference": T(("solo-only", "mostly-solo"), 1),
        },
    ),
    BusinessModel(
        id="ghostwriting",
        name="Ghostwriting",
        description="Write books, posts and newsletters published under a client's name.",
        targets={
            "creativeWorkEnjoyment": T((4, 5), 2),
            "brandFaceComfort": T((1, 2), 2),
            "organizationLevel": T((3, 5), 1),
            "longTermConsistency": T((3, 5), 2),
            "controlImportance": T((1, 3), 1),
            "upfrontInvestment": T((0, 300), 1),
            "workCollaborationPreference": T(("solo-only", "mostly-solo"), 2),
        },
    ),
    BusinessModel(
        id="e-commerce",
        name="E-commerce Brand",
        description="Design, stock and sell your own branded products online.",
        targets={
            "upfrontInvestment": T((1000, 5000), 2),
            "riskComfortLevel": T((4, 5), 2),
            "creativeWorkEnjoyment": T((3, 5), 1),
            "controlImportance": T((4, 5), 2),
            "competitivenessLevel": T((3, 5), 1),
            "internetDeviceReliability": T((4, 5), 1),
            "successIncomeGoal": T((3500, 10000), 2),
            "familiarTools": T(("shopify", "canva"), 1),
        },
    ),
)

BUSINESS_MODELS_BY_ID: Dict[str, BusinessModel] = {model.id: model for model in BUSINESS_MODELS}
