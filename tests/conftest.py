from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from bizmodelai.config import Settings
from bizmodelai.database import Database
from bizmodelai.main import create_app
from bizmodelai.services.user_service import user_service
from bizmodelai.utils.clock import utcnow
from bizmodelai.utils.security import hash_key

API_KEY = "test-key"


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        REDIS_URL="",
        GEMINI_API_KEY="",
        RESEND_API_KEY="",
        BCRYPT_ROUNDS=4,
        HASHED_API_KEY=hash_key(API_KEY),
        SECRET_KEY="test-secret",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def database():
    database = Database("sqlite://").open()
    yield database
    database.close()


@pytest.fixture
def db(database):
    with database.session() as session:
        yield session


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def temp_user(db):
    return user_service.create_temporary_user(db, "Temp@Example.com", first_name="Tess")


@pytest.fixture
def expired_user(db):
    """Temporary user created 91 days ago, already past its expiry"""
    return user_service.create_temporary_user(
        db, "old@example.com", now=utcnow() - timedelta(days=91)
    )


def neutral_answers():
    return {
        "passionIdentityAlignment": 3,
        "passiveIncomeImportance": 3,
        "longTermConsistency": 3,
        "trialErrorComfort": 3,
        "systemsRoutinesEnjoyment": 3,
        "discouragementResilience": 3,
        "organizationLevel": 3,
        "selfMotivationLevel": 3,
        "uncertaintyHandling": 3,
        "brandFaceComfort": 3,
        "competitivenessLevel": 3,
        "creativeWorkEnjoyment": 3,
        "directCommunicationEnjoyment": 3,
        "techSkillsRating": 3,
        "internetDeviceReliability": 3,
        "riskComfortLevel": 3,
        "feedbackRejectionResponse": 3,
        "controlImportance": 3,
        "socialMediaInterest": 3,
        "meaningfulContributionImportance": 3,
    }
