"""
Admin API endpoints, guarded by the X-API-Key header
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import logging

from bizmodelai.api.deps import get_settings, require_api_key
from bizmodelai.catalog import BUSINESS_MODELS_BY_ID
from bizmodelai.config import Settings
from bizmodelai.database import get_db
from bizmodelai.exceptions import NotFound
from bizmodelai.schemas.payment import ReapResponse
from bizmodelai.services.user_service import user_service


router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_api_key)],
)
logger = logging.getLogger(__name__)


@router.post("/reap-expired", response_model=ReapResponse)
async def reap_expired(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Delete expired temporary users and expired quiz attempts"""
    summary = user_service.reap_expired(db, batch_size=settings.REAPER_BATCH_SIZE)
    return ReapResponse(
        users=summary.users,
        attempts=summary.attempts,
        payments=summary.payments,
        failed=summary.failed,
        total=summary.total,
    )


@router.delete("/insights/{model_id}")
async def clear_insight_cache(model_id: str, request: Request):
    """Drop cached AI insights for a business model"""
    if model_id not in BUSINESS_MODELS_BY_ID:
        raise NotFound("Business model not found")
    cleared = request.app.state.cache.clear_model_insights(model_id)
    return {"businessModelId": model_id, "cleared": cleared}
