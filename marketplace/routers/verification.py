from fastapi import APIRouter

from marketplace.models.models import VerificationScoreSet
from marketplace.models.schemas import SkillScoresUpdate, VerificationRecord, VerificationStatusUpdate
from marketplace.services.verification import verification_service
from marketplace.utils.exceptions import ExceptionContext
from marketplace.utils.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/{user_id}/verification", response_model=VerificationRecord)
async def get_verification(user_id: str):
    """Verification status, scores and evidence for a user"""
    with ExceptionContext("get_verification", logger, user_id=user_id):
        return await verification_service.get_verification_data(user_id)


@router.put("/{user_id}/verification", response_model=VerificationRecord)
async def update_verification(user_id: str, payload: VerificationStatusUpdate):
    """Record a verification decision (admin)"""
    with ExceptionContext("update_verification", logger, user_id=user_id):
        return await verification_service.update_verification_status(user_id, payload)


@router.put("/{user_id}/skill-scores", response_model=VerificationScoreSet)
async def update_skill_scores(user_id: str, payload: SkillScoresUpdate):
    """Update sub-scores; the overall score is recomputed"""
    with ExceptionContext("update_skill_scores", logger, user_id=user_id):
        return await verification_service.update_skill_scores(user_id, payload)
