from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from marketplace.helpers.parsing import decode_json_object
from marketplace.models.models import VerificationScoreSet
from marketplace.models.schemas import SkillScoresUpdate, VerificationRecord, VerificationStatusUpdate
from marketplace.models.scoring_settings import DEFAULT_VERIFICATION_WEIGHTS, VerificationWeights
from marketplace.services.db import users_coll
from marketplace.utils.exceptions import NotFoundError, ValidationError
from marketplace.utils.logging_config import get_logger

logger = get_logger(__name__)

SCORE_FIELDS = ("ai_skill_score", "portfolio_score", "experience_score")


def _check_range(name: str, value: Optional[float]) -> None:
    if value is not None and not 0 <= value <= 100:
        raise ValidationError(f"{name} must be between 0 and 100", field=name, value=value)


def weighted_overall(skill: float, portfolio: float, experience: float,
                     weights: VerificationWeights = DEFAULT_VERIFICATION_WEIGHTS) -> int:
    # half-up on exact decimal products
    total = (
        Decimal(str(skill)) * Decimal(str(weights.skill_weight))
        + Decimal(str(portfolio)) * Decimal(str(weights.portfolio_weight))
        + Decimal(str(experience)) * Decimal(str(weights.experience_weight))
    )
    return int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def recompute_overall(
    skill: Optional[float] = None,
    portfolio: Optional[float] = None,
    experience: Optional[float] = None,
    previous: Optional[VerificationScoreSet] = None,
    weights: VerificationWeights = DEFAULT_VERIFICATION_WEIGHTS,
) -> VerificationScoreSet:
    """Fold new sub-scores over the previous set and derive the overall score."""
    previous = previous or VerificationScoreSet()
    incoming = {"ai_skill_score": skill, "portfolio_score": portfolio, "experience_score": experience}

    resolved = {}
    for field in SCORE_FIELDS:
        value = incoming[field]
        if value is None:
            value = getattr(previous, field)
        if value is None:
            value = 0
        _check_range(field, value)
        resolved[field] = value

    return VerificationScoreSet(
        **resolved,
        overall_score=weighted_overall(
            resolved["ai_skill_score"], resolved["portfolio_score"], resolved["experience_score"], weights
        ),
    )


class VerificationService:
    """Verification status, evidence and trust scores for talent profiles"""

    def __init__(self, weights: VerificationWeights = DEFAULT_VERIFICATION_WEIGHTS):
        self.weights = weights

    async def _load_user(self, user_id: str) -> dict:
        user = await users_coll.find_one({"user_id": user_id})
        if not user:
            raise NotFoundError("User not found", resource="user", resource_id=user_id)
        return user

    @staticmethod
    def _previous_scores(user: dict) -> VerificationScoreSet:
        return VerificationScoreSet(**{field: user.get(field) for field in SCORE_FIELDS})

    @staticmethod
    def _to_record(user: dict) -> VerificationRecord:
        data = {k: v for k, v in user.items() if k in VerificationRecord.model_fields and v is not None}
        data["verification_data"] = decode_json_object(user.get("verification_data"), "verification_data")
        return VerificationRecord(**data)

    async def get_verification_data(self, user_id: str) -> VerificationRecord:
        return self._to_record(await self._load_user(user_id))

    async def update_skill_scores(self, user_id: str, scores: SkillScoresUpdate) -> VerificationScoreSet:
        user = await self._load_user(user_id)
        result = recompute_overall(
            scores.ai_skill_score, scores.portfolio_score, scores.experience_score,
            previous=self._previous_scores(user), weights=self.weights,
        )
        await users_coll.update_one({"user_id": user_id}, {"$set": result.model_dump()})
        logger.info(f"User skill scores updated: {user_id} - Overall: {result.overall_score}")
        return result

    async def update_verification_status(self, user_id: str, payload: VerificationStatusUpdate) -> VerificationRecord:
        user = await self._load_user(user_id)

        update = {
            "verification_status": payload.verification_status.value,
            "verification_date": datetime.utcnow(),
        }
        if payload.verification_tier is not None:
            update["verification_tier"] = payload.verification_tier.value
        if payload.verified_by is not None:
            update["verified_by"] = payload.verified_by
        if payload.verification_data is not None:
            update["verification_data"] = payload.verification_data

        if any(getattr(payload, field) is not None for field in SCORE_FIELDS):
            scores = recompute_overall(
                payload.ai_skill_score, payload.portfolio_score, payload.experience_score,
                previous=self._previous_scores(user), weights=self.weights,
            )
            update.update(scores.model_dump())

        await users_coll.update_one({"user_id": user_id}, {"$set": update})
        logger.info(f"User verification updated: {user_id} - {payload.verification_status.value}")

        return self._to_record({**user, **update})


verification_service = VerificationService()
