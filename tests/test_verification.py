import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from marketplace.models.models import VerificationScoreSet
from marketplace.models.schemas import SkillScoresUpdate, VerificationStatusUpdate
from marketplace.models.scoring_settings import VerificationWeights
from marketplace.services.verification import VerificationService, recompute_overall, weighted_overall
from marketplace.utils.exceptions import NotFoundError, ValidationError


class TestRecomputeOverall:

    def test_weighted_aggregate(self):
        previous = VerificationScoreSet(ai_skill_score=0, portfolio_score=0, experience_score=0)

        result = recompute_overall(80, 70, 60, previous)

        assert result.overall_score == 72

    def test_all_absent_is_zero(self):
        result = recompute_overall()

        assert result.overall_score == 0
        assert result.ai_skill_score == 0

    def test_falls_back_to_previous(self):
        previous = VerificationScoreSet(ai_skill_score=50, portfolio_score=90, experience_score=40)

        result = recompute_overall(skill=100, previous=previous)

        assert result.portfolio_score == 90
        assert result.experience_score == 40
        # 40 + 31.5 + 10 = 81.5
        assert result.overall_score == 82

    def test_half_rounds_up(self):
        assert weighted_overall(0, 10, 0) == 4
        assert weighted_overall(1.25, 0, 0) == 1

    def test_out_of_range(self):
        with pytest.raises(ValidationError):
            recompute_overall(101, 50, 50)
        with pytest.raises(ValidationError):
            recompute_overall(50, -1, 50)

    def test_custom_weights(self):
        weights = VerificationWeights(skill_weight=1.0, portfolio_weight=0.0, experience_weight=0.0)

        assert recompute_overall(64, 10, 10, weights=weights).overall_score == 64

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValueError):
            VerificationWeights(skill_weight=0.5, portfolio_weight=0.5, experience_weight=0.5)


class TestVerificationService:

    @patch('marketplace.services.verification.users_coll')
    def test_update_skill_scores(self, mock_users_coll):
        mock_users_coll.find_one = AsyncMock(return_value={
            "user_id": "u1", "ai_skill_score": 10, "portfolio_score": 70, "experience_score": 60,
        })
        mock_users_coll.update_one = AsyncMock()

        result = asyncio.run(VerificationService().update_skill_scores("u1", SkillScoresUpdate(ai_skill_score=80)))

        assert result.overall_score == 72
        stored = mock_users_coll.update_one.call_args[0][1]["$set"]
        assert stored["overall_score"] == 72
        assert stored["ai_skill_score"] == 80

    @patch('marketplace.services.verification.users_coll')
    def test_missing_user(self, mock_users_coll):
        mock_users_coll.find_one = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            asyncio.run(VerificationService().get_verification_data("ghost"))

    @patch('marketplace.services.verification.users_coll')
    def test_get_verification_decodes_evidence(self, mock_users_coll):
        mock_users_coll.find_one = AsyncMock(return_value={
            "user_id": "u1",
            "verification_status": "VERIFIED",
            "verification_data": '{"github": "https://github.com/u1"}',
            "overall_score": 70,
        })

        record = asyncio.run(VerificationService().get_verification_data("u1"))

        assert record.verification_status == "VERIFIED"
        assert record.verification_data == {"github": "https://github.com/u1"}
        assert record.overall_score == 70

    @patch('marketplace.services.verification.users_coll')
    def test_update_status_without_scores_keeps_overall(self, mock_users_coll):
        mock_users_coll.find_one = AsyncMock(return_value={"user_id": "u1", "overall_score": 55})
        mock_users_coll.update_one = AsyncMock()

        record = asyncio.run(VerificationService().update_verification_status(
            "u1", VerificationStatusUpdate(verification_status="UNDER_REVIEW", verified_by="admin-1")
        ))

        stored = mock_users_coll.update_one.call_args[0][1]["$set"]
        assert "overall_score" not in stored
        assert record.overall_score == 55
        assert record.verified_by == "admin-1"

    @patch('marketplace.services.verification.users_coll')
    def test_update_status_with_scores_recomputes(self, mock_users_coll):
        mock_users_coll.find_one = AsyncMock(return_value={"user_id": "u1"})
        mock_users_coll.update_one = AsyncMock()

        record = asyncio.run(VerificationService().update_verification_status(
            "u1", VerificationStatusUpdate(
                verification_status="VERIFIED", verification_tier="SENIOR",
                ai_skill_score=80, portfolio_score=70, experience_score=60,
            )
        ))

        assert record.overall_score == 72
        assert record.verification_tier == "SENIOR"
