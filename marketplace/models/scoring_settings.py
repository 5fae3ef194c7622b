"""
Tunable scoring and pricing settings
"""
from pydantic import BaseModel, Field, field_validator, model_validator

from marketplace.utils import config


class MatchingSettings(BaseModel):
    """Point values and limits for member suggestions"""
    skill_points: int = Field(default=3, ge=0, description="Points when a keyword appears in a skill")
    job_title_points: int = Field(default=2, ge=0, description="Points when a keyword appears in the job title")
    experience_role_points: int = Field(default=2, ge=0, description="Points when a keyword appears in a past role")
    bio_points: int = Field(default=1, ge=0, description="Points when a keyword appears in the bio")
    experience_description_points: int = Field(default=1, ge=0, description="Points when a keyword appears in a role description")
    location_points: int = Field(default=config.LOCATION_MATCH_POINTS, ge=0, description="Bonus for sharing the team's city")
    min_score: int = Field(default=config.SUGGESTION_MIN_SCORE, ge=0, description="Candidates below this score are dropped")
    candidate_pool_size: int = Field(default=config.SUGGESTION_POOL_SIZE, ge=1, description="Max profiles loaded per run")
    default_limit: int = Field(default=config.SUGGESTION_DEFAULT_LIMIT, ge=1, description="Default number of suggestions")
    max_reason_factors: int = Field(default=3, ge=1, le=3, description="Factors quoted in a match reason")


class EngagementSettings(BaseModel):
    """Engagement pricing defaults"""
    platform_fee_percent: float = Field(default=config.PLATFORM_FEE_PERCENT, ge=0.0, le=100.0)
    currency: str = Field(default=config.DEFAULT_CURRENCY, min_length=3, max_length=3)
    search_limit: int = Field(default=config.ENGAGEMENT_SEARCH_LIMIT, ge=1, le=200)

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v):
        return v.upper()


class VerificationWeights(BaseModel):
    """Weights of the overall verification score"""
    skill_weight: float = Field(default=config.VERIFICATION_SKILL_WEIGHT, ge=0.0, le=1.0)
    portfolio_weight: float = Field(default=config.VERIFICATION_PORTFOLIO_WEIGHT, ge=0.0, le=1.0)
    experience_weight: float = Field(default=config.VERIFICATION_EXPERIENCE_WEIGHT, ge=0.0, le=1.0)

    @model_validator(mode='after')
    def validate_total_weights(self):
        total = self.skill_weight + self.portfolio_weight + self.experience_weight
        if abs(total - 1.0) > 0.01:  # Allow small floating point errors
            raise ValueError('Verification weights must sum to 1.0')
        return self


DEFAULT_MATCHING_SETTINGS = MatchingSettings()
DEFAULT_ENGAGEMENT_SETTINGS = EngagementSettings()
DEFAULT_VERIFICATION_WEIGHTS = VerificationWeights()
