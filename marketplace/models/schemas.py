from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

from marketplace.helpers.parsing import to_naive_utc
from marketplace.models.models import (
    DeliveryModel, EngagementStatus, MilestoneStatus, PricingModel,
    TalentTier, VerificationStatus
)


# -------- Engagements --------
class MilestoneInput(BaseModel):
    id: Optional[str] = None  # generated when omitted
    title: str
    description: Optional[str] = None
    amount: float = Field(ge=0)
    due_date: Optional[datetime] = None
    status: MilestoneStatus = MilestoneStatus.PENDING
    paid_date: Optional[datetime] = None

    @field_validator('due_date', 'paid_date')
    @classmethod
    def naive_utc_dates(cls, v):
        return to_naive_utc(v)


class EngagementCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    client_name: Optional[str] = None
    consulting_firm_id: str
    client_id: Optional[str] = None
    status: Optional[EngagementStatus] = None
    pricing_model: PricingModel
    total_value: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    delivery_model: Optional[DeliveryModel] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=0)
    platform_fee_percent: Optional[float] = Field(default=None, ge=0, le=100)
    milestones: List[MilestoneInput] = Field(default_factory=list)

    @field_validator('start_date', 'end_date')
    @classmethod
    def naive_utc_dates(cls, v):
        return to_naive_utc(v)


class EngagementUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    client_name: Optional[str] = None
    client_id: Optional[str] = None
    status: Optional[EngagementStatus] = None
    pricing_model: Optional[PricingModel] = None
    total_value: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    delivery_model: Optional[DeliveryModel] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=0)
    platform_fee_percent: Optional[float] = Field(default=None, ge=0, le=100)
    platform_fee_paid: Optional[bool] = None
    milestones: Optional[List[MilestoneInput]] = None

    @field_validator('start_date', 'end_date')
    @classmethod
    def naive_utc_dates(cls, v):
        return to_naive_utc(v)


class MilestoneStatusUpdate(BaseModel):
    status: MilestoneStatus
    paid_date: Optional[datetime] = None

    @field_validator('paid_date')
    @classmethod
    def naive_utc_date(cls, v):
        return to_naive_utc(v)


class EngagementSearchFilters(BaseModel):
    consulting_firm_id: Optional[str] = None
    client_id: Optional[str] = None
    status: Optional[EngagementStatus] = None
    pricing_model: Optional[PricingModel] = None
    start_date_from: Optional[datetime] = None
    start_date_to: Optional[datetime] = None
    limit: Optional[int] = Field(default=None, ge=1, le=200)
    offset: int = Field(default=0, ge=0)

    @field_validator('start_date_from', 'start_date_to')
    @classmethod
    def naive_utc_dates(cls, v):
        return to_naive_utc(v)


# -------- Verification --------
class SkillScoresUpdate(BaseModel):
    ai_skill_score: Optional[float] = Field(default=None, ge=0, le=100)
    portfolio_score: Optional[float] = Field(default=None, ge=0, le=100)
    experience_score: Optional[float] = Field(default=None, ge=0, le=100)


class VerificationStatusUpdate(SkillScoresUpdate):
    verification_status: VerificationStatus
    verification_tier: Optional[TalentTier] = None
    verification_data: Optional[Dict[str, Any]] = None
    verified_by: Optional[str] = None


class VerificationRecord(BaseModel):
    user_id: str
    verification_status: VerificationStatus = VerificationStatus.UNVERIFIED
    verification_tier: Optional[TalentTier] = None
    verification_date: Optional[datetime] = None
    verified_by: Optional[str] = None
    ai_skill_score: Optional[float] = None
    portfolio_score: Optional[float] = None
    experience_score: Optional[float] = None
    overall_score: int = 0
    verification_data: Dict[str, Any] = Field(default_factory=dict)
