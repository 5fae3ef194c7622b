from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

from marketplace.models.models import EngagementStatus


class MemberSummary(BaseModel):
    id: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    job_title: Optional[str] = None
    location: Optional[str] = None
    available: bool = True


class SuggestedMember(BaseModel):
    user: MemberSummary
    score: int
    match_reason: str


class SuggestionResponse(BaseModel):
    team_id: str
    count: int
    suggestions: List[SuggestedMember]
    generated_at: datetime = Field(default_factory=datetime.utcnow)


class EngagementStats(BaseModel):
    total: int = 0
    by_status: Dict[EngagementStatus, int] = Field(
        default_factory=lambda: {status: 0 for status in EngagementStatus}
    )
    total_value: float = 0.0
    total_platform_fees: float = 0.0
    unpaid_platform_fees: float = 0.0


class DeleteResponse(BaseModel):
    success: bool
    engagement_id: str
