from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from marketplace.helpers.parsing import (
    ParseIssue, decode_json_list, record_issue, string_entries, to_naive_utc
)


# -------- Enumerations --------
class TeamType(str, Enum):
    TEAM = "TEAM"
    COMPANY = "COMPANY"
    ORGANIZATION = "ORGANIZATION"
    DEPARTMENT = "DEPARTMENT"
    AI_CONSULTING_FIRM = "AI_CONSULTING_FIRM"
    AI_STUDIO = "AI_STUDIO"
    ML_AGENCY = "ML_AGENCY"
    DATA_SCIENCE_FIRM = "DATA_SCIENCE_FIRM"
    AI_RESEARCH_LAB = "AI_RESEARCH_LAB"


class SubTeamCategory(str, Enum):
    ENGINEERING = "ENGINEERING"
    MARKETING = "MARKETING"
    DESIGN = "DESIGN"
    HR = "HR"
    SALES = "SALES"
    PRODUCT = "PRODUCT"
    OPERATIONS = "OPERATIONS"
    FINANCE = "FINANCE"
    LEGAL = "LEGAL"
    SUPPORT = "SUPPORT"
    OTHER = "OTHER"


class EngagementStatus(str, Enum):
    PROPOSAL = "PROPOSAL"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MilestoneStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    PAID = "PAID"


class PricingModel(str, Enum):
    FIXED_PRICE = "FIXED_PRICE"
    TIME_MATERIAL = "TIME_MATERIAL"
    STAFF_AUG = "STAFF_AUG"
    MANAGED_SERVICES = "MANAGED_SERVICES"
    HYBRID = "HYBRID"


class DeliveryModel(str, Enum):
    ONSITE = "ONSITE"
    NEARSHORE = "NEARSHORE"
    OFFSHORE = "OFFSHORE"
    HYBRID = "HYBRID"


class VerificationStatus(str, Enum):
    UNVERIFIED = "UNVERIFIED"
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    VERIFIED = "VERIFIED"
    VERIFIED_EXPERT = "VERIFIED_EXPERT"
    REJECTED = "REJECTED"


class TalentTier(str, Enum):
    JUNIOR = "JUNIOR"
    MID = "MID"
    SENIOR = "SENIOR"
    EXPERT = "EXPERT"
    PRINCIPAL = "PRINCIPAL"


def _enum_or_default(enum_cls, raw, default, field: str, issues: List[ParseIssue]):
    if raw is None or raw == "":
        return default
    try:
        return enum_cls(raw)
    except ValueError:
        record_issue(issues, field, f"unknown {enum_cls.__name__} value", raw)
        return default


# -------- Matching inputs --------
class TeamProfile(BaseModel):
    """Descriptive team data used for keyword extraction"""
    team_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    type: TeamType = TeamType.TEAM
    sub_team_category: Optional[SubTeamCategory] = None
    is_consulting_firm: bool = False
    ai_specializations: List[str] = Field(default_factory=list)
    tech_stack: List[str] = Field(default_factory=list)
    industries: List[str] = Field(default_factory=list)
    city: Optional[str] = None
    member_ids: List[str] = Field(default_factory=list)
    parse_issues: List[ParseIssue] = Field(default_factory=list, exclude=True)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "TeamProfile":
        """Build a profile from a stored team document, decoding array columns once."""
        issues: List[ParseIssue] = []
        arrays = {}
        for field in ("ai_specializations", "tech_stack", "industries"):
            arrays[field] = string_entries(decode_json_list(doc.get(field), field, issues), field, issues)

        member_ids = []
        for member in decode_json_list(doc.get("members"), "members", issues):
            if isinstance(member, dict) and member.get("user_id"):
                member_ids.append(str(member["user_id"]))
            elif isinstance(member, str):
                member_ids.append(member)

        return cls(
            team_id=doc.get("team_id"),
            name=doc.get("name") or "",
            description=doc.get("description") or None,
            type=_enum_or_default(TeamType, doc.get("type"), TeamType.TEAM, "type", issues),
            sub_team_category=_enum_or_default(
                SubTeamCategory, doc.get("sub_team_category"), None, "sub_team_category", issues
            ),
            is_consulting_firm=bool(doc.get("is_consulting_firm")),
            city=doc.get("city") or None,
            member_ids=member_ids,
            parse_issues=issues,
            **arrays,
        )


class WorkExperience(BaseModel):
    role: str = ""
    description: Optional[str] = None


class CandidateProfile(BaseModel):
    """A user considered for team membership"""
    id: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    job_title: Optional[str] = None
    location: Optional[str] = None
    country: Optional[str] = None
    available: bool = True
    skills: List[str] = Field(default_factory=list)
    work_experiences: List[WorkExperience] = Field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "CandidateProfile":
        """
        Build a candidate from a stored user document with joined skills and work history.

        Raises ValueError for a document without a ``user_id``; callers
        loading a pool should use ``from_documents``.
        """
        if not doc.get("user_id"):
            raise ValueError("User document has no user_id")
        issues: List[ParseIssue] = []
        skills = []
        for entry in decode_json_list(doc.get("skills"), "skills", issues):
            if isinstance(entry, str):
                name = entry
            elif isinstance(entry, dict):
                name = entry.get("skill_name") or entry.get("name") or (entry.get("skill") or {}).get("name")
            else:
                name = None
            if name:
                skills.append(name)

        experiences = []
        for entry in decode_json_list(doc.get("work_experiences"), "work_experiences", issues):
            if not isinstance(entry, dict):
                continue
            experiences.append(WorkExperience(
                role=entry.get("role") or entry.get("title") or "",
                description=entry.get("description") or None,
            ))

        return cls(
            id=str(doc.get("user_id")),
            username=doc.get("username"),
            first_name=doc.get("first_name"),
            last_name=doc.get("last_name"),
            avatar=doc.get("avatar"),
            bio=doc.get("bio") or None,
            job_title=doc.get("job_title") or None,
            location=doc.get("location") or None,
            country=doc.get("country") or None,
            available=doc.get("available") is not False,
            skills=skills,
            work_experiences=experiences,
        )

    @classmethod
    def from_documents(
        cls, docs: List[Dict[str, Any]], issues: Optional[List[ParseIssue]] = None
    ) -> List["CandidateProfile"]:
        """Build candidates from user documents, skipping any without a user_id."""
        candidates = []
        for doc in docs:
            if not doc.get("user_id"):
                record_issue(issues, "user_id", "user document without user_id skipped", doc.get("username"))
                continue
            candidates.append(cls.from_document(doc))
        return candidates


class TeamLocation(BaseModel):
    city: Optional[str] = None


class MatchResult(BaseModel):
    candidate_id: str
    score: int = Field(ge=0)
    match_reason: str


# -------- Engagements --------
class Milestone(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str
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


class Engagement(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    engagement_id: str
    title: str
    description: Optional[str] = None
    client_name: Optional[str] = None
    consulting_firm_id: str
    client_id: Optional[str] = None
    status: EngagementStatus = EngagementStatus.PROPOSAL
    pricing_model: PricingModel
    total_value: Optional[float] = Field(default=None, ge=0)
    currency: str = "USD"
    delivery_model: Optional[DeliveryModel] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=0)
    platform_fee_percent: float = Field(default=22.5, ge=0, le=100)
    platform_fee_amount: Optional[float] = None
    platform_fee_paid: bool = False
    milestones: List[Milestone] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('start_date', 'end_date', 'created_at', 'updated_at')
    @classmethod
    def naive_utc_dates(cls, v):
        return to_naive_utc(v)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Engagement":
        """Build an engagement from a stored document, decoding milestones once."""
        data = {k: v for k, v in doc.items() if k != "_id"}
        data["milestones"] = decode_json_list(doc.get("milestones"), "milestones")
        return cls(**data)


# -------- Verification --------
class VerificationScoreSet(BaseModel):
    ai_skill_score: Optional[float] = Field(default=None, ge=0, le=100)
    portfolio_score: Optional[float] = Field(default=None, ge=0, le=100)
    experience_score: Optional[float] = Field(default=None, ge=0, le=100)
    overall_score: int = Field(default=0, ge=0, le=100)
