"""
Engagement Service - consulting engagements, milestones and platform fees
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from pymongo import DESCENDING

from marketplace.helpers.parsing import to_naive_utc
from marketplace.models.models import Engagement, EngagementStatus, Milestone, MilestoneStatus
from marketplace.models.response import EngagementStats
from marketplace.models.schemas import (
    EngagementCreate, EngagementSearchFilters, EngagementUpdate, MilestoneInput
)
from marketplace.models.scoring_settings import DEFAULT_ENGAGEMENT_SETTINGS, EngagementSettings
from marketplace.services.db import engagements_coll, teams_coll, transactions_coll, users_coll
from marketplace.utils.exceptions import BusinessLogicError, NotFoundError, ValidationError
from marketplace.utils.logging_config import get_logger

logger = get_logger(__name__)


# ==================== FINANCIAL MODEL ====================

def compute_fee(total_value: Optional[float], fee_percent: Optional[float]) -> Optional[float]:
    """Platform fee for a contract value, or None while either input is unknown."""
    if total_value is None or fee_percent is None:
        return None
    if total_value < 0:
        raise ValidationError("Total value cannot be negative", field="total_value", value=total_value)
    if fee_percent < 0:
        raise ValidationError("Platform fee percent cannot be negative", field="platform_fee_percent", value=fee_percent)
    return total_value * fee_percent / 100


def validate_dates(start: Optional[datetime], end: Optional[datetime]) -> None:
    """Start must not be after end. Naive values are UTC; aware ones are converted."""
    start, end = to_naive_utc(start), to_naive_utc(end)
    if start is not None and end is not None and start > end:
        raise ValidationError(
            "Start date must be before end date",
            field="start_date",
            details={"start_date": start.isoformat(), "end_date": end.isoformat()}
        )


def upsert_milestone(
    milestones: Sequence[Milestone],
    milestone_id: str,
    new_status: Union[MilestoneStatus, str],
    paid_date: Optional[datetime] = None,
) -> List[Milestone]:
    """
    Return a new milestone list with one entry's status and paid date replaced.

    Every other entry is carried over as the same object, in the same order.
    """
    try:
        status = MilestoneStatus(new_status)
    except ValueError:
        raise ValidationError("Unknown milestone status", field="status", value=new_status)

    index = next((i for i, m in enumerate(milestones) if m.id == milestone_id), None)
    if index is None:
        raise NotFoundError("Milestone not found", resource="milestone", resource_id=milestone_id)

    updated = list(milestones)
    updated[index] = milestones[index].model_copy(
        update={"status": status.value, "paid_date": to_naive_utc(paid_date)}
    )
    return updated


def can_delete(engagement: Engagement, linked_transaction_count: int) -> bool:
    if engagement.status == EngagementStatus.ACTIVE:
        return False
    return linked_transaction_count <= 0


def build_milestones(items: Sequence[MilestoneInput]) -> List[Milestone]:
    """Assign ids to new milestones and reject duplicates within one engagement."""
    milestones, seen = [], set()
    for item in items:
        data = item.model_dump()
        data["id"] = data["id"] or str(uuid.uuid4())
        if data["id"] in seen:
            raise ValidationError("Duplicate milestone id", field="milestones", value=data["id"])
        seen.add(data["id"])
        milestones.append(Milestone(**data))
    return milestones


def summarize(engagements: Sequence[Engagement]) -> EngagementStats:
    stats = EngagementStats(total=len(engagements))
    for engagement in engagements:
        status = EngagementStatus(engagement.status)
        stats.by_status[status] = stats.by_status.get(status, 0) + 1
        if engagement.total_value:
            stats.total_value += engagement.total_value
        if engagement.platform_fee_amount:
            stats.total_platform_fees += engagement.platform_fee_amount
            if not engagement.platform_fee_paid:
                stats.unpaid_platform_fees += engagement.platform_fee_amount
    return stats


# ==================== PERSISTENCE-BACKED SERVICE ====================

# Fields an update may not set to null
_REQUIRED_ON_UPDATE = ("title", "status", "pricing_model", "currency", "platform_fee_percent", "platform_fee_paid")


def _to_document(engagement: Engagement) -> Dict[str, Any]:
    return engagement.model_dump()


class EngagementService:
    """Engagement lifecycle over the engagements collection"""

    def __init__(self, settings: EngagementSettings = DEFAULT_ENGAGEMENT_SETTINGS):
        self.settings = settings

    async def _find_owned(self, engagement_id: str, firm_id: str) -> Engagement:
        doc = await engagements_coll.find_one({"engagement_id": engagement_id, "consulting_firm_id": firm_id})
        if not doc:
            raise NotFoundError("Engagement not found or unauthorized", resource="engagement", resource_id=engagement_id)
        return Engagement.from_document(doc)

    async def _find_many(self, query: Dict[str, Any], skip: int = 0, limit: int = 0) -> List[Engagement]:
        cursor = engagements_coll.find(query, sort=[("created_at", DESCENDING)], skip=skip, limit=limit)
        docs = await cursor.to_list(length=None)
        return [Engagement.from_document(doc) for doc in docs]

    async def get_engagement(self, engagement_id: str) -> Engagement:
        doc = await engagements_coll.find_one({"engagement_id": engagement_id})
        if not doc:
            raise NotFoundError("Engagement not found", resource="engagement", resource_id=engagement_id)
        return Engagement.from_document(doc)

    async def list_by_firm(self, firm_id: str) -> List[Engagement]:
        engagements = await self._find_many({"consulting_firm_id": firm_id})
        logger.info(f"Retrieved {len(engagements)} engagements for firm {firm_id}")
        return engagements

    async def list_by_client(self, client_id: str) -> List[Engagement]:
        engagements = await self._find_many({"client_id": client_id})
        logger.info(f"Retrieved {len(engagements)} engagements for client {client_id}")
        return engagements

    async def create_engagement(self, payload: EngagementCreate) -> Engagement:
        firm = await teams_coll.find_one({"team_id": payload.consulting_firm_id})
        if not firm:
            raise NotFoundError("Consulting firm not found", resource="team", resource_id=payload.consulting_firm_id)
        if not firm.get("is_consulting_firm"):
            raise ValidationError("Team is not registered as a consulting firm", field="consulting_firm_id",
                                  value=payload.consulting_firm_id)

        if payload.client_id:
            client = await users_coll.find_one({"user_id": payload.client_id})
            if not client:
                raise NotFoundError("Client user not found", resource="user", resource_id=payload.client_id)

        validate_dates(payload.start_date, payload.end_date)

        fee_percent = payload.platform_fee_percent
        if fee_percent is None:
            fee_percent = self.settings.platform_fee_percent

        data = payload.model_dump(exclude={"milestones", "status", "currency", "platform_fee_percent"})
        engagement = Engagement(
            **data,
            engagement_id=str(uuid.uuid4()),
            status=payload.status or EngagementStatus.PROPOSAL,
            currency=(payload.currency or self.settings.currency).upper(),
            platform_fee_percent=fee_percent,
            platform_fee_amount=compute_fee(payload.total_value, fee_percent),
            milestones=build_milestones(payload.milestones),
        )

        await engagements_coll.insert_one(_to_document(engagement))
        logger.info(f"Engagement created: {engagement.engagement_id} for firm {payload.consulting_firm_id}")
        return engagement

    async def update_engagement(self, engagement_id: str, firm_id: str, payload: EngagementUpdate) -> Engagement:
        current = await self._find_owned(engagement_id, firm_id)

        changes = payload.model_dump(exclude_unset=True, exclude={"milestones"})
        for key in _REQUIRED_ON_UPDATE:
            if key in changes and changes[key] is None:
                changes.pop(key)
        if "currency" in changes:
            changes["currency"] = changes["currency"].upper()
        if payload.milestones is not None:
            changes["milestones"] = build_milestones(payload.milestones)

        merged = current.model_dump()
        merged.update(changes)
        merged["updated_at"] = datetime.utcnow()

        validate_dates(merged.get("start_date"), merged.get("end_date"))
        merged["platform_fee_amount"] = compute_fee(merged.get("total_value"), merged.get("platform_fee_percent"))

        updated = Engagement(**merged)
        document = _to_document(updated)
        document.pop("engagement_id")
        await engagements_coll.update_one({"engagement_id": engagement_id}, {"$set": document})

        logger.info(f"Engagement updated: {engagement_id}", extra={"fields": sorted(changes)})
        return updated

    async def delete_engagement(self, engagement_id: str, firm_id: str) -> bool:
        engagement = await self._find_owned(engagement_id, firm_id)

        if engagement.status == EngagementStatus.ACTIVE:
            raise BusinessLogicError("Cannot delete active engagement. Please cancel it first.",
                                     rule="no_delete_active")

        linked = await transactions_coll.count_documents({"engagement_id": engagement_id})
        if not can_delete(engagement, linked):
            raise BusinessLogicError("Cannot delete engagement with existing transactions",
                                     rule="no_delete_with_transactions", details={"transactions": linked})

        await engagements_coll.delete_one({"engagement_id": engagement_id})
        logger.info(f"Engagement deleted: {engagement_id}")
        return True

    async def search_engagements(self, filters: EngagementSearchFilters) -> List[Engagement]:
        query: Dict[str, Any] = {}
        for field in ("consulting_firm_id", "client_id", "status", "pricing_model"):
            value = getattr(filters, field)
            if value is not None:
                query[field] = getattr(value, "value", value)

        if filters.start_date_from or filters.start_date_to:
            query["start_date"] = {}
            if filters.start_date_from:
                query["start_date"]["$gte"] = filters.start_date_from
            if filters.start_date_to:
                query["start_date"]["$lte"] = filters.start_date_to

        return await self._find_many(query, skip=filters.offset, limit=filters.limit or self.settings.search_limit)

    async def get_engagement_stats(self, firm_id: str) -> EngagementStats:
        return summarize(await self._find_many({"consulting_firm_id": firm_id}))

    async def update_milestone(
        self,
        engagement_id: str,
        firm_id: str,
        milestone_id: str,
        status: Union[MilestoneStatus, str],
        paid_date: Optional[datetime] = None,
    ) -> Engagement:
        engagement = await self._find_owned(engagement_id, firm_id)
        milestones = upsert_milestone(engagement.milestones, milestone_id, status, paid_date)
        now = datetime.utcnow()

        await engagements_coll.update_one(
            {"engagement_id": engagement_id},
            {"$set": {"milestones": [m.model_dump() for m in milestones], "updated_at": now}}
        )
        logger.info(f"Milestone {milestone_id} updated in engagement {engagement_id}")
        return engagement.model_copy(update={"milestones": milestones, "updated_at": now})


engagement_service = EngagementService()
