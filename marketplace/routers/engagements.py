from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Query, Request

from marketplace.models.models import Engagement, EngagementStatus, PricingModel
from marketplace.models.response import DeleteResponse, EngagementStats
from marketplace.models.schemas import (
    EngagementCreate, EngagementSearchFilters, EngagementUpdate, MilestoneStatusUpdate
)
from marketplace.services.engagement import engagement_service
from marketplace.utils.exceptions import ExceptionContext
from marketplace.utils.logging_config import get_logger, log_api_call

router = APIRouter()
logger = get_logger(__name__)


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', 'unknown')


@router.get("/search", response_model=List[Engagement])
async def search_engagements(
    consulting_firm_id: Optional[str] = None,
    client_id: Optional[str] = None,
    status: Optional[EngagementStatus] = None,
    pricing_model: Optional[PricingModel] = None,
    start_date_from: Optional[datetime] = None,
    start_date_to: Optional[datetime] = None,
    limit: Optional[int] = Query(None, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """Search engagements with filters"""
    filters = EngagementSearchFilters(
        consulting_firm_id=consulting_firm_id,
        client_id=client_id,
        status=status,
        pricing_model=pricing_model,
        start_date_from=start_date_from,
        start_date_to=start_date_to,
        limit=limit,
        offset=offset,
    )
    with ExceptionContext("search_engagements", logger):
        return await engagement_service.search_engagements(filters)


@router.post("/", response_model=Engagement, status_code=201)
@log_api_call("create_engagement")
async def create_engagement(payload: EngagementCreate, request: Request):
    """Create an engagement proposal for a consulting firm"""
    with ExceptionContext("create_engagement", logger, request_id=_request_id(request)):
        return await engagement_service.create_engagement(payload)


@router.get("/firm/{firm_id}", response_model=List[Engagement])
async def get_firm_engagements(firm_id: str):
    """Get all engagements for a consulting firm"""
    with ExceptionContext("list_firm_engagements", logger, firm_id=firm_id):
        return await engagement_service.list_by_firm(firm_id)


@router.get("/firm/{firm_id}/stats", response_model=EngagementStats)
async def get_engagement_stats(firm_id: str):
    """Engagement counts and fee totals for a consulting firm"""
    with ExceptionContext("engagement_stats", logger, firm_id=firm_id):
        return await engagement_service.get_engagement_stats(firm_id)


@router.get("/client/{client_id}", response_model=List[Engagement])
async def get_client_engagements(client_id: str):
    """Get all engagements for a client"""
    with ExceptionContext("list_client_engagements", logger, client_id=client_id):
        return await engagement_service.list_by_client(client_id)


@router.get("/{engagement_id}", response_model=Engagement)
async def get_engagement(engagement_id: str):
    """Fetch an engagement by ID"""
    with ExceptionContext("get_engagement", logger, engagement_id=engagement_id):
        return await engagement_service.get_engagement(engagement_id)


@router.put("/{engagement_id}", response_model=Engagement)
@log_api_call("update_engagement")
async def update_engagement(
    engagement_id: str,
    payload: EngagementUpdate,
    request: Request,
    firm_id: str = Query(..., description="Consulting firm that owns the engagement"),
):
    """Update an engagement owned by the firm"""
    with ExceptionContext("update_engagement", logger, request_id=_request_id(request), engagement_id=engagement_id):
        return await engagement_service.update_engagement(engagement_id, firm_id, payload)


@router.delete("/{engagement_id}", response_model=DeleteResponse)
@log_api_call("delete_engagement")
async def delete_engagement(
    engagement_id: str,
    request: Request,
    firm_id: str = Query(..., description="Consulting firm that owns the engagement"),
):
    """Delete an engagement that is not active and has no transactions"""
    with ExceptionContext("delete_engagement", logger, request_id=_request_id(request), engagement_id=engagement_id):
        success = await engagement_service.delete_engagement(engagement_id, firm_id)
    return DeleteResponse(success=success, engagement_id=engagement_id)


@router.patch("/{engagement_id}/milestones/{milestone_id}", response_model=Engagement)
@log_api_call("update_milestone")
async def update_milestone(
    engagement_id: str,
    milestone_id: str,
    payload: MilestoneStatusUpdate,
    request: Request,
    firm_id: str = Query(..., description="Consulting firm that owns the engagement"),
):
    """Change one milestone's status and paid date"""
    with ExceptionContext("update_milestone", logger, request_id=_request_id(request),
                          engagement_id=engagement_id, milestone_id=milestone_id):
        return await engagement_service.update_milestone(
            engagement_id, firm_id, milestone_id, payload.status, payload.paid_date
        )
