from typing import Optional

from fastapi import APIRouter, Query, Request

from marketplace.models.response import SuggestionResponse
from marketplace.services.suggestions import suggestion_service
from marketplace.utils.exceptions import ExceptionContext
from marketplace.utils.logging_config import get_logger, PerformanceMonitor

router = APIRouter()
logger = get_logger(__name__)


@router.get("/{team_id}/suggested-members", response_model=SuggestionResponse)
async def get_suggested_members(
    team_id: str,
    request: Request,
    user_id: str = Query(..., description="Member of the team asking for suggestions"),
    limit: Optional[int] = Query(None, ge=1, le=50, description="Maximum number of suggestions"),
):
    """Recommend users who would fit this team"""
    request_id = getattr(request.state, 'request_id', 'unknown')

    logger.info(
        f"Suggesting members for team {team_id}",
        extra={"request_id": request_id, "team_id": team_id, "user_id": user_id}
    )

    with PerformanceMonitor("get_suggested_members", logger, request_id=request_id, team_id=team_id):
        with ExceptionContext("suggest_members", logger, request_id=request_id, team_id=team_id):
            suggestions = await suggestion_service.suggest_members_with_profiles(team_id, user_id, limit)

    return SuggestionResponse(team_id=team_id, count=len(suggestions), suggestions=suggestions)
