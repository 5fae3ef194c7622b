"""
Member suggestions for teams and consulting firms.

A team's name, description, tags and (for consulting firms) specializations,
tech stack and industries become a keyword set; every user outside the team is
scored against it and the best matches above the noise floor are returned.
"""
from typing import Iterable, List, Optional, Tuple

from marketplace.models.models import CandidateProfile, MatchResult, TeamLocation, TeamProfile
from marketplace.models.response import MemberSummary, SuggestedMember
from marketplace.models.scoring_settings import DEFAULT_MATCHING_SETTINGS, MatchingSettings
from marketplace.services.db import teams_coll, users_coll
from marketplace.services.keywords import collect_keywords
from marketplace.services.matching import collect_contributions, describe_contributions
from marketplace.utils.exceptions import AuthorizationError, NotFoundError, ValidationError
from marketplace.utils.logging_config import get_logger, PerformanceMonitor

logger = get_logger(__name__)

Ranked = Tuple[CandidateProfile, MatchResult]


def _score_all(
    keywords: Iterable[str],
    candidates: Iterable[CandidateProfile],
    team_location: Optional[TeamLocation],
    settings: MatchingSettings,
) -> List[Ranked]:
    keywords = list(keywords)
    scored = []
    for candidate in candidates:
        contributions = collect_contributions(keywords, candidate, team_location, settings)
        result = MatchResult(
            candidate_id=candidate.id,
            score=sum(c.points for c in contributions),
            match_reason=describe_contributions(contributions, settings.max_reason_factors),
        )
        scored.append((candidate, result))
    return scored


def _select(scored: List[Ranked], limit: int, settings: MatchingSettings) -> List[Ranked]:
    kept = [pair for pair in scored if pair[1].score >= settings.min_score]
    # Equal scores fall back to candidate id so repeated runs agree
    kept.sort(key=lambda pair: (-pair[1].score, pair[1].candidate_id))
    return kept[:limit]


def rank_candidates(
    keywords: Iterable[str],
    candidates: Iterable[CandidateProfile],
    team_location: Optional[TeamLocation] = None,
    limit: Optional[int] = None,
    settings: MatchingSettings = DEFAULT_MATCHING_SETTINGS,
) -> List[MatchResult]:
    """Score, filter, sort and truncate candidates. Pure."""
    limit = settings.default_limit if limit is None else limit
    scored = _score_all(keywords, candidates, team_location, settings)
    return [result for _, result in _select(scored, limit, settings)]


class MemberSuggestionService:
    """Recommends users who are not yet members of a team"""

    def __init__(self, settings: MatchingSettings = DEFAULT_MATCHING_SETTINGS):
        self.settings = settings

    async def load_team(self, team_id: str) -> TeamProfile:
        doc = await teams_coll.find_one({"team_id": team_id})
        if not doc:
            raise NotFoundError("Team not found", resource="team", resource_id=team_id)
        return TeamProfile.from_document(doc)

    async def load_candidates(self, exclude_ids: List[str]) -> List[CandidateProfile]:
        cursor = users_coll.find(
            {"user_id": {"$nin": exclude_ids}},
            limit=self.settings.candidate_pool_size,
            sort=[("user_id", 1)],
        )
        docs = await cursor.to_list(length=None)
        return CandidateProfile.from_documents(docs)

    async def _run(self, team_id: str, requesting_user_id: str, limit: Optional[int]) -> List[Ranked]:
        limit = self.settings.default_limit if limit is None else limit
        if limit < 1:
            raise ValidationError("Limit must be at least 1", field="limit", value=limit)

        team = await self.load_team(team_id)
        if requesting_user_id not in team.member_ids:
            raise AuthorizationError("Only team members can view member suggestions", resource="team")

        extraction = collect_keywords(team)
        if extraction.degraded:
            logger.warning(
                f"Keyword extraction for team {team_id} degraded: {len(extraction.issues)} field issue(s)",
                extra={"team_id": team_id, "issues": [i.model_dump() for i in extraction.issues]}
            )

        logger.info(
            f"Team \"{team.name}\" - Type: {team.type.value}, "
            f"SubCategory: {team.sub_team_category.value if team.sub_team_category else 'none'}, "
            f"isConsultingFirm: {team.is_consulting_firm}"
        )
        logger.info(f"Extracted keywords: [{', '.join(sorted(extraction.keywords))}]")

        with PerformanceMonitor("suggest_members", logger, team_id=team_id):
            candidates = await self.load_candidates(team.member_ids)
            scored = _score_all(extraction.keywords, candidates, TeamLocation(city=team.city), self.settings)
            selected = _select(scored, limit, self.settings)

        for candidate, result in selected:
            logger.info(
                f"  -> {candidate.username or candidate.id} ({candidate.job_title or 'no title'}) "
                f"- Score: {result.score} - Reason: {result.match_reason}"
            )
        logger.info(
            f"Found {len(selected)} suggested members for team {team.name} ({team_id}) "
            f"from {len(candidates)} candidates"
        )
        return selected

    async def suggest_members(self, team_id: str, requesting_user_id: str, limit: Optional[int] = None) -> List[MatchResult]:
        return [result for _, result in await self._run(team_id, requesting_user_id, limit)]

    async def suggest_members_with_profiles(
        self, team_id: str, requesting_user_id: str, limit: Optional[int] = None
    ) -> List[SuggestedMember]:
        ranked = await self._run(team_id, requesting_user_id, limit)
        return [
            SuggestedMember(
                user=MemberSummary(**candidate.model_dump(include=set(MemberSummary.model_fields))),
                score=result.score,
                match_reason=result.match_reason,
            )
            for candidate, result in ranked
        ]


suggestion_service = MemberSuggestionService()
