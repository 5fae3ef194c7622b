from typing import Any, Iterable, List, Set

from pydantic import BaseModel, Field

from marketplace.helpers.parsing import ParseIssue, record_issue
from marketplace.models.models import TeamProfile
from marketplace.utils.logging_config import get_logger

logger = get_logger(__name__)

CONSULTING_FIELDS = ("ai_specializations", "tech_stack", "industries")


class KeywordExtraction(BaseModel):
    keywords: Set[str] = Field(default_factory=set)
    issues: List[ParseIssue] = Field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.issues)


def tokenize(text: Any) -> List[str]:
    """Whitespace tokens, lower-cased. Non-text yields nothing."""
    if not isinstance(text, str):
        return []
    return [token.lower() for token in text.split()]


def _tag_value(tag: Any) -> str:
    value = getattr(tag, "value", tag)
    return value.lower() if isinstance(value, str) else ""


def _entry_words(entries: Any, field: str, issues: List[ParseIssue]) -> Iterable[str]:
    if entries is None:
        return []
    if isinstance(entries, str) or not isinstance(entries, (list, tuple)):
        record_issue(issues, field, f"expected a sequence, got {type(entries).__name__}", entries)
        return []
    words = []
    for entry in entries:
        if not isinstance(entry, str):
            record_issue(issues, field, f"non-string entry {type(entry).__name__}", entry)
            continue
        words.extend(tokenize(entry))
    return words


def collect_keywords(team: TeamProfile) -> KeywordExtraction:
    """Extract keywords and report which stored fields could not be used."""
    issues: List[ParseIssue] = list(getattr(team, "parse_issues", None) or [])
    keywords: Set[str] = set()

    keywords.update(tokenize(team.name))
    keywords.update(tokenize(team.description))

    for tag in (team.type, team.sub_team_category):
        value = _tag_value(tag)
        if value:
            keywords.add(value)

    if team.is_consulting_firm:
        for field in CONSULTING_FIELDS:
            keywords.update(_entry_words(getattr(team, field, None), field, issues))

    logger.debug(f"Extracted {len(keywords)} keywords for team {team.name} ({len(issues)} issue(s))")
    return KeywordExtraction(keywords=keywords, issues=issues)


def extract_keywords(team: TeamProfile) -> Set[str]:
    """Lower-cased keyword set for a team. Never raises on malformed array data."""
    return collect_keywords(team).keywords
