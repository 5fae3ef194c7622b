from typing import Iterable, List, NamedTuple, Optional

from marketplace.models.models import CandidateProfile, TeamLocation
from marketplace.models.scoring_settings import DEFAULT_MATCHING_SETTINGS, MatchingSettings

NO_SIGNAL_REASON = "No strong signals"


class Contribution(NamedTuple):
    points: int
    source: str   # skill | title | role | bio | experience | location
    label: str


def _lower(text: Optional[str]) -> str:
    return text.lower() if text else ""


def location_matches(candidate: CandidateProfile, team_location: Optional[TeamLocation]) -> bool:
    city = _lower(team_location.city if team_location else None).strip()
    if not city:
        return False
    if city in _lower(candidate.location):
        return True
    return city == _lower(candidate.country).strip()


def collect_contributions(
    keywords: Iterable[str],
    candidate: CandidateProfile,
    team_location: Optional[TeamLocation] = None,
    settings: MatchingSettings = DEFAULT_MATCHING_SETTINGS,
) -> List[Contribution]:
    """Every scoring signal for a candidate, in keyword order, location last."""
    bio = _lower(candidate.bio)
    title = _lower(candidate.job_title)
    skills = [(s, s.lower()) for s in candidate.skills if s]
    roles = [(e.role, e.role.lower()) for e in candidate.work_experiences if e.role]
    descriptions = [e.description.lower() for e in candidate.work_experiences if e.description]

    out = []
    for kw in sorted({k.lower() for k in keywords if k}):
        skill = next((name for name, low in skills if kw in low), None)
        if skill:
            out.append(Contribution(settings.skill_points, "skill", skill))
        if kw in title:
            out.append(Contribution(settings.job_title_points, "title", candidate.job_title))
        role = next((name for name, low in roles if kw in low), None)
        if role:
            out.append(Contribution(settings.experience_role_points, "role", role))
        if kw in bio:
            out.append(Contribution(settings.bio_points, "bio", kw))
        if any(kw in d for d in descriptions):
            out.append(Contribution(settings.experience_description_points, "experience", kw))

    if location_matches(candidate, team_location):
        out.append(Contribution(settings.location_points, "location", candidate.location or candidate.country))
    return [c for c in out if c.points > 0]


def calculate_match_score(
    keywords: Iterable[str],
    candidate: CandidateProfile,
    team_location: Optional[TeamLocation] = None,
    settings: MatchingSettings = DEFAULT_MATCHING_SETTINGS,
) -> int:
    return sum(c.points for c in collect_contributions(keywords, candidate, team_location, settings))


_PHRASES = {
    "skill": "skilled in {}",
    "title": "works as {}",
    "role": "experience as {}",
    "bio": "mentions {}",
    "experience": "mentions {}",
    "location": "based in {}",
}


def describe_contributions(contributions: List[Contribution], max_factors: int = 3) -> str:
    """Short phrase naming the top weighted, distinct factors."""
    ranked = sorted(contributions, key=lambda c: -c.points)
    picked, seen = [], set()
    for c in ranked:
        key = (c.source, c.label.lower())
        if key in seen:
            continue
        seen.add(key)
        picked.append(c)
        if len(picked) == max_factors:
            break
    if not picked:
        return NO_SIGNAL_REASON

    grouped = {}
    for c in picked:
        phrase = _PHRASES[c.source]
        grouped.setdefault(phrase, []).append(c.label)
    reason = "; ".join(phrase.format(", ".join(labels)) for phrase, labels in grouped.items())
    return reason[0].upper() + reason[1:]


def generate_match_reason(
    keywords: Iterable[str],
    candidate: CandidateProfile,
    team_location: Optional[TeamLocation] = None,
    settings: MatchingSettings = DEFAULT_MATCHING_SETTINGS,
) -> str:
    contributions = collect_contributions(keywords, candidate, team_location, settings)
    return describe_contributions(contributions, settings.max_reason_factors)
