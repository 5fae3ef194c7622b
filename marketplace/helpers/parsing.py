"""
Load-time normalisation for stored and incoming values.

Older records keep list fields such as ``tech_stack`` or ``milestones`` as
JSON-encoded strings. Everything here decodes such a value once, at load time,
and reports anything unreadable as a ParseIssue instead of raising. Datetimes
are brought to naive UTC so stored and request values always compare.
"""
import json
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel

from marketplace.utils.logging_config import get_logger

logger = get_logger(__name__)

PARSE_DEGRADED = "PARSE_DEGRADED"


class ParseIssue(BaseModel):
    """A stored value that could not be decoded and was skipped"""
    field: str
    reason: str
    raw_preview: str = ""
    kind: str = PARSE_DEGRADED


def _preview(raw: Any, size: int = 80) -> str:
    text = raw if isinstance(raw, str) else repr(raw)
    return text[:size]


def record_issue(issues: Optional[List[ParseIssue]], field: str, reason: str, raw: Any = None) -> ParseIssue:
    issue = ParseIssue(field=field, reason=reason, raw_preview=_preview(raw) if raw is not None else "")
    logger.warning(f"{PARSE_DEGRADED}: {field} - {reason}", extra={"field": field, "raw_preview": issue.raw_preview})
    if issues is not None:
        issues.append(issue)
    return issue


def decode_json_list(raw: Any, field: str, issues: Optional[List[ParseIssue]] = None) -> List[Any]:
    """Return ``raw`` as a list, decoding JSON text when needed. Bad data yields []."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, str):
        try:
            value = json.loads(raw)
        except (json.JSONDecodeError, ValueError) as e:
            record_issue(issues, field, f"invalid JSON: {e}", raw)
            return []
        if isinstance(value, list):
            return value
        record_issue(issues, field, f"expected an array, got {type(value).__name__}", raw)
        return []
    record_issue(issues, field, f"expected an array, got {type(raw).__name__}", raw)
    return []


def decode_json_object(raw: Any, field: str, issues: Optional[List[ParseIssue]] = None) -> dict:
    """Return ``raw`` as a dict, decoding JSON text when needed. Bad data yields {}."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    if isinstance(raw, str):
        try:
            value = json.loads(raw)
        except (json.JSONDecodeError, ValueError) as e:
            record_issue(issues, field, f"invalid JSON: {e}", raw)
            return {}
        if isinstance(value, dict):
            return value
        record_issue(issues, field, f"expected an object, got {type(value).__name__}", raw)
        return {}
    record_issue(issues, field, f"expected an object, got {type(raw).__name__}", raw)
    return {}


def string_entries(values: List[Any], field: str, issues: Optional[List[ParseIssue]] = None) -> List[str]:
    """Keep the non-blank string entries of a decoded list."""
    out = []
    for value in values:
        if isinstance(value, str):
            if value.strip():
                out.append(value.strip())
        else:
            record_issue(issues, field, f"non-string entry {type(value).__name__}", value)
    return out


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Express a datetime as naive UTC, the form MongoDB hands back.

    Aware values are converted to UTC and stripped of tzinfo; naive values are
    taken to be UTC already and returned unchanged.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
