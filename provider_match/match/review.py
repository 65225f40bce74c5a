"""
Review routing for ProviderMatch.

Turns a match into the advisory action the record store caller takes:
exact duplicates are blocked, high and uncertain matches may still be
created but are flagged for human review against the matched entity.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .models import MatchResult, MatchType


class ReviewAction(Enum):
    CREATE = "create"
    BLOCK = "block"
    WARN = "warn"
    REVIEW = "review"


_ACTIONS = {
    MatchType.EXACT: ReviewAction.BLOCK,
    MatchType.HIGH: ReviewAction.WARN,
    MatchType.UNCERTAIN: ReviewAction.REVIEW,
}


@dataclass(frozen=True)
class ReviewDecision:
    action: ReviewAction
    needs_review: bool = False
    duplicate_of: Any = None
    match_type: Optional[MatchType] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "needs_review": self.needs_review,
            "duplicate_of": self.duplicate_of,
        }


def route_match(result: Optional[MatchResult]) -> ReviewDecision:
    """
    Decide what the caller should do with a candidate.

    Args:
        result: Output of find_duplicate (None when nothing matched)

    Returns:
        ReviewDecision; needs_review and duplicate_of are only set for
        high and uncertain matches
    """
    if result is None:
        return ReviewDecision(ReviewAction.CREATE)

    flag = result.match_type in (MatchType.HIGH, MatchType.UNCERTAIN)
    return ReviewDecision(
        action=_ACTIONS[result.match_type],
        needs_review=flag,
        duplicate_of=result.entity.id if flag else None,
        match_type=result.match_type,
    )
