"""
Data Models and Scoring Components

Pydantic models for contacts and profiles plus the matcher, warmth, and
nudge implementations.
"""

from warmline.models.entities import (
    Contact,
    ImportOutcome,
    MatchResult,
    Nudge,
    NudgePriority,
    NudgeStatus,
    NudgeType,
    ParsedContact,
    Position,
    RowIssue,
    UserProfile,
    WarmthStatus,
    merge_profile,
)
from warmline.models.matcher import RelationshipMatcher, match
from warmline.models.warmth import WarmthCalculator
from warmline.models.nudges import NudgeGenerator

__all__ = [
    "Contact",
    "ImportOutcome",
    "MatchResult",
    "Nudge",
    "NudgePriority",
    "NudgeStatus",
    "NudgeType",
    "ParsedContact",
    "Position",
    "RowIssue",
    "UserProfile",
    "WarmthStatus",
    "merge_profile",
    "RelationshipMatcher",
    "match",
    "WarmthCalculator",
    "NudgeGenerator",
]
