"""
Core Data Models

Pydantic models for imported contacts, the importing user's profile, and
the results of a bulk import.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class WarmthStatus(str, Enum):
    """Freshness bands derived from a warmth score."""
    WARM = "warm"
    COOLING = "cooling"
    COLD = "cold"


class NudgeType(str, Enum):
    """Kinds of follow-up nudges."""
    DECAY = "decay"
    MILESTONE = "milestone"
    LOCATION = "location"
    INTRO = "intro"


class NudgePriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NudgeStatus(str, Enum):
    PENDING = "pending"
    DISMISSED = "dismissed"
    COMPLETED = "completed"


def unique(values: list[str]) -> list[str]:
    """Drop duplicates while keeping first-seen order."""
    return list(dict.fromkeys(v for v in values if v))


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Lowercased, trimmed email, or None when blank."""
    if not email or not email.strip():
        return None
    return email.strip().lower()


class Position(BaseModel):
    """One entry of the user's employment history."""
    company: str = ""
    title: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""

    @property
    def is_current(self) -> bool:
        """A position without an end date is still held."""
        return not self.end_date.strip()


class UserProfile(BaseModel):
    """The importing user's own profile.

    Also used as a partial fragment while parsing: fields left empty are
    treated as "not provided" by merge_profile().
    """
    first_name: str = ""
    last_name: str = ""
    headline: str = ""
    summary: str = ""
    current_company: Optional[str] = None
    current_role: Optional[str] = None
    industries: list[str] = Field(default_factory=list)
    work_history: list[Position] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=datetime.now)

    def model_post_init(self, __context) -> None:
        """Keep industries deduplicated."""
        self.industries = unique(self.industries)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_empty(self) -> bool:
        return not any([
            self.first_name, self.last_name, self.headline, self.summary,
            self.current_company, self.current_role,
            self.industries, self.work_history,
        ])


def merge_profile(existing: Optional[UserProfile], incoming: UserProfile) -> UserProfile:
    """Merge an incoming profile fragment over an existing profile.

    Non-empty incoming values win; empty incoming values keep what was
    already stored. Lists are replaced wholesale when the incoming list is
    non-empty.
    """
    if existing is None:
        return incoming.model_copy(update={"updated_at": datetime.now()})

    merged = existing.model_dump()
    for field, value in incoming.model_dump(exclude={"updated_at"}).items():
        if isinstance(value, str):
            if value.strip():
                merged[field] = value
        elif value:
            merged[field] = value
    merged["updated_at"] = datetime.now()
    return UserProfile(**merged)


class ParsedContact(BaseModel):
    """A contact normalized from one connections-export row.

    Rows with a malformed email are kept with ``error`` set so that callers
    can surface them instead of silently dropping them.
    """
    name: str = Field(min_length=1)
    email: Optional[str] = None
    company: str = "Unknown"
    role: str = "Unknown"
    location: str = "Unknown"
    profile_url: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    notes: str = ""
    priority_score: int = Field(default=50, ge=0, le=100)
    error: Optional[str] = None

    def model_post_init(self, __context) -> None:
        self.tags = unique(self.tags)

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @property
    def normalized_email(self) -> Optional[str]:
        return normalize_email(self.email)


class MatchResult(BaseModel):
    """Relationship signals between the user and one contact."""
    tags: list[str] = Field(default_factory=list)
    similarity_score: int = Field(default=0, ge=0, le=100)

    def model_post_init(self, __context) -> None:
        self.tags = unique(self.tags)


class Contact(BaseModel):
    """A persisted contact."""
    id: str
    name: str = Field(min_length=1)
    email: Optional[str] = None
    company: str = "Unknown"
    role: str = "Unknown"
    location: str = "Unknown"
    profile_url: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    notes: str = ""

    # Scores
    warmth_score: int = Field(default=0, ge=0, le=100)
    priority_score: int = Field(default=50, ge=0, le=100)
    similarity_score: int = Field(default=0, ge=0, le=100)
    mutual_connections_count: int = Field(default=0, ge=0)

    # Follow-up tracking
    last_interaction: Optional[datetime] = None
    next_follow_up: Optional[datetime] = None

    # Classification
    category: Optional[str] = None
    industry: Optional[str] = None
    interests: list[str] = Field(default_factory=list)
    expertise: list[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=datetime.now)

    def model_post_init(self, __context) -> None:
        self.tags = unique(self.tags)
        self.interests = unique(self.interests)
        self.expertise = unique(self.expertise)

    @property
    def normalized_email(self) -> Optional[str]:
        return normalize_email(self.email)


class Nudge(BaseModel):
    """A suggested follow-up with a contact."""
    id: str = ""
    contact_id: str
    type: NudgeType
    message: str
    priority: NudgePriority = NudgePriority.MEDIUM
    date: datetime = Field(default_factory=datetime.now)
    status: NudgeStatus = NudgeStatus.PENDING


class RowIssue(BaseModel):
    """A connections row that was flagged during parsing."""
    name: str
    email: Optional[str] = None
    error: str


class ImportOutcome(BaseModel):
    """Aggregate result of one bulk import."""
    created_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    skipped_emails: list[str] = Field(default_factory=list)
    profile_created: bool = False
    profile_updated: bool = False
    files_processed: list[str] = Field(default_factory=list)
    invalid_rows: list[RowIssue] = Field(default_factory=list)
    contacts: list[Contact] = Field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return (
            self.created_count
            + self.skipped_count
            + self.failed_count
            + len(self.invalid_rows)
        )
