"""
Relationship Matcher

Compares a contact against the importing user's profile and derives smart
tags plus a 0-100 similarity score.
"""

import logging
from typing import Optional, Protocol

from warmline.models.entities import MatchResult, ParsedContact, UserProfile, unique

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
HIGH_VALUE_TAG = "High-Value Connection"


class Matchable(Protocol):
    company: str
    role: str
    tags: list[str]


def _known(value: Optional[str]) -> bool:
    return bool(value and value.strip() and value.strip().lower() != UNKNOWN)


class RelationshipMatcher:
    """Scores overlap between the user and a contact.

    Score:
        role match + (current colleague | former colleague) + industry match,
        capped at 100. Scores at or above the high-value threshold add the
        "High-Value Connection" tag.
    """

    DEFAULT_ROLE_KEYWORDS = (
        "engineer", "manager", "director", "vp", "ceo", "cto", "cfo",
        "founder", "product", "design", "sales", "marketing", "analyst",
    )

    def __init__(
        self,
        role_weight: int = 30,
        current_colleague_weight: int = 50,
        former_colleague_weight: int = 30,
        industry_weight: int = 20,
        high_value_threshold: int = 70,
        role_keywords: Optional[list[str]] = None,
    ):
        """Initialize matcher with configuration.

        Args:
            role_weight: Points for a similar role
            current_colleague_weight: Points for sharing the current company
            former_colleague_weight: Points for a company in the work history
            industry_weight: Points for an industry overlap
            high_value_threshold: Score that earns the high-value tag
            role_keywords: Ordered keywords for partial role matches
        """
        self.role_weight = role_weight
        self.current_colleague_weight = current_colleague_weight
        self.former_colleague_weight = former_colleague_weight
        self.industry_weight = industry_weight
        self.high_value_threshold = high_value_threshold
        self.role_keywords = [
            k.lower() for k in (role_keywords or self.DEFAULT_ROLE_KEYWORDS)
        ]

    def find_similar_role(self, profile: UserProfile, contact: Matchable) -> Optional[str]:
        """Tag for an exact role match, or for the first shared role keyword."""
        if not _known(profile.current_role) or not _known(contact.role):
            return None

        user_role = profile.current_role.strip().lower()
        contact_role = contact.role.strip().lower()

        if user_role == contact_role:
            return f"Similar Role - {contact.role.strip()}"

        for keyword in self.role_keywords:
            if keyword in user_role and keyword in contact_role:
                return f"Similar Role - {keyword.capitalize()}"

        return None

    def find_shared_company(self, profile: UserProfile, contact: Matchable) -> Optional[str]:
        """Tag for a current or former colleague; current wins."""
        if not _known(contact.company):
            return None

        company = contact.company.strip()
        contact_company = company.lower()

        if profile.current_company and profile.current_company.strip().lower() == contact_company:
            return f"Current Colleague - {company}"

        history = {p.company.strip().lower() for p in profile.work_history if p.company}
        if contact_company in history:
            return f"Former Colleague - {company}"

        return None

    def find_industry_peer(self, profile: UserProfile, contact: Matchable) -> Optional[str]:
        """Tag, lowercased, for the first profile industry mentioned in the contact's company or role."""
        contact_info = f"{contact.company} {contact.role}".lower()
        for industry in profile.industries:
            if industry.strip() and industry.strip().lower() in contact_info:
                return f"Industry Peer - {industry.strip().lower()}"
        return None

    def match(self, profile: UserProfile, contact: Matchable) -> MatchResult:
        """Derive smart tags and a similarity score for one contact."""
        tags = []
        score = 0

        role_tag = self.find_similar_role(profile, contact)
        if role_tag:
            tags.append(role_tag)
            score += self.role_weight

        company_tag = self.find_shared_company(profile, contact)
        if company_tag:
            tags.append(company_tag)
            if company_tag.startswith("Current Colleague"):
                score += self.current_colleague_weight
            else:
                score += self.former_colleague_weight

        industry_tag = self.find_industry_peer(profile, contact)
        if industry_tag:
            tags.append(industry_tag)
            score += self.industry_weight

        score = max(0, min(score, 100))
        if score >= self.high_value_threshold:
            tags.append(HIGH_VALUE_TAG)

        return MatchResult(tags=tags, similarity_score=score)

    def tag_contacts(
        self,
        profile: UserProfile,
        contacts: list[ParsedContact],
    ) -> list[tuple[ParsedContact, MatchResult]]:
        """Merge smart tags into each contact's tags.

        Returns:
            Tagged copies of the contacts paired with their match results
        """
        tagged = []
        for contact in contacts:
            result = self.match(profile, contact)
            merged = contact.model_copy(update={"tags": unique(contact.tags + result.tags)})
            tagged.append((merged, result))

        high_value = sum(1 for _, r in tagged if HIGH_VALUE_TAG in r.tags)
        logger.info(f"Tagged {len(tagged)} contacts, {high_value} high-value")
        return tagged


def match(profile: UserProfile, contact: Matchable) -> MatchResult:
    """Match with default weights."""
    return RelationshipMatcher().match(profile, contact)
