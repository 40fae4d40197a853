"""
Contact Storage Interface

The persistence collaborator used by the import pipeline and the CLI.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Optional

from warmline.models.entities import Contact, Nudge, NudgePriority, NudgeStatus, UserProfile

PRIORITY_ORDER = {NudgePriority.HIGH: 0, NudgePriority.MEDIUM: 1, NudgePriority.LOW: 2}


def new_id() -> str:
    return uuid.uuid4().hex[:16]


def filter_contacts(
    contacts: list[Contact],
    query: Optional[str] = None,
    tag: Optional[str] = None,
) -> list[Contact]:
    """Filter by free-text query and tag, warmest first.

    The query matches case-insensitively against name, role, company and tags.
    """
    results = contacts
    if query:
        q = query.lower()
        results = [
            c for c in results
            if q in c.name.lower()
            or q in c.role.lower()
            or q in c.company.lower()
            or any(q in t.lower() for t in c.tags)
        ]
    if tag:
        t = tag.lower()
        results = [c for c in results if any(t == existing.lower() for existing in c.tags)]
    return sorted(results, key=lambda c: c.warmth_score, reverse=True)


def sort_nudges(nudges: list[Nudge]) -> list[Nudge]:
    """Highest priority first, newest first within a priority."""
    by_date = sorted(nudges, key=lambda n: n.date, reverse=True)
    return sorted(by_date, key=lambda n: PRIORITY_ORDER[n.priority])


class ContactStore(ABC):
    """Persistence operations needed by the import pipeline.

    Implementations must make ``create_contact_if_absent`` and
    ``upsert_user_profile`` atomic with respect to concurrent callers.
    """

    # Contacts

    @abstractmethod
    def find_contact_by_email(self, email: str) -> Optional[Contact]:
        """Contact whose email matches case-insensitively, if any."""

    @abstractmethod
    def create_contact(self, contact: Contact) -> Contact:
        """Persist a contact, assigning an id when it has none.

        Raises:
            StorageError: If the contact cannot be written
        """

    @abstractmethod
    def create_contact_if_absent(self, contact: Contact) -> tuple[Contact, bool]:
        """Insert unless a contact with the same email exists.

        Returns:
            The stored contact (new or existing) and whether it was created

        Raises:
            StorageError: If the contact cannot be written
        """

    @abstractmethod
    def get_contact(self, contact_id: str) -> Optional[Contact]:
        ...

    @abstractmethod
    def update_contact(self, contact_id: str, **changes) -> Optional[Contact]:
        """Apply field changes; None when the contact does not exist."""

    @abstractmethod
    def delete_contact(self, contact_id: str) -> bool:
        ...

    @abstractmethod
    def all_contacts(self) -> list[Contact]:
        ...

    def list_contacts(
        self,
        query: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> list[Contact]:
        """Contacts filtered by query and tag, warmest first."""
        return filter_contacts(self.all_contacts(), query=query, tag=tag)

    # User profile

    @abstractmethod
    def get_user_profile(self) -> Optional[UserProfile]:
        ...

    @abstractmethod
    def upsert_user_profile(self, fragment: UserProfile) -> UserProfile:
        """Create the profile or merge the fragment into it (non-empty wins)."""

    # Nudges

    @abstractmethod
    def create_nudge(self, nudge: Nudge) -> Nudge:
        ...

    @abstractmethod
    def list_nudges(self, status: Optional[NudgeStatus] = None) -> list[Nudge]:
        ...

    @abstractmethod
    def update_nudge_status(self, nudge_id: str, status: NudgeStatus) -> Optional[Nudge]:
        ...
