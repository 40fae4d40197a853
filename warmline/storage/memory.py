"""
In-Memory Contact Store

Thread-safe store for tests and one-off imports.
"""

import threading
from typing import Optional

from warmline.errors import StorageError
from warmline.models.entities import (
    Contact,
    Nudge,
    NudgeStatus,
    UserProfile,
    merge_profile,
    normalize_email,
)
from warmline.storage.base import ContactStore, new_id, sort_nudges


class InMemoryContactStore(ContactStore):
    """Keeps contacts, the user profile, and nudges in dictionaries."""

    def __init__(self):
        self._lock = threading.RLock()
        self._contacts: dict[str, Contact] = {}
        self._email_to_id: dict[str, str] = {}
        self._profile: Optional[UserProfile] = None
        self._nudges: dict[str, Nudge] = {}

    def find_contact_by_email(self, email: str) -> Optional[Contact]:
        key = normalize_email(email)
        if key is None:
            return None
        with self._lock:
            contact_id = self._email_to_id.get(key)
            return self._contacts.get(contact_id) if contact_id else None

    def create_contact(self, contact: Contact) -> Contact:
        with self._lock:
            if not contact.id:
                contact = contact.model_copy(update={"id": new_id()})
            if contact.id in self._contacts:
                raise StorageError(f"Contact id already exists: {contact.id}")
            self._contacts[contact.id] = contact
            key = contact.normalized_email
            if key:
                self._email_to_id.setdefault(key, contact.id)
            return contact

    def create_contact_if_absent(self, contact: Contact) -> tuple[Contact, bool]:
        with self._lock:
            existing = self.find_contact_by_email(contact.email) if contact.email else None
            if existing:
                return existing, False
            return self.create_contact(contact), True

    def get_contact(self, contact_id: str) -> Optional[Contact]:
        with self._lock:
            return self._contacts.get(contact_id)

    def update_contact(self, contact_id: str, **changes) -> Optional[Contact]:
        with self._lock:
            current = self._contacts.get(contact_id)
            if current is None:
                return None
            updated = Contact(**{**current.model_dump(), **changes, "id": contact_id})

            old_key, new_key = current.normalized_email, updated.normalized_email
            if old_key != new_key:
                if old_key and self._email_to_id.get(old_key) == contact_id:
                    del self._email_to_id[old_key]
                if new_key:
                    self._email_to_id.setdefault(new_key, contact_id)

            self._contacts[contact_id] = updated
            return updated

    def delete_contact(self, contact_id: str) -> bool:
        with self._lock:
            contact = self._contacts.pop(contact_id, None)
            if contact is None:
                return False
            key = contact.normalized_email
            if key and self._email_to_id.get(key) == contact_id:
                del self._email_to_id[key]
            return True

    def all_contacts(self) -> list[Contact]:
        with self._lock:
            return list(self._contacts.values())

    def get_user_profile(self) -> Optional[UserProfile]:
        with self._lock:
            return self._profile

    def upsert_user_profile(self, fragment: UserProfile) -> UserProfile:
        with self._lock:
            self._profile = merge_profile(self._profile, fragment)
            return self._profile

    def create_nudge(self, nudge: Nudge) -> Nudge:
        with self._lock:
            if not nudge.id:
                nudge = nudge.model_copy(update={"id": new_id()})
            self._nudges[nudge.id] = nudge
            return nudge

    def list_nudges(self, status: Optional[NudgeStatus] = None) -> list[Nudge]:
        with self._lock:
            nudges = list(self._nudges.values())
        if status is not None:
            nudges = [n for n in nudges if n.status == status]
        return sort_nudges(nudges)

    def update_nudge_status(self, nudge_id: str, status: NudgeStatus) -> Optional[Nudge]:
        with self._lock:
            nudge = self._nudges.get(nudge_id)
            if nudge is None:
                return None
            nudge = nudge.model_copy(update={"status": status})
            self._nudges[nudge_id] = nudge
            return nudge
