"""
Disk Contact Store

Persists contacts, the user profile, and nudges with diskcache.
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import diskcache

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

logger = logging.getLogger(__name__)

CONTACT_PREFIX = "contact:"
EMAIL_PREFIX = "email:"
NUDGE_PREFIX = "nudge:"
PROFILE_KEY = "profile"


class DiskContactStore(ContactStore):
    """Contact store backed by a diskcache directory.

    Records are stored as pydantic JSON under prefixed keys. An email index
    (``email:<normalized>`` -> contact id) backs duplicate detection, and
    compare-and-insert runs inside a diskcache transaction.
    """

    def __init__(self, path: str | Path = ".warmline/store", timeout: float = 60.0):
        """Open (or create) the store.

        Args:
            path: Directory holding the cache database
            timeout: Seconds to wait on the SQLite lock
        """
        self.path = Path(path)
        self.path.mkdir(parents=True, exist_ok=True)
        self._cache = diskcache.Cache(str(self.path), timeout=timeout, eviction_policy="none")
        logger.debug(f"Contact store opened at {self.path}")

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except (sqlite3.Error, diskcache.Timeout, OSError) as e:
            raise StorageError(f"Could not {action}: {e}") from e

    def _keys(self, prefix: str) -> list[str]:
        return [k for k in self._cache.iterkeys() if isinstance(k, str) and k.startswith(prefix)]

    def _load_contact(self, contact_id: str) -> Optional[Contact]:
        data = self._cache.get(CONTACT_PREFIX + contact_id)
        return Contact.model_validate_json(data) if data is not None else None

    def _write_contact(self, contact: Contact) -> None:
        self._cache.set(CONTACT_PREFIX + contact.id, contact.model_dump_json())

    # Contacts

    def find_contact_by_email(self, email: str) -> Optional[Contact]:
        key = normalize_email(email)
        if key is None:
            return None
        with self._guard("look up contact"):
            contact_id = self._cache.get(EMAIL_PREFIX + key)
            return self._load_contact(contact_id) if contact_id else None

    def create_contact(self, contact: Contact) -> Contact:
        if not contact.id:
            contact = contact.model_copy(update={"id": new_id()})
        with self._guard(f"create contact {contact.name}"):
            with self._cache.transact():
                if CONTACT_PREFIX + contact.id in self._cache:
                    raise StorageError(f"Contact id already exists: {contact.id}")
                self._write_contact(contact)
                key = contact.normalized_email
                if key:
                    self._cache.add(EMAIL_PREFIX + key, contact.id)
        return contact

    def create_contact_if_absent(self, contact: Contact) -> tuple[Contact, bool]:
        key = contact.normalized_email
        if key is None:
            return self.create_contact(contact), True

        if not contact.id:
            contact = contact.model_copy(update={"id": new_id()})
        with self._guard(f"create contact {contact.name}"):
            with self._cache.transact():
                existing_id = self._cache.get(EMAIL_PREFIX + key)
                if existing_id is not None:
                    existing = self._load_contact(existing_id)
                    if existing is not None:
                        return existing, False
                self._write_contact(contact)
                self._cache.set(EMAIL_PREFIX + key, contact.id)
        return contact, True

    def get_contact(self, contact_id: str) -> Optional[Contact]:
        with self._guard("read contact"):
            return self._load_contact(contact_id)

    def update_contact(self, contact_id: str, **changes) -> Optional[Contact]:
        with self._guard(f"update contact {contact_id}"):
            with self._cache.transact():
                current = self._load_contact(contact_id)
                if current is None:
                    return None
                updated = Contact(**{**current.model_dump(), **changes, "id": contact_id})

                old_key, new_key = current.normalized_email, updated.normalized_email
                if old_key != new_key:
                    if old_key and self._cache.get(EMAIL_PREFIX + old_key) == contact_id:
                        self._cache.delete(EMAIL_PREFIX + old_key)
                    if new_key:
                        self._cache.add(EMAIL_PREFIX + new_key, contact_id)

                self._write_contact(updated)
                return updated

    def delete_contact(self, contact_id: str) -> bool:
        with self._guard(f"delete contact {contact_id}"):
            with self._cache.transact():
                contact = self._load_contact(contact_id)
                if contact is None:
                    return False
                key = contact.normalized_email
                if key and self._cache.get(EMAIL_PREFIX + key) == contact_id:
                    self._cache.delete(EMAIL_PREFIX + key)
                return self._cache.delete(CONTACT_PREFIX + contact_id)

    def all_contacts(self) -> list[Contact]:
        with self._guard("list contacts"):
            contacts = []
            for key in self._keys(CONTACT_PREFIX):
                data = self._cache.get(key)
                if data is not None:
                    contacts.append(Contact.model_validate_json(data))
            return contacts

    # User profile

    def get_user_profile(self) -> Optional[UserProfile]:
        with self._guard("read user profile"):
            data = self._cache.get(PROFILE_KEY)
            return UserProfile.model_validate_json(data) if data is not None else None

    def upsert_user_profile(self, fragment: UserProfile) -> UserProfile:
        with self._guard("write user profile"):
            with self._cache.transact():
                data = self._cache.get(PROFILE_KEY)
                existing = UserProfile.model_validate_json(data) if data is not None else None
                merged = merge_profile(existing, fragment)
                self._cache.set(PROFILE_KEY, merged.model_dump_json())
        return merged

    # Nudges

    def create_nudge(self, nudge: Nudge) -> Nudge:
        if not nudge.id:
            nudge = nudge.model_copy(update={"id": new_id()})
        with self._guard("create nudge"):
            self._cache.set(NUDGE_PREFIX + nudge.id, nudge.model_dump_json())
        return nudge

    def list_nudges(self, status: Optional[NudgeStatus] = None) -> list[Nudge]:
        with self._guard("list nudges"):
            nudges = []
            for key in self._keys(NUDGE_PREFIX):
                data = self._cache.get(key)
                if data is not None:
                    nudges.append(Nudge.model_validate_json(data))
        if status is not None:
            nudges = [n for n in nudges if n.status == status]
        return sort_nudges(nudges)

    def update_nudge_status(self, nudge_id: str, status: NudgeStatus) -> Optional[Nudge]:
        with self._guard(f"update nudge {nudge_id}"):
            with self._cache.transact():
                data = self._cache.get(NUDGE_PREFIX + nudge_id)
                if data is None:
                    return None
                nudge = Nudge.model_validate_json(data).model_copy(update={"status": status})
                self._cache.set(NUDGE_PREFIX + nudge_id, nudge.model_dump_json())
                return nudge

    def close(self) -> None:
        """Close the underlying cache."""
        self._cache.close()
