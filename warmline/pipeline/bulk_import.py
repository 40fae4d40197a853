"""
Bulk Import

Runs a full export through parsing, matching, and scoring, then persists
contacts with duplicate detection and per-row failure isolation.
"""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from warmline.errors import StorageError
from warmline.models.entities import (
    Contact,
    ImportOutcome,
    MatchResult,
    ParsedContact,
    RowIssue,
    UserProfile,
    merge_profile,
)
from warmline.models.matcher import RelationshipMatcher
from warmline.models.warmth import WarmthCalculator
from warmline.pipeline.archive import ExportFiles, extract_export_files, is_archive
from warmline.pipeline.ingest import parse_connections, parse_positions, parse_profile
from warmline.pipeline.tabular import DEFAULT_SCAN_LINES
from warmline.storage.base import ContactStore
from warmline.utils.config import Config, ContactDefaultsConfig

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

CREATED = "created"
SKIPPED = "skipped"
FAILED = "failed"


class ImportCoordinator:
    """Imports an export bundle or a bare connections table into a store."""

    def __init__(
        self,
        store: ContactStore,
        matcher: Optional[RelationshipMatcher] = None,
        warmth: Optional[WarmthCalculator] = None,
        defaults: Optional[ContactDefaultsConfig] = None,
        scan_lines: int = DEFAULT_SCAN_LINES,
        extensions: tuple[str, ...] = (".csv",),
        parallel_calls: int = 1,
        progress_every_n: int = 50,
    ):
        """Initialize the coordinator.

        Args:
            store: Persistence collaborator
            matcher: Relationship matcher (default weights if omitted)
            warmth: Warmth calculator (default formula if omitted)
            defaults: Contact defaults applied while mapping connections
            scan_lines: Header discovery window
            extensions: Table filename suffixes recognized inside bundles
            parallel_calls: Worker threads used to persist rows
            progress_every_n: Rows between progress callbacks
        """
        self.store = store
        self.matcher = matcher or RelationshipMatcher()
        self.warmth = warmth or WarmthCalculator()
        self.defaults = defaults or ContactDefaultsConfig()
        self.scan_lines = scan_lines
        self.extensions = extensions
        self.parallel_calls = max(1, parallel_calls)
        self.progress_every_n = max(1, progress_every_n)

    @classmethod
    def from_config(cls, store: ContactStore, config: Config) -> "ImportCoordinator":
        return cls(
            store,
            matcher=RelationshipMatcher(**config.matcher.model_dump()),
            warmth=WarmthCalculator(**config.warmth.model_dump()),
            defaults=config.contacts,
            scan_lines=config.parsing.header_scan_lines,
            extensions=tuple(config.parsing.recognized_extensions),
            parallel_calls=config.processing.parallel_calls,
            progress_every_n=config.processing.progress_every_n,
        )

    def import_payload(
        self,
        data: bytes,
        now: Optional[datetime] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> ImportOutcome:
        """Import either a zip bundle or a bare connections table.

        Raises:
            ArchiveError: If the payload is a bundle that cannot be read
        """
        if is_archive(data):
            return self.import_archive(data, now=now, progress=progress)
        text = data.decode("utf-8", errors="replace")
        return self.import_connections_text(text, now=now, progress=progress)

    def import_archive(
        self,
        data: bytes,
        now: Optional[datetime] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> ImportOutcome:
        """Import a zip bundle.

        Raises:
            ArchiveError: If the bundle cannot be read
        """
        files = extract_export_files(data, self.extensions)
        if files.is_empty:
            logger.warning("Export bundle holds no profile, positions, or connections table")
        return self.import_files(files, now=now, progress=progress)

    def import_connections_text(
        self,
        text: str,
        now: Optional[datetime] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> ImportOutcome:
        """Import a bare connections table."""
        files = ExportFiles(connections=text, entry_names={"connections": "connections"})
        return self.import_files(files, now=now, progress=progress)

    def import_files(
        self,
        files: ExportFiles,
        now: Optional[datetime] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> ImportOutcome:
        """Import already-extracted export payloads."""
        now = now or datetime.now()
        outcome = ImportOutcome()

        profile = self._import_profile(files, outcome)

        if files.connections is not None:
            outcome.files_processed.append(files.entry_names.get("connections", "connections"))
            contacts = parse_connections(files.connections, self.scan_lines, self.defaults)

            if profile is None:
                profile = self._existing_profile()

            valid = []
            for contact in contacts:
                if contact.is_valid:
                    valid.append(contact)
                else:
                    outcome.invalid_rows.append(
                        RowIssue(name=contact.name, email=contact.email, error=contact.error)
                    )

            if profile is not None:
                tagged = self.matcher.tag_contacts(profile, valid)
            else:
                tagged = [(contact, MatchResult()) for contact in valid]

            self._persist(tagged, outcome, now, progress)

        logger.info(
            f"Import finished: {outcome.created_count} created, "
            f"{outcome.skipped_count} duplicates skipped, "
            f"{outcome.failed_count} failed, "
            f"{len(outcome.invalid_rows)} flagged"
        )
        return outcome

    def _import_profile(self, files: ExportFiles, outcome: ImportOutcome) -> Optional[UserProfile]:
        """Create or merge the user profile from profile/positions payloads."""
        fragment = UserProfile()

        if files.profile is not None:
            outcome.files_processed.append(files.entry_names.get("profile", "profile"))
            fragment = merge_profile(fragment, parse_profile(files.profile, self.scan_lines))

        if files.positions is not None:
            outcome.files_processed.append(files.entry_names.get("positions", "positions"))
            fragment = merge_profile(fragment, parse_positions(files.positions, self.scan_lines))

        if fragment.is_empty:
            return None

        try:
            existed = self.store.get_user_profile() is not None
            profile = self.store.upsert_user_profile(fragment)
        except StorageError as e:
            logger.error(f"Could not save user profile: {e}")
            return None

        outcome.profile_updated = True
        outcome.profile_created = not existed
        logger.info(f"User profile {'merged' if existed else 'created'} for {profile.full_name or 'unnamed user'}")
        return profile

    def _existing_profile(self) -> Optional[UserProfile]:
        try:
            return self.store.get_user_profile()
        except StorageError as e:
            logger.error(f"Could not read user profile, skipping smart tags: {e}")
            return None

    def _build_contact(self, parsed: ParsedContact, result: MatchResult, now: datetime) -> Contact:
        contact = Contact(
            id="",
            name=parsed.name,
            email=parsed.email,
            company=parsed.company,
            role=parsed.role,
            location=parsed.location,
            profile_url=parsed.profile_url,
            tags=parsed.tags,
            notes=parsed.notes,
            priority_score=parsed.priority_score,
            similarity_score=result.similarity_score,
        )
        return contact.model_copy(update={"warmth_score": self.warmth.calculate(contact, now)})

    def _persist_one(
        self,
        parsed: ParsedContact,
        result: MatchResult,
        now: datetime,
    ) -> tuple[str, Optional[Contact]]:
        """Persist one row; never raises for row-level failures."""
        try:
            contact = self._build_contact(parsed, result, now)
            if contact.normalized_email:
                stored, created = self.store.create_contact_if_absent(contact)
                if not created:
                    logger.debug(f"Skipping duplicate contact {parsed.email}")
                    return SKIPPED, None
            else:
                stored = self.store.create_contact(contact)
            return CREATED, stored
        except (StorageError, ValidationError) as e:
            logger.warning(f"Failed to import contact {parsed.name}: {e}")
            return FAILED, None

    def _persist(
        self,
        tagged: list[tuple[ParsedContact, MatchResult]],
        outcome: ImportOutcome,
        now: datetime,
        progress: Optional[ProgressCallback],
    ) -> None:
        total = len(tagged)

        def persist(item: tuple[int, tuple[ParsedContact, MatchResult]]):
            index, (parsed, result) = item
            status = self._persist_one(parsed, result, now)
            done = index + 1
            if progress and (done % self.progress_every_n == 0 or done == total):
                progress(done, total)
            return status

        if self.parallel_calls > 1 and total > 1:
            with ThreadPoolExecutor(max_workers=self.parallel_calls) as pool:
                statuses = list(pool.map(persist, enumerate(tagged)))
        else:
            statuses = [persist(item) for item in enumerate(tagged)]

        for (parsed, _), (status, contact) in zip(tagged, statuses):
            if status == CREATED:
                outcome.created_count += 1
                outcome.contacts.append(contact)
            elif status == SKIPPED:
                outcome.skipped_count += 1
                outcome.skipped_emails.append(parsed.email)
            else:
                outcome.failed_count += 1
