"""
Tests for Bulk Import
"""

import pytest

from warmline.errors import ArchiveError, StorageError
from warmline.models.entities import UserProfile
from warmline.models.matcher import HIGH_VALUE_TAG
from warmline.pipeline.bulk_import import ImportCoordinator
from warmline.pipeline.normalize import INVALID_EMAIL
from warmline.storage.memory import InMemoryContactStore
from warmline.utils.config import Config


EMAIL_ONLY_CSV = """First Name,Last Name,Email Address,Company,Position
John,Smith,john@x.com,Acme Corp,Senior Engineer
Jane,Doe,jane@example.com,Globex,Product Manager
Jim,Smith,JOHN@X.COM,Acme Corp,Engineer
"""


class FailingStore(InMemoryContactStore):
    """Store that refuses to write contacts with a given name."""

    def __init__(self, refuse: str):
        super().__init__()
        self.refuse = refuse

    def create_contact(self, contact):
        if contact.name == self.refuse:
            raise StorageError("disk full")
        return super().create_contact(contact)


@pytest.fixture
def coordinator(store):
    return ImportCoordinator(store)


def by_name(outcome):
    return {c.name: c for c in outcome.contacts}


class TestImportArchive:
    """Tests for importing a full export bundle."""

    def test_full_bundle(self, coordinator, store, export_zip, now):
        outcome = coordinator.import_payload(export_zip, now=now)

        assert outcome.profile_created
        assert outcome.files_processed == [
            "Basic_LinkedInDataExport/Profile.csv",
            "Basic_LinkedInDataExport/Positions.csv",
            "Basic_LinkedInDataExport/Connections.csv",
        ]
        assert outcome.created_count == 3
        assert outcome.skipped_count == 0
        assert outcome.failed_count == 0
        assert outcome.total_rows == 3

        profile = store.get_user_profile()
        assert profile.full_name == "Ada Lovelace"
        assert profile.current_company == "Acme Corp"
        assert profile.current_role == "Staff Engineer"
        assert profile.industries == ["Software"]
        assert len(profile.work_history) == 3

    def test_smart_tags_and_scores(self, coordinator, export_zip, now):
        contacts = by_name(coordinator.import_payload(export_zip, now=now))

        john = contacts["John Smith"]
        assert john.similarity_score == 80
        assert set(john.tags) == {
            "LinkedIn Import",
            "Similar Role - Engineer",
            "Current Colleague - Acme Corp",
            HIGH_VALUE_TAG,
        }
        assert contacts["Jane Doe"].tags == ["LinkedIn Import", "Former Colleague - Globex"]
        assert contacts["Bob Jones"].tags == ["LinkedIn Import", "Former Colleague - Initech"]

    def test_new_contacts_start_at_no_history_warmth(self, coordinator, export_zip, now):
        outcome = coordinator.import_payload(export_zip, now=now)
        assert {c.warmth_score for c in outcome.contacts} == {50}
        assert all(c.last_interaction is None for c in outcome.contacts)

    def test_contacts_are_persisted(self, coordinator, store, export_zip, now):
        outcome = coordinator.import_payload(export_zip, now=now)
        stored = store.find_contact_by_email("john@x.com")
        assert stored is not None
        assert stored.id in {c.id for c in outcome.contacts}
        assert len(store.all_contacts()) == 3

    def test_bundle_without_known_tables(self, coordinator, make_zip):
        outcome = coordinator.import_payload(make_zip({"Messages.csv": "FROM,TO\nA,B\n"}))
        assert not outcome.profile_created
        assert outcome.files_processed == []
        assert outcome.total_rows == 0

    def test_profile_only_bundle(self, coordinator, store, make_zip, profile_csv):
        outcome = coordinator.import_payload(make_zip({"Profile.csv": profile_csv}))
        assert outcome.profile_created
        assert outcome.created_count == 0
        assert store.get_user_profile().first_name == "Ada"

    def test_reimport_merges_existing_profile(self, coordinator, export_zip, now):
        coordinator.import_payload(export_zip, now=now)
        second = coordinator.import_payload(export_zip, now=now)

        assert not second.profile_created
        assert second.profile_updated

    def test_unreadable_bundle(self, coordinator):
        with pytest.raises(ArchiveError):
            coordinator.import_archive(b"not a zip at all")

    def test_truncated_bundle_is_fatal(self, coordinator, store, export_zip):
        with pytest.raises(ArchiveError):
            coordinator.import_payload(export_zip[: len(export_zip) // 2])
        assert store.all_contacts() == []
        assert store.get_user_profile() is None

    def test_corrupt_entry(self, coordinator, make_zip):
        data = make_zip({"Connections.csv": "First Name,Last Name\nAda,Lovelace\n"})
        with pytest.raises(ArchiveError):
            coordinator.import_payload(data.replace(b"Lovelace", b"Lovelacf"))


class TestImportConnections:
    """Tests for importing a bare connections table."""

    def test_dedup_is_idempotent(self, coordinator, store, now):
        first = coordinator.import_payload(EMAIL_ONLY_CSV.encode(), now=now)
        second = coordinator.import_payload(EMAIL_ONLY_CSV.encode(), now=now)

        assert first.created_count == 2
        assert first.skipped_count == 1
        assert first.skipped_emails == ["JOHN@X.COM"]

        assert second.created_count == 0
        assert second.skipped_count == 3
        assert len(store.all_contacts()) == 2

    def test_rows_without_email_are_always_created(self, coordinator, store, connections_csv):
        coordinator.import_connections_text(connections_csv)
        second = coordinator.import_connections_text(connections_csv)

        assert second.created_count == 1
        assert second.skipped_count == 2
        assert len(store.all_contacts()) == 4

    def test_no_profile_means_no_smart_tags(self, coordinator, connections_csv):
        outcome = coordinator.import_connections_text(connections_csv)
        assert not outcome.profile_created
        assert outcome.files_processed == ["connections"]
        assert all(c.tags == ["LinkedIn Import"] for c in outcome.contacts)
        assert all(c.similarity_score == 0 for c in outcome.contacts)

    def test_stored_profile_drives_tags(self, coordinator, store, sample_profile, connections_csv):
        store.upsert_user_profile(sample_profile)
        contacts = by_name(coordinator.import_connections_text(connections_csv))

        assert contacts["John Smith"].similarity_score == 80
        assert "Former Colleague - Globex" in contacts["Jane Doe"].tags

    def test_flagged_rows_reported_not_saved(self, coordinator, store):
        text = (
            "First Name,Last Name,Email Address\n"
            "Ada,Lovelace,ada@example.com\n"
            "Bad,Row,not-an-email\n"
        )
        outcome = coordinator.import_connections_text(text)

        assert outcome.created_count == 1
        assert len(outcome.invalid_rows) == 1
        issue = outcome.invalid_rows[0]
        assert (issue.name, issue.email, issue.error) == ("Bad Row", "not-an-email", INVALID_EMAIL)
        assert outcome.total_rows == 2
        assert [c.name for c in store.all_contacts()] == ["Ada Lovelace"]

    def test_store_failure_isolated_to_row(self, connections_csv):
        store = FailingStore(refuse="Jane Doe")
        outcome = ImportCoordinator(store).import_connections_text(connections_csv)

        assert outcome.created_count == 2
        assert outcome.failed_count == 1
        assert {c.name for c in store.all_contacts()} == {"John Smith", "Bob Jones"}

    def test_empty_table(self, coordinator):
        outcome = coordinator.import_connections_text("First Name,Last Name\n")
        assert outcome.total_rows == 0

    def test_progress_callback(self, store, connections_csv):
        calls = []
        coordinator = ImportCoordinator(store, progress_every_n=2)
        coordinator.import_connections_text(connections_csv, progress=lambda d, t: calls.append((d, t)))
        assert calls == [(2, 3), (3, 3)]


class TestParallelImport:
    """Tests for concurrent persistence."""

    def test_parallel_matches_sequential(self, now):
        rows = "\n".join(
            f"Person,{i},p{i % 25}@example.com,Acme,Engineer" for i in range(100)
        )
        text = "First Name,Last Name,Email Address,Company,Position\n" + rows

        store = InMemoryContactStore()
        outcome = ImportCoordinator(store, parallel_calls=4).import_connections_text(text, now=now)

        assert outcome.created_count == 25
        assert outcome.skipped_count == 75
        assert outcome.failed_count == 0
        assert len(store.all_contacts()) == 25

    def test_outcome_keeps_input_order(self, connections_csv):
        outcome = ImportCoordinator(InMemoryContactStore(), parallel_calls=3).import_connections_text(
            connections_csv
        )
        assert [c.name for c in outcome.contacts] == ["John Smith", "Jane Doe", "Bob Jones"]


class TestFromConfig:
    """Tests for configuration wiring."""

    def test_uses_configured_defaults_and_weights(self, store):
        config = Config(**{
            "contacts": {"default_tags": ["Imported"], "default_priority": 85},
            "matcher": {"current_colleague_weight": 70},
            "processing": {"parallel_calls": 2},
        })
        coordinator = ImportCoordinator.from_config(store, config)
        store.upsert_user_profile(UserProfile(current_company="Acme Corp"))

        outcome = coordinator.import_connections_text(EMAIL_ONLY_CSV)
        john = by_name(outcome)["John Smith"]

        assert coordinator.parallel_calls == 2
        assert john.priority_score == 85
        assert john.similarity_score == 70
        assert john.tags[0] == "Imported"
        assert HIGH_VALUE_TAG in john.tags
