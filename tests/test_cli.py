"""
Tests for the Command-Line Interface
"""

from datetime import datetime, timedelta

import pandas as pd
import pytest
from click.testing import CliRunner

from warmline import __version__
from warmline.main import cli
from warmline.models.entities import Contact, NudgeStatus
from warmline.storage.disk import DiskContactStore


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def store_dir(tmp_path):
    return tmp_path / "store"


@pytest.fixture
def connections_file(tmp_path, connections_csv):
    path = tmp_path / "Connections.csv"
    path.write_text(connections_csv)
    return path


@pytest.fixture
def export_file(tmp_path, export_zip):
    path = tmp_path / "export.zip"
    path.write_bytes(export_zip)
    return path


def invoke(runner, store_dir, *args):
    return runner.invoke(cli, ["--store", str(store_dir), *args])


def stored_contacts(store_dir):
    store = DiskContactStore(store_dir)
    try:
        return store.all_contacts()
    finally:
        store.close()


class TestVersion:
    def test_version(self, runner):
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert f"Warmline v{__version__}" in result.output


class TestImportCommand:
    """Tests for the import command."""

    def test_imports_connections_table(self, runner, store_dir, connections_file):
        result = invoke(runner, store_dir, "import", str(connections_file), "--no-report")

        assert result.exit_code == 0, result.output
        assert "Created" in result.output
        assert {c.name for c in stored_contacts(store_dir)} == {"John Smith", "Jane Doe", "Bob Jones"}

    def test_reimport_skips_duplicates(self, runner, store_dir, connections_file):
        invoke(runner, store_dir, "import", str(connections_file), "--no-report")
        result = invoke(runner, store_dir, "import", str(connections_file), "--no-report", "--parallel", "2")

        assert result.exit_code == 0, result.output
        assert len(stored_contacts(store_dir)) == 4

    def test_imports_bundle_and_writes_reports(self, runner, store_dir, export_file, tmp_path):
        out_dir = tmp_path / "reports"
        result = invoke(
            runner, store_dir, "import", str(export_file),
            "-o", str(out_dir), "-f", "json", "-f", "csv",
        )

        assert result.exit_code == 0, result.output
        assert "User profile created" in result.output
        assert len(list(out_dir.glob("import_summary_*.json"))) == 1
        assert len(list(out_dir.glob("imported_contacts_*.csv"))) == 1
        assert not list(out_dir.glob("*.md"))

    def test_flagged_rows_listed(self, runner, store_dir, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("First Name,Last Name,Email Address\nBad,Row,not-an-email\n")

        result = invoke(runner, store_dir, "import", str(path), "--no-report")

        assert result.exit_code == 0, result.output
        assert "Invalid email" in result.output
        assert stored_contacts(store_dir) == []

    def test_corrupt_bundle_exits_nonzero(self, runner, store_dir, tmp_path, make_zip):
        data = make_zip({"Connections.csv": "First Name,Last Name\nAda,Lovelace\n"})
        path = tmp_path / "broken.zip"
        path.write_bytes(data.replace(b"Lovelace", b"Lovelacf"))

        result = invoke(runner, store_dir, "import", str(path), "--no-report")
        assert result.exit_code == 1

    def test_truncated_bundle_exits_nonzero(self, runner, store_dir, tmp_path, export_zip):
        path = tmp_path / "partial.zip"
        path.write_bytes(export_zip[: len(export_zip) // 2])

        result = invoke(runner, store_dir, "import", str(path), "--no-report")

        assert result.exit_code == 1
        assert "Could not read export bundle" in result.output

    def test_missing_file(self, runner, store_dir, tmp_path):
        result = invoke(runner, store_dir, "import", str(tmp_path / "missing.csv"))
        assert result.exit_code != 0


class TestPreviewCommand:
    """Tests for the preview command."""

    def test_preview_does_not_save(self, runner, store_dir, connections_file):
        result = invoke(runner, store_dir, "preview", str(connections_file))

        assert result.exit_code == 0, result.output
        assert "3 contacts parsed (3 valid, 0 flagged)" in result.output
        assert not store_dir.exists()

    def test_preview_bundle(self, runner, store_dir, export_file):
        result = invoke(runner, store_dir, "preview", str(export_file), "--limit", "1")

        assert result.exit_code == 0, result.output
        assert "Positions:" in result.output
        assert "and 2 more" in result.output


class TestContactsCommand:
    """Tests for the contacts command."""

    def test_empty_store(self, runner, store_dir):
        result = invoke(runner, store_dir, "contacts")
        assert result.exit_code == 0
        assert "No contacts found" in result.output

    def test_export_listing(self, runner, store_dir, export_file, tmp_path):
        invoke(runner, store_dir, "import", str(export_file), "--no-report")
        out_dir = tmp_path / "listing"

        result = invoke(runner, store_dir, "contacts", "--tag", "High-Value Connection", "--export", str(out_dir))

        assert result.exit_code == 0, result.output
        [path] = list(out_dir.glob("contacts_*.csv"))
        frame = pd.read_csv(path)
        assert list(frame["name"]) == ["John Smith"]
        assert list(frame["warmth_score"]) == [50]


class TestNudgesCommand:
    """Tests for the nudges command."""

    @pytest.fixture
    def stale_store(self, store_dir):
        store = DiskContactStore(store_dir)
        store.create_contact(Contact(
            id="stale",
            name="Alex Chen",
            last_interaction=datetime.now() - timedelta(days=120),
        ))
        store.create_contact(Contact(id="fresh", name="Maya Patel", last_interaction=datetime.now()))
        store.close()
        return store_dir

    def test_generate_once_per_contact(self, runner, stale_store):
        first = invoke(runner, stale_store, "nudges", "--generate")
        second = invoke(runner, stale_store, "nudges", "--generate")

        assert first.exit_code == 0, first.output
        assert "Created 1 nudges" in first.output
        assert "Created 0 nudges" in second.output

    def test_complete_nudge(self, runner, stale_store):
        invoke(runner, stale_store, "nudges", "--generate")
        store = DiskContactStore(stale_store)
        [nudge] = store.list_nudges(NudgeStatus.PENDING)
        store.close()

        result = invoke(runner, stale_store, "nudges", "--complete", nudge.id)

        assert result.exit_code == 0, result.output
        assert "No pending nudges" in result.output

    def test_unknown_nudge(self, runner, stale_store):
        result = invoke(runner, stale_store, "nudges", "--dismiss", "nope")
        assert result.exit_code == 1


class TestTouchCommand:
    """Tests for recording interactions."""

    def test_touch_by_email_then_decay_nudge(self, runner, store_dir, connections_file):
        invoke(runner, store_dir, "import", str(connections_file), "--no-report")
        last_spoke = (datetime.now() - timedelta(days=120)).strftime("%Y-%m-%d")

        result = invoke(runner, store_dir, "touch", "john@x.com", "--at", last_spoke)

        assert result.exit_code == 0, result.output
        assert "John Smith: warmth 40" in result.output
        john = next(c for c in stored_contacts(store_dir) if c.email == "john@x.com")
        assert john.last_interaction is not None
        assert john.warmth_score == 40

        nudges = invoke(runner, store_dir, "nudges", "--generate")
        assert "Created 1 nudges" in nudges.output

    def test_touch_by_id_sets_priority(self, runner, store_dir):
        store = DiskContactStore(store_dir)
        store.create_contact(Contact(id="c1", name="Alex Chen"))
        store.close()
        last_spoke = (datetime.now() - timedelta(days=100)).strftime("%Y-%m-%d")

        result = invoke(runner, store_dir, "touch", "c1", "--at", last_spoke, "--priority", "90")

        assert result.exit_code == 0, result.output
        [alex] = stored_contacts(store_dir)
        assert alex.priority_score == 90
        assert alex.warmth_score == 60

    def test_touch_defaults_to_now(self, runner, store_dir):
        store = DiskContactStore(store_dir)
        store.create_contact(Contact(id="c1", name="Alex Chen"))
        store.close()

        result = invoke(runner, store_dir, "touch", "c1")

        assert result.exit_code == 0, result.output
        assert "warmth 100" in result.output

    def test_unknown_contact(self, runner, store_dir):
        result = invoke(runner, store_dir, "touch", "nobody@x.com")
        assert result.exit_code == 1
        assert "Contact not found" in result.output
