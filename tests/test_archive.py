"""
Tests for Export Bundle Extraction
"""

import pytest

from warmline.errors import ArchiveError
from warmline.pipeline.archive import ExportFiles, extract_export_files, is_archive


class TestIsArchive:
    """Tests for bundle detection."""

    def test_zip_detected(self, export_zip):
        assert is_archive(export_zip)

    def test_plain_text_is_not_archive(self, connections_csv):
        assert not is_archive(connections_csv.encode())

    def test_truncated_zip_still_detected(self, export_zip):
        """A damaged download keeps its signature and must not be read as text."""
        assert is_archive(export_zip[: len(export_zip) // 2])
        assert is_archive(export_zip[:4])


class TestExtractExportFiles:
    """Tests for locating tables inside a bundle."""

    def test_finds_all_slots_in_subfolder(self, export_zip, connections_csv):
        """Tables nested in a folder are found; unrelated tables are ignored."""
        files = extract_export_files(export_zip)

        assert files.present == ["profile", "positions", "connections"]
        assert files.connections == connections_csv
        assert files.entry_names["profile"] == "Basic_LinkedInDataExport/Profile.csv"

    def test_names_match_case_insensitively(self, make_zip, connections_csv):
        files = extract_export_files(make_zip({"export/CONNECTIONS.CSV": connections_csv}))
        assert files.connections == connections_csv
        assert files.profile is None

    def test_ignores_other_extensions_and_unknown_tables(self, make_zip, profile_csv):
        data = make_zip({
            "Connections.txt": "not a table",
            "Messages.csv": "FROM,TO\nA,B\n",
            "Profile.csv": profile_csv,
        })
        assert extract_export_files(data).present == ["profile"]

    def test_first_matching_entry_wins(self, make_zip):
        data = make_zip({
            "a/Connections.csv": "first",
            "b/Connections.csv": "second",
        })
        files = extract_export_files(data)
        assert files.connections == "first"
        assert files.entry_names["connections"] == "a/Connections.csv"

    def test_slot_order_decides_ambiguous_names(self, make_zip):
        """A name containing several slot words binds to the earliest slot."""
        files = extract_export_files(make_zip({"profile_connections.csv": "x"}))
        assert files.profile == "x"
        assert files.connections is None

    def test_custom_extensions(self, make_zip):
        data = make_zip({"Connections.TSV": "tabbed"})
        assert extract_export_files(data).is_empty
        assert extract_export_files(data, (".tsv",)).connections == "tabbed"

    def test_bundle_without_known_tables_is_empty(self, make_zip):
        files = extract_export_files(make_zip({"Messages.csv": "FROM,TO\nA,B\n"}))
        assert files.is_empty

    def test_invalid_utf8_is_replaced(self, make_zip):
        data = make_zip({"Connections.csv": b"First Name,Last Name\nJos\xe9,Smith\n"})
        files = extract_export_files(data)
        assert "Jos�,Smith" in files.connections

    def test_garbage_raises_archive_error(self):
        with pytest.raises(ArchiveError):
            extract_export_files(b"PK\x03\x04 definitely not a zip")

    def test_truncated_bundle_raises_archive_error(self, export_zip):
        with pytest.raises(ArchiveError):
            extract_export_files(export_zip[: len(export_zip) // 2])


class TestExportFiles:
    """Tests for the ExportFiles model."""

    def test_empty_by_default(self):
        files = ExportFiles()
        assert files.is_empty
        assert files.present == []
