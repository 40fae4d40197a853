"""
Import Pipeline

Components for parsing, normalizing, and importing network exports.
"""

from warmline.pipeline.archive import ExportFiles, extract_export_files, is_archive
from warmline.pipeline.bulk_import import ImportCoordinator
from warmline.pipeline.ingest import parse_connections, parse_positions, parse_profile
from warmline.pipeline.outputs import ReportGenerator, contacts_frame
from warmline.pipeline.tabular import RawRow, parse_table, tokenize_line

__all__ = [
    "ExportFiles",
    "extract_export_files",
    "is_archive",
    "ImportCoordinator",
    "parse_connections",
    "parse_positions",
    "parse_profile",
    "ReportGenerator",
    "contacts_frame",
    "RawRow",
    "parse_table",
    "tokenize_line",
]
