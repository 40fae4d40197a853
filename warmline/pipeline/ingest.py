"""
Export Ingestion

Parses the text of profile, positions, and connections exports into models.
"""

import logging
from pathlib import Path
from typing import Optional

from warmline.models.entities import ParsedContact, UserProfile
from warmline.pipeline.normalize import (
    map_connections,
    map_positions,
    map_profile,
    select_current_position,
)
from warmline.pipeline.tabular import (
    DEFAULT_SCAN_LINES,
    RawRow,
    find_header,
    has_many_values,
    has_name_columns,
    parse_table,
    split_lines,
    tokenize_line,
)
from warmline.utils.config import ContactDefaultsConfig

logger = logging.getLogger(__name__)

PAIR_KEYS = ("key", "value")


def _profile_pairs(text: str, scan_lines: int) -> list[RawRow]:
    """Reduce either profile layout to key/value rows.

    The wide layout is a header on the first line followed by a data row;
    anything else is read as ``key,value`` lines, ignoring extra columns.
    """
    lines = split_lines(text)
    if not lines:
        return []

    if len(lines) >= 2 and find_header(lines, has_many_values, scan_lines) == 0:
        labels = tokenize_line(lines[0])
        rows = parse_table(text, has_many_values, scan_lines)
        if not rows:
            return []
        return [RawRow(PAIR_KEYS, pair) for pair in zip(labels, rows[0].cells)]

    return [RawRow(PAIR_KEYS, tokenize_line(line)) for line in lines]


def parse_profile(text: str, scan_lines: int = DEFAULT_SCAN_LINES) -> UserProfile:
    """Parse a profile export into a profile fragment."""
    profile = map_profile(_profile_pairs(text, scan_lines))
    logger.info(f"Parsed profile for {profile.full_name or 'unnamed user'}")
    return profile


def parse_positions(text: str, scan_lines: int = DEFAULT_SCAN_LINES) -> UserProfile:
    """Parse a positions export into a work-history profile fragment."""
    positions = map_positions(parse_table(text, has_many_values, scan_lines))
    current = select_current_position(positions)

    logger.info(
        f"Parsed {len(positions)} positions"
        + (f", current: {current.title} at {current.company}" if current else "")
    )

    return UserProfile(
        work_history=positions,
        current_company=(current.company or None) if current else None,
        current_role=(current.title or None) if current else None,
    )


def parse_connections(
    text: str,
    scan_lines: int = DEFAULT_SCAN_LINES,
    defaults: Optional[ContactDefaultsConfig] = None,
) -> list[ParsedContact]:
    """Parse a connections export into contacts, flagged rows included."""
    rows = parse_table(text, has_name_columns, scan_lines)
    return map_connections(rows, defaults=defaults)


def read_export_file(path: str | Path) -> bytes:
    """Read an export file (bundle or bare table) from disk.

    Raises:
        FileNotFoundError: If the path does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Export file not found: {path}")
    return path.read_bytes()
