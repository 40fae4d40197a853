"""
Field Mapping

Maps export rows, whose column labels vary between export vintages, onto
profile, position, and contact models.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Optional

from warmline.models.entities import ParsedContact, Position, UserProfile
from warmline.pipeline.tabular import RawRow, lookup, normalize_header
from warmline.utils.config import ContactDefaultsConfig

logger = logging.getLogger(__name__)

FieldSynonyms = Mapping[str, Sequence[str]]

CONNECTION_FIELDS: FieldSynonyms = {
    "first_name": ("firstname", "first"),
    "last_name": ("lastname", "last"),
    "email": ("emailaddress", "email", "e-mail"),
    "company": ("company", "organization"),
    "role": ("position", "role", "job", "title"),
    "url": ("url", "linkedin", "profile"),
}

POSITION_FIELDS: FieldSynonyms = {
    "company": ("companyname", "company", "organization"),
    "title": ("title", "position", "role"),
    "start_date": ("startedon", "startdate", "start"),
    "end_date": ("finishedon", "enddate", "end"),
    "description": ("description",),
}

# Profile keys are matched exactly after normalization.
PROFILE_FIELDS: FieldSynonyms = {
    "first_name": ("firstname", "first"),
    "last_name": ("lastname", "last"),
    "headline": ("headline",),
    "summary": ("summary", "about"),
    "industry": ("industry",),
}

INVALID_EMAIL = "Invalid email"


def map_profile(
    rows: Sequence[RawRow],
    fields: FieldSynonyms = PROFILE_FIELDS,
) -> UserProfile:
    """Build a profile fragment from key/value rows.

    Column 0 of each row is the key and column 1 the value. The first
    non-empty value for a key wins.
    """
    pairs: dict[str, str] = {}
    for row in rows:
        key = normalize_header(row.cell(0))
        value = row.cell(1).strip()
        if key and value and key not in pairs:
            pairs[key] = value

    def value_for(field: str) -> str:
        for synonym in fields[field]:
            if synonym in pairs:
                return pairs[synonym]
        return ""

    industry = value_for("industry")
    return UserProfile(
        first_name=value_for("first_name"),
        last_name=value_for("last_name"),
        headline=value_for("headline"),
        summary=value_for("summary"),
        industries=[industry] if industry else [],
    )


def map_positions(
    rows: Sequence[RawRow],
    fields: FieldSynonyms = POSITION_FIELDS,
) -> list[Position]:
    """One Position per row, dropping rows with neither company nor title."""
    positions = []
    for row in rows:
        position = Position(
            company=lookup(row, fields["company"]),
            title=lookup(row, fields["title"]),
            start_date=lookup(row, fields["start_date"]),
            end_date=lookup(row, fields["end_date"]),
            description=lookup(row, fields["description"]),
        )
        if position.company or position.title:
            positions.append(position)
    return positions


def select_current_position(positions: Sequence[Position]) -> Optional[Position]:
    """The first position, in export order, that has no end date.

    Exports list positions newest first and their dates are free text, so
    order decides rather than date comparison.
    """
    for position in positions:
        if position.is_current:
            return position
    return None


def map_connections(
    rows: Sequence[RawRow],
    fields: FieldSynonyms = CONNECTION_FIELDS,
    defaults: Optional[ContactDefaultsConfig] = None,
) -> list[ParsedContact]:
    """One ParsedContact per row.

    Rows without a name are excluded. Rows whose email lacks an ``@`` are
    kept but flagged with an error so callers can report them.
    """
    defaults = defaults or ContactDefaultsConfig()
    contacts = []
    rejected = 0

    for index, row in enumerate(rows):
        first_name = lookup(row, fields["first_name"])
        last_name = lookup(row, fields["last_name"])
        name = f"{first_name} {last_name}".strip()

        if not name:
            rejected += 1
            logger.warning(f"Skipping connection row {index + 1}: missing name")
            continue

        email = lookup(row, fields["email"]).strip()
        company = lookup(row, fields["company"]).strip() or defaults.default_company
        role = lookup(row, fields["role"]).strip() or defaults.default_role
        url = lookup(row, fields["url"]).strip()

        error = None
        if email and "@" not in email:
            error = INVALID_EMAIL
            logger.warning(f"Flagging connection row {index + 1} ({name}): {error}")

        notes = f"LinkedIn: {url}\n{defaults.import_note}" if url else defaults.import_note

        contacts.append(ParsedContact(
            name=name,
            email=email or None,
            company=company,
            role=role,
            profile_url=url or None,
            tags=list(defaults.default_tags),
            notes=notes,
            priority_score=defaults.default_priority,
            error=error,
        ))

    logger.info(
        f"Mapped {len(contacts)} connections "
        f"({sum(1 for c in contacts if not c.is_valid)} flagged, {rejected} rejected)"
    )
    return contacts
