"""
Pytest Configuration and Shared Fixtures
"""

import io
import zipfile
from datetime import datetime, timedelta

import pytest

from warmline.models.entities import Contact, Position, UserProfile
from warmline.storage.memory import InMemoryContactStore


CONNECTIONS_CSV = """Notes:
"When exporting your connection data, you may notice that some of the email addresses are missing."

First Name,Last Name,URL,Email Address,Company,Position,Connected On
John,Smith,https://linkedin.com/in/john,john@x.com,Acme Corp,Senior Engineer,15 Jan 2024
Jane,Doe,https://linkedin.com/in/jane,jane@example.com,Globex,Product Manager,20 Feb 2024
Bob,Jones,,,Initech,Sales Director,01 Mar 2024
"""

PROFILE_CSV = """First Name,Last Name,Maiden Name,Headline,Summary,Industry
Ada,Lovelace,,Staff Engineer at Acme Corp,Builds analytical engines,Software
"""

POSITIONS_CSV = """Company Name,Title,Description,Location,Started On,Finished On
Acme Corp,Staff Engineer,Engines,London,Jan 2022,
Globex,Senior Engineer,Widgets,London,Mar 2018,Dec 2021
Initech,Engineer,,London,Jun 2015,Feb 2018
"""


def build_zip(entries: dict[str, str | bytes]) -> bytes:
    """Zip the given name -> content entries in memory."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as bundle:
        for name, text in entries.items():
            bundle.writestr(name, text)
    return buffer.getvalue()


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return datetime(2026, 1, 31, 12, 0, 0)


@pytest.fixture
def connections_csv() -> str:
    return CONNECTIONS_CSV


@pytest.fixture
def profile_csv() -> str:
    return PROFILE_CSV


@pytest.fixture
def positions_csv() -> str:
    return POSITIONS_CSV


@pytest.fixture
def make_zip():
    """Factory building zip bundles from name -> text entries."""
    return build_zip


@pytest.fixture
def export_zip() -> bytes:
    """A full export bundle with profile, positions, and connections."""
    return build_zip({
        "Basic_LinkedInDataExport/Profile.csv": PROFILE_CSV,
        "Basic_LinkedInDataExport/Positions.csv": POSITIONS_CSV,
        "Basic_LinkedInDataExport/Connections.csv": CONNECTIONS_CSV,
        "Basic_LinkedInDataExport/Messages.csv": "FROM,TO,CONTENT\nA,B,hi\n",
    })


@pytest.fixture
def sample_profile() -> UserProfile:
    """The importing user's profile."""
    return UserProfile(
        first_name="Ada",
        last_name="Lovelace",
        headline="Staff Engineer at Acme Corp",
        current_company="Acme Corp",
        current_role="Staff Engineer",
        industries=["Fintech"],
        work_history=[
            Position(company="Acme Corp", title="Staff Engineer", start_date="Jan 2022"),
            Position(
                company="Globex",
                title="Senior Engineer",
                start_date="Mar 2018",
                end_date="Dec 2021",
            ),
        ],
    )


@pytest.fixture
def store() -> InMemoryContactStore:
    return InMemoryContactStore()


@pytest.fixture
def sample_contacts(now) -> list[Contact]:
    """Stored contacts with varied recency."""
    return [
        Contact(
            id="c1",
            name="Maya Patel",
            email="maya@lumina.health",
            company="Lumina Health",
            role="Founder & CEO",
            priority_score=90,
            last_interaction=now - timedelta(days=2),
            tags=["HealthTech", "Founder"],
        ),
        Contact(
            id="c2",
            name="Alex Chen",
            email="achen@greylock.com",
            company="Greylock",
            role="Partner",
            last_interaction=now - timedelta(days=120),
            tags=["VC"],
        ),
        Contact(
            id="c3",
            name="Elena Rodriguez",
            company="Notion",
            role="Product Lead",
            last_interaction=None,
            tags=["Product"],
        ),
    ]
