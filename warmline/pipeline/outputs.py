"""
Output Generation

Writes import reports and contact listings as CSV, Markdown, and JSON.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from warmline.models.entities import Contact, ImportOutcome
from warmline.models.warmth import WarmthCalculator

logger = logging.getLogger(__name__)

CONTACT_COLUMNS = [
    "name", "email", "company", "role", "warmth_score", "status",
    "priority_score", "similarity_score", "last_interaction", "tags",
]


def contacts_frame(
    contacts: list[Contact],
    calculator: Optional[WarmthCalculator] = None,
) -> pd.DataFrame:
    """Tabulate contacts, warmest first, with their warmth status."""
    calculator = calculator or WarmthCalculator()
    records = [
        {
            "name": c.name,
            "email": c.email or "",
            "company": c.company,
            "role": c.role,
            "warmth_score": c.warmth_score,
            "status": calculator.status(c.warmth_score).value,
            "priority_score": c.priority_score,
            "similarity_score": c.similarity_score,
            "last_interaction": c.last_interaction.isoformat() if c.last_interaction else "",
            "tags": "; ".join(c.tags),
        }
        for c in contacts
    ]
    frame = pd.DataFrame(records, columns=CONTACT_COLUMNS)
    return frame.sort_values("warmth_score", ascending=False, kind="stable").reset_index(drop=True)


class ReportGenerator:
    """Generates import and contact reports."""

    def __init__(
        self,
        output_dir: str | Path = "./outputs",
        formats: Optional[list[str]] = None,
        timestamp_filenames: bool = True,
        calculator: Optional[WarmthCalculator] = None,
    ):
        """Initialize report generator.

        Args:
            output_dir: Directory for output files
            formats: List of formats to generate (csv, markdown, json)
            timestamp_filenames: Whether to include timestamp in filenames
            calculator: Warmth calculator used for status labels
        """
        self.output_dir = Path(output_dir)
        self.formats = formats or ["csv", "markdown", "json"]
        self.timestamp_filenames = timestamp_filenames
        self.calculator = calculator or WarmthCalculator()

        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _get_filename(self, base_name: str, extension: str) -> Path:
        """Generate output filename."""
        if self.timestamp_filenames:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"{base_name}_{timestamp}.{extension}"
        else:
            filename = f"{base_name}.{extension}"
        return self.output_dir / filename

    def _import_summary_md(self, outcome: ImportOutcome) -> str:
        lines = [
            "# Import Summary\n",
            f"*Generated {datetime.now().strftime('%Y-%m-%d %H:%M')}*\n",
            f"- **Files processed**: {', '.join(outcome.files_processed) or 'none'}",
            f"- **Profile**: {'created' if outcome.profile_created else 'updated' if outcome.profile_updated else 'unchanged'}",
            f"- **Contacts created**: {outcome.created_count}",
            f"- **Duplicates skipped**: {outcome.skipped_count}",
            f"- **Failed**: {outcome.failed_count}",
            f"- **Flagged rows**: {len(outcome.invalid_rows)}\n",
        ]

        if outcome.skipped_emails:
            lines.append("## Skipped (already exist)\n")
            lines.extend(f"- {email}" for email in outcome.skipped_emails)
            lines.append("")

        if outcome.invalid_rows:
            lines.append("## Flagged Rows\n")
            lines.append("| Name | Email | Problem |")
            lines.append("|------|-------|---------|")
            for issue in outcome.invalid_rows:
                lines.append(f"| {issue.name} | {issue.email or ''} | {issue.error} |")
            lines.append("")

        high_value = [c for c in outcome.contacts if "High-Value Connection" in c.tags]
        if high_value:
            lines.append("## High-Value Connections\n")
            for c in sorted(high_value, key=lambda c: c.similarity_score, reverse=True):
                lines.append(f"- **{c.name}** ({c.role} at {c.company}), similarity {c.similarity_score}")
            lines.append("")

        return "\n".join(lines)

    def generate_import_report(self, outcome: ImportOutcome) -> dict[str, Path]:
        """Generate import reports.

        Returns:
            Dictionary of format -> filepath
        """
        generated = {}

        if "csv" in self.formats:
            filepath = self._get_filename("imported_contacts", "csv")
            contacts_frame(outcome.contacts, self.calculator).to_csv(filepath, index=False)
            generated["csv"] = filepath

        if "markdown" in self.formats:
            filepath = self._get_filename("import_summary", "md")
            filepath.write_text(self._import_summary_md(outcome))
            generated["markdown"] = filepath

        if "json" in self.formats:
            filepath = self._get_filename("import_summary", "json")
            filepath.write_text(json.dumps(
                outcome.model_dump(mode="json", exclude={"contacts"}),
                indent=2,
            ))
            generated["json"] = filepath

        logger.info(f"Generated import reports: {list(generated.keys())}")
        return generated

    def generate_contacts_csv(self, contacts: list[Contact]) -> Path:
        """Write a contact listing as CSV."""
        filepath = self._get_filename("contacts", "csv")
        contacts_frame(contacts, self.calculator).to_csv(filepath, index=False)
        logger.info(f"Wrote {len(contacts)} contacts to {filepath}")
        return filepath
