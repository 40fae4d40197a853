"""
Export Bundle Extraction

Locates the profile, positions, and connections tables inside a zipped
data export.
"""

import io
import logging
import zipfile
import zlib
from typing import Optional

from pydantic import BaseModel, Field

from warmline.errors import ArchiveError

logger = logging.getLogger(__name__)

# Checked in this order; an entry binds to the first slot whose name it contains.
EXPORT_SLOTS = ("profile", "positions", "connections")

# Local-file header and empty-archive end record.
ZIP_SIGNATURES = (b"PK\x03\x04", b"PK\x05\x06")


class ExportFiles(BaseModel):
    """Decoded text payloads found in an export bundle."""
    profile: Optional[str] = None
    positions: Optional[str] = None
    connections: Optional[str] = None
    entry_names: dict[str, str] = Field(default_factory=dict)

    @property
    def present(self) -> list[str]:
        """Slots that received a payload."""
        return [slot for slot in EXPORT_SLOTS if getattr(self, slot) is not None]

    @property
    def is_empty(self) -> bool:
        return not self.present


def is_archive(data: bytes) -> bool:
    """Whether the payload looks like a zip bundle rather than bare text.

    A leading zip signature is enough, so a truncated or damaged bundle is
    still routed to extraction and fails there instead of being read as text.
    """
    return data[:4] in ZIP_SIGNATURES or zipfile.is_zipfile(io.BytesIO(data))


def _slot_for(entry_name: str, extensions: tuple[str, ...]) -> Optional[str]:
    name = entry_name.lower()
    if not name.endswith(extensions):
        return None
    for slot in EXPORT_SLOTS:
        if slot in name:
            return slot
    return None


def extract_export_files(
    data: bytes,
    extensions: tuple[str, ...] = (".csv",),
) -> ExportFiles:
    """Extract the known export tables from a zip bundle.

    Args:
        data: Raw bundle bytes
        extensions: Lowercased filename suffixes treated as tables

    Returns:
        ExportFiles with up to three payloads. A bundle holding none of them
        is not an error here.

    Raises:
        ArchiveError: If the bundle cannot be opened or an entry cannot be read
    """
    files = ExportFiles()
    extensions = tuple(ext.lower() for ext in extensions)

    try:
        with zipfile.ZipFile(io.BytesIO(data)) as bundle:
            for info in bundle.infolist():
                if info.is_dir():
                    continue

                slot = _slot_for(info.filename, extensions)
                if slot is None:
                    continue
                if getattr(files, slot) is not None:
                    logger.debug(f"Ignoring {info.filename}: {slot} already bound")
                    continue

                text = bundle.read(info).decode("utf-8", errors="replace")
                setattr(files, slot, text)
                files.entry_names[slot] = info.filename
                logger.debug(f"Bound {info.filename} to {slot}")

    except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError, EOFError) as e:
        raise ArchiveError(f"Could not read export bundle: {e}") from e

    logger.info(f"Export bundle contained: {', '.join(files.present) or 'no known tables'}")
    return files
