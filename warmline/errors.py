"""
Error Taxonomy

Exceptions raised by the import pipeline and its storage collaborators.
"""


class WarmlineError(Exception):
    """Base exception for all warmline errors."""


class ArchiveError(WarmlineError):
    """Raised when an export bundle cannot be opened or read."""


class StorageError(WarmlineError):
    """Raised when a storage operation fails."""
