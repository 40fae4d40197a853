"""
Contact Storage

Persistence collaborators for contacts, the user profile, and nudges.
"""

from warmline.storage.base import ContactStore
from warmline.storage.disk import DiskContactStore
from warmline.storage.memory import InMemoryContactStore
from warmline.utils.config import StorageConfig


def open_store(config: StorageConfig) -> ContactStore:
    """Build the store selected by configuration."""
    if config.backend == "memory":
        return InMemoryContactStore()
    if config.backend == "disk":
        return DiskContactStore(config.path)
    raise ValueError(f"Unknown storage backend: {config.backend}")


__all__ = ["ContactStore", "DiskContactStore", "InMemoryContactStore", "open_store"]
