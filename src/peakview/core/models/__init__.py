"""Domain models for Peakview."""

from peakview.core.models.folder import (
    FolderEntry,
    FolderIndexCacheEntry,
    FolderSettings,
    SyncStatus,
)
from peakview.core.models.repository import (
    AccountUser,
    RemoteRepository,
    RemoteRepositoryCacheRecord,
)

__all__ = [
    "AccountUser",
    "FolderEntry",
    "FolderIndexCacheEntry",
    "FolderSettings",
    "RemoteRepository",
    "RemoteRepositoryCacheRecord",
    "SyncStatus",
]
