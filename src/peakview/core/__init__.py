"""Core domain models and interfaces for Peakview."""

from peakview.core.exceptions import (
    InvalidCredentialError,
    NetworkError,
    PeakviewError,
    RateLimitedError,
    RemoteRepositoryError,
    ServerError,
    UnauthenticatedError,
)
from peakview.core.models import (
    AccountUser,
    FolderEntry,
    FolderIndexCacheEntry,
    FolderSettings,
    RemoteRepository,
    RemoteRepositoryCacheRecord,
    SyncStatus,
)

__all__ = [
    # Models
    "AccountUser",
    "FolderEntry",
    "FolderIndexCacheEntry",
    "FolderSettings",
    "RemoteRepository",
    "RemoteRepositoryCacheRecord",
    "SyncStatus",
    # Exceptions
    "PeakviewError",
    "RemoteRepositoryError",
    "UnauthenticatedError",
    "InvalidCredentialError",
    "RateLimitedError",
    "NetworkError",
    "ServerError",
]
