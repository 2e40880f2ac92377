"""Business logic services for Peakview."""

from peakview.services.account import AccountService
from peakview.services.indexing import FolderIndexingService

__all__ = [
    "AccountService",
    "FolderIndexingService",
]
