"""On-disk stores for Peakview."""

from peakview.repositories.factory import StoreFactory
from peakview.repositories.folder_index import FolderIndexCache
from peakview.repositories.folder_settings import FolderSettingsStore, resolve_setting
from peakview.repositories.remote_repos import RemoteRepositoryCache

__all__ = [
    "FolderIndexCache",
    "FolderSettingsStore",
    "RemoteRepositoryCache",
    "StoreFactory",
    "resolve_setting",
]
