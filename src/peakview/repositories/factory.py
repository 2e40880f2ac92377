"""Store factory for creating the on-disk caches."""

from datetime import timedelta
from typing import TYPE_CHECKING

import structlog

from peakview.repositories.folder_index import FolderIndexCache
from peakview.repositories.folder_settings import FolderSettingsStore
from peakview.repositories.remote_repos import RemoteRepositoryCache

if TYPE_CHECKING:
    from peakview.config.settings import Settings

logger = structlog.get_logger(__name__)


class StoreFactory:
    """Creates the process-wide store instances.

    Each store is built once per factory and shared by everything the
    factory hands it to, so a single factory should live as long as the
    process.
    """

    def __init__(self, settings: "Settings") -> None:
        self._settings = settings
        self._folder_index: FolderIndexCache | None = None
        self._remote_repos: RemoteRepositoryCache | None = None
        self._folder_settings: FolderSettingsStore | None = None

    def get_folder_index_cache(self) -> FolderIndexCache:
        if self._folder_index is None:
            self._folder_index = FolderIndexCache(self._settings.folder_cache_path)
            logger.debug(
                "Folder index cache loaded",
                path=str(self._settings.folder_cache_path),
                entries=len(self._folder_index),
            )
        return self._folder_index

    def get_remote_repository_cache(self) -> RemoteRepositoryCache:
        if self._remote_repos is None:
            self._remote_repos = RemoteRepositoryCache(
                self._settings.remote_cache_path,
                refresh_interval=timedelta(seconds=self._settings.refresh_interval_seconds),
            )
            logger.debug(
                "Repository cache loaded",
                path=str(self._settings.remote_cache_path),
                repos=len(self._remote_repos.repositories),
            )
        return self._remote_repos

    def get_folder_settings_store(self) -> FolderSettingsStore:
        if self._folder_settings is None:
            self._folder_settings = FolderSettingsStore(self._settings.folder_settings_path)
        return self._folder_settings

    def flush(self) -> None:
        """Write back every store that has been created."""
        if self._folder_index is not None:
            self._folder_index.flush()
        if self._remote_repos is not None:
            self._remote_repos.flush()
