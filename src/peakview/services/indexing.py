"""Indexing service."""

import asyncio
from collections.abc import Callable, Iterable
from pathlib import Path

import structlog

from peakview.core.exceptions import RemoteRepositoryError
from peakview.core.models.folder import FolderEntry
from peakview.core.models.repository import RemoteRepository
from peakview.pipelines.indexation import FolderIndexer, link_entries, sort_entries, uncloned_repos
from peakview.remote.client import RemoteRepositoryClient
from peakview.repositories.folder_settings import FolderSettingsStore
from peakview.repositories.remote_repos import RemoteRepositoryCache

logger = structlog.get_logger(__name__)

CredentialProvider = Callable[[], str | None]


def _no_credential() -> str | None:
    return None


class FolderIndexingService:
    """Facade consumed by the presentation layer.

    Local folder data and hosted repository data are fetched and fail
    independently: a failed opportunistic repository refresh is logged
    and kept in ``last_error`` but never prevents a scan from returning.
    """

    def __init__(
        self,
        indexer: FolderIndexer,
        client: RemoteRepositoryClient,
        repository_cache: RemoteRepositoryCache,
        folder_settings: FolderSettingsStore | None = None,
        credential_provider: CredentialProvider = _no_credential,
    ) -> None:
        self._indexer = indexer
        self._client = client
        self._repository_cache = repository_cache
        self._folder_settings = folder_settings
        self._credential_provider = credential_provider
        self.last_error: RemoteRepositoryError | None = None

    # --- Read accessors ---

    @property
    def repositories(self) -> list[RemoteRepository]:
        return self._repository_cache.repositories

    @property
    def account_login(self) -> str | None:
        return self._repository_cache.username

    @property
    def is_connected(self) -> bool:
        return bool(self._credential_provider())

    # --- Folder listing ---

    async def scan(
        self,
        roots: Iterable[str | Path],
        refresh_remote: bool = True,
    ) -> list[FolderEntry]:
        """Scan ``roots`` while refreshing the repository list alongside.

        When the repository refresh succeeds the freshly scanned entries
        are re-linked against the new list.
        """
        remote_task = None
        if refresh_remote and self.is_connected:
            remote_task = asyncio.create_task(self.refresh_repositories())

        try:
            entries = await self._indexer.scan(list(roots))
        except BaseException:
            if remote_task is not None:
                remote_task.cancel()
                await asyncio.gather(remote_task, return_exceptions=True)
            raise

        if remote_task is not None and await remote_task:
            entries = sort_entries(link_entries(entries, self._repository_cache.repositories))
        return entries

    async def refresh_all(
        self,
        entries: Iterable[FolderEntry],
        on_update: Callable[[FolderEntry], None],
        stop: asyncio.Event | None = None,
    ) -> int:
        """Fresh detection for ``entries``; ``on_update`` gets each change."""
        updated = 0
        async for entry in self._indexer.refresh_all(entries, stop=stop):
            on_update(entry)
            updated += 1
        logger.info("Refresh complete", updated=updated)
        return updated

    def visible_entries(self, entries: Iterable[FolderEntry]) -> list[FolderEntry]:
        """Drop folders the user has hidden."""
        if self._folder_settings is None:
            return list(entries)
        hidden = self._folder_settings.hidden_paths
        return [entry for entry in entries if entry.id not in hidden]

    def uncloned_repos(self, entries: Iterable[FolderEntry]) -> list[RemoteRepository]:
        return uncloned_repos(entries, self._repository_cache.repositories)

    # --- Hosted repositories ---

    async def fetch_repositories(self, force_refresh: bool = False) -> list[RemoteRepository]:
        """Fetch the repository list, raising any remote error."""
        try:
            repositories = await self._client.fetch_all(
                self._credential_provider(),
                force_refresh=force_refresh,
            )
        except RemoteRepositoryError as e:
            self.last_error = e
            raise
        self.last_error = None
        return repositories

    async def refresh_repositories(self) -> bool:
        """Opportunistic refresh; errors are recorded instead of raised."""
        try:
            await self.fetch_repositories()
        except RemoteRepositoryError as e:
            logger.warning(
                "Repository refresh failed",
                error=e.message,
                error_type=type(e).__name__,
                **e.details,
            )
            return False
        return True
