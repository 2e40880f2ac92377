"""Folder indexing pipeline."""

import asyncio
import os
import time
from collections.abc import AsyncIterator, Iterable, Sequence
from concurrent.futures import Executor
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import structlog

from peakview.cloud.classifier import SyncStatusClassifier
from peakview.core.models.folder import FolderEntry, SyncStatus
from peakview.core.models.repository import RemoteRepository
from peakview.git.remote_config import RemoteConfigParser
from peakview.git.url_resolver import to_display_name
from peakview.repositories.folder_index import FolderIndexCache
from peakview.repositories.remote_repos import RemoteRepositoryCache

logger = structlog.get_logger(__name__)

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(slots=True)
class _Subfolder:
    path: Path
    modification_time: datetime


def sort_entries(entries: Iterable[FolderEntry]) -> list[FolderEntry]:
    """Local folders first, then online-only; newest first within each.

    ``sorted`` is stable, so equal keys keep their enumeration order.
    """
    return sorted(
        entries,
        key=lambda entry: (
            entry.sync_status is not SyncStatus.LOCAL,
            -entry.modification_time.timestamp(),
        ),
    )


def find_matching_repo(
    remote_url: str | None,
    repositories: Sequence[RemoteRepository],
) -> RemoteRepository | None:
    """First repository whose ``full_name`` equals the URL's ``owner/repo``."""
    if not remote_url:
        return None
    display_name = to_display_name(remote_url)
    if display_name is None:
        return None
    lowered = display_name.lower()
    return next((repo for repo in repositories if repo.full_name.lower() == lowered), None)


def link_entries(
    entries: Iterable[FolderEntry],
    repositories: Sequence[RemoteRepository],
) -> list[FolderEntry]:
    """Re-derive every entry's repository link from ``repositories``."""
    linked = []
    for entry in entries:
        repo = find_matching_repo(entry.remote_url, repositories)
        linked.append(
            entry.model_copy(
                update={
                    "linked_repo_id": repo.id if repo else None,
                    "linked_pushed_at": repo.pushed_at if repo else None,
                }
            )
        )
    return linked


def uncloned_repos(
    entries: Iterable[FolderEntry],
    repositories: Iterable[RemoteRepository],
) -> list[RemoteRepository]:
    """Repositories with no local folder, most recently pushed first."""
    local_names = set()
    for entry in entries:
        name = to_display_name(entry.remote_url) if entry.remote_url else None
        if name:
            local_names.add(name.lower())

    missing = [repo for repo in repositories if repo.full_name.lower() not in local_names]
    return sorted(missing, key=lambda repo: repo.pushed_at or _EARLIEST, reverse=True)


def _modification_time(stat_result: os.stat_result) -> datetime:
    return datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc)


class FolderIndexer:
    """Builds the folder listing for a set of watched roots.

    Orchestrates one scan:
    1. List the immediate, non-hidden subfolders of every root
    2. Reuse cached detection results whose folder has not changed
    3. Classify sync status and read the origin remote for the rest
    4. Link folders to the account's repositories by ``owner/repo``
    5. Flush the folder cache once and return the sorted listing

    Detection runs on ``executor`` (the loop's default executor when
    None), so the event loop never blocks on the filesystem.
    """

    def __init__(
        self,
        folder_cache: FolderIndexCache,
        repository_cache: RemoteRepositoryCache,
        classifier: SyncStatusClassifier | None = None,
        remote_parser: RemoteConfigParser | None = None,
        executor: Executor | None = None,
        slow_detection_threshold: float = 0.1,
    ) -> None:
        self._folder_cache = folder_cache
        self._repository_cache = repository_cache
        self._classifier = classifier or SyncStatusClassifier()
        self._remote_parser = remote_parser or RemoteConfigParser()
        self._executor = executor
        self._slow_detection_threshold = slow_detection_threshold

    async def _run_blocking(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func, *args)

    # --- Scan ---

    async def scan(self, roots: Iterable[str | Path]) -> list[FolderEntry]:
        """Index every subfolder of ``roots`` and return the sorted listing."""
        started = time.perf_counter()
        repositories = self._repository_cache.repositories
        entries: list[FolderEntry] = []

        for root in roots:
            root_path = Path(root).expanduser().resolve()
            subfolders = await self._run_blocking(self._list_subfolders, root_path)
            if subfolders is None:
                continue

            results = await asyncio.gather(
                *(self._run_blocking(self._resolve_cached, folder) for folder in subfolders)
            )
            cache_hits = sum(1 for _, hit in results if hit)
            for entry, _ in results:
                entries.append(self._link(entry, repositories))

            logger.info(
                "Scanned root",
                root=str(root_path),
                folders=len(subfolders),
                cache_hits=cache_hits,
                cache_misses=len(subfolders) - cache_hits,
            )

        await self._run_blocking(self._folder_cache.flush)

        logger.info(
            "Scan complete",
            folders=len(entries),
            elapsed=round(time.perf_counter() - started, 3),
        )
        return sort_entries(entries)

    @staticmethod
    def _list_subfolders(root: Path) -> list[_Subfolder] | None:
        """Immediate non-hidden subdirectories in enumeration order."""
        subfolders = []
        try:
            with os.scandir(root) as items:
                for item in items:
                    if item.name.startswith("."):
                        continue
                    try:
                        if not item.is_dir():
                            continue
                        mtime = _modification_time(item.stat())
                    except OSError:
                        continue
                    subfolders.append(_Subfolder(Path(item.path), mtime))
        except OSError as e:
            logger.warning("Failed to access directory", root=str(root), error=str(e))
            return None
        return subfolders

    def _resolve_cached(self, folder: _Subfolder) -> tuple[FolderEntry, bool]:
        cached = self._folder_cache.lookup(folder.path, folder.modification_time)
        if cached is not None:
            return self._build_entry(folder, cached.status, cached.remote_url), True

        status, remote_url = self._detect(folder.path)
        self._folder_cache.upsert(folder.path, status, folder.modification_time, remote_url)
        return self._build_entry(folder, status, remote_url), False

    def _detect(self, path: Path) -> tuple[SyncStatus, str | None]:
        started = time.perf_counter()
        status = self._classifier.classify(path)
        remote_url = self._remote_parser.detect_remote_url(path)
        elapsed = time.perf_counter() - started
        if elapsed > self._slow_detection_threshold:
            logger.warning("Slow detection", folder=path.name, elapsed=round(elapsed, 3))
        return status, remote_url

    @staticmethod
    def _build_entry(folder: _Subfolder, status: SyncStatus, remote_url: str | None) -> FolderEntry:
        return FolderEntry(
            id=str(folder.path),
            name=folder.path.name,
            path=folder.path,
            modification_time=folder.modification_time,
            sync_status=status,
            remote_url=remote_url,
        )

    @staticmethod
    def _link(entry: FolderEntry, repositories: Sequence[RemoteRepository]) -> FolderEntry:
        repo = find_matching_repo(entry.remote_url, repositories)
        if repo is None:
            return entry
        return entry.model_copy(
            update={"linked_repo_id": repo.id, "linked_pushed_at": repo.pushed_at}
        )

    # --- Refresh ---

    async def refresh_all(
        self,
        entries: Iterable[FolderEntry],
        stop: asyncio.Event | None = None,
    ) -> AsyncIterator[FolderEntry]:
        """Re-detect every entry, bypassing the cache, one at a time.

        Yields an updated entry only when its status, remote URL or linked
        repository changed. Setting ``stop`` ends the loop before the next
        entry. The folder cache is flushed once at the end either way.
        """
        repositories = self._repository_cache.repositories
        refreshed = 0
        try:
            for entry in entries:
                if stop is not None and stop.is_set():
                    logger.info("Refresh interrupted", refreshed=refreshed)
                    break

                status, remote_url = await self._run_blocking(self._detect, entry.path)
                repo = find_matching_repo(remote_url, repositories)
                linked_repo_id = repo.id if repo else None
                self._folder_cache.upsert(entry.path, status, entry.modification_time, remote_url)
                refreshed += 1

                if (
                    status != entry.sync_status
                    or remote_url != entry.remote_url
                    or linked_repo_id != entry.linked_repo_id
                ):
                    yield entry.model_copy(
                        update={
                            "sync_status": status,
                            "remote_url": remote_url,
                            "linked_repo_id": linked_repo_id,
                            "linked_pushed_at": repo.pushed_at if repo else None,
                        }
                    )
        finally:
            await self._run_blocking(self._folder_cache.flush)
