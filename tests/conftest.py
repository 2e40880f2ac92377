"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from peakview.cloud.classifier import SyncStatusClassifier
from peakview.git.remote_config import RemoteConfigParser
from peakview.pipelines.indexation import FolderIndexer
from peakview.remote.client import RemoteRepositoryClient
from peakview.repositories.folder_index import FolderIndexCache
from peakview.repositories.remote_repos import RemoteRepositoryCache
from tests.fakes import CountingInspector, FakeTransport


class Clock:
    """Manually advanced replacement for ``utc_now``."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta) -> None:
        self.current += timedelta(**delta)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def folder_cache(tmp_path: Path, clock: Clock) -> FolderIndexCache:
    """Folder index cache stored under the test's temporary directory."""
    return FolderIndexCache(tmp_path / "data" / "folder_cache.json", now=clock)


@pytest.fixture
def repository_cache(tmp_path: Path, clock: Clock) -> RemoteRepositoryCache:
    """Repository cache stored under the test's temporary directory."""
    return RemoteRepositoryCache(tmp_path / "data" / "remote_repos.json", now=clock)


@pytest.fixture
def inspector() -> CountingInspector:
    return CountingInspector()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(transport: FakeTransport, repository_cache: RemoteRepositoryCache) -> RemoteRepositoryClient:
    return RemoteRepositoryClient(
        transport=transport,
        cache=repository_cache,
        api_base_url="https://api.example.com",
    )


@pytest.fixture
def indexer(
    folder_cache: FolderIndexCache,
    repository_cache: RemoteRepositoryCache,
    inspector: CountingInspector,
) -> FolderIndexer:
    return FolderIndexer(
        folder_cache=folder_cache,
        repository_cache=repository_cache,
        classifier=SyncStatusClassifier(inspector=inspector),
        remote_parser=RemoteConfigParser(inspector=inspector, sleep=lambda _: None),
    )


@pytest.fixture
def watched_root(tmp_path: Path) -> Path:
    root = tmp_path / "watched"
    root.mkdir()
    return root
