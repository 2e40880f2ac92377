"""Persistent copy of the connected account's repository list."""

import threading
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from pathlib import Path

import structlog
from pydantic import ValidationError

from peakview.core.models.repository import RemoteRepository, RemoteRepositoryCacheRecord
from peakview.repositories.storage import (
    CACHE_VERSION,
    read_text,
    remove_file,
    utc_now,
    write_text_atomic,
)

logger = structlog.get_logger(__name__)

MINIMUM_REFRESH_INTERVAL = timedelta(minutes=5)


class RemoteRepositoryCacheFile(RemoteRepositoryCacheRecord):
    """On-disk layout of the repository cache."""

    version: int = CACHE_VERSION


class RemoteRepositoryCache:
    """Repository list plus the metadata needed for conditional fetches.

    Loaded once at construction; every mutation rewrites the file.
    """

    def __init__(
        self,
        path: Path,
        refresh_interval: timedelta = MINIMUM_REFRESH_INTERVAL,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._path = Path(path)
        self._refresh_interval = refresh_interval
        self._now = now
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._record = self._load()

    def _load(self) -> RemoteRepositoryCacheRecord:
        text = read_text(self._path)
        if not text:
            return RemoteRepositoryCacheRecord()
        try:
            document = RemoteRepositoryCacheFile.model_validate_json(text)
        except ValidationError as e:
            logger.debug("Discarding unreadable repository cache", path=str(self._path), error=str(e))
            return RemoteRepositoryCacheRecord()
        if document.version != CACHE_VERSION:
            logger.debug("Discarding repository cache version", version=document.version)
            return RemoteRepositoryCacheRecord()
        return RemoteRepositoryCacheRecord(
            last_fetched=document.last_fetched,
            etag=document.etag,
            username=document.username,
            repos=document.repos,
        )

    # --- Accessors ---

    @property
    def path(self) -> Path:
        return self._path

    @property
    def repositories(self) -> list[RemoteRepository]:
        with self._lock:
            return list(self._record.repos)

    @property
    def etag(self) -> str | None:
        with self._lock:
            return self._record.etag

    @property
    def last_fetched(self) -> datetime | None:
        with self._lock:
            return self._record.last_fetched

    @property
    def username(self) -> str | None:
        with self._lock:
            return self._record.username

    def get_by_id(self, repo_id: int) -> RemoteRepository | None:
        with self._lock:
            return next((repo for repo in self._record.repos if repo.id == repo_id), None)

    def get_by_full_name(self, full_name: str) -> RemoteRepository | None:
        lowered = full_name.lower()
        with self._lock:
            return next(
                (repo for repo in self._record.repos if repo.full_name.lower() == lowered),
                None,
            )

    def should_refresh(self) -> bool:
        """True when never fetched or the refresh interval has elapsed."""
        last = self.last_fetched
        if last is None:
            return True
        return self._now() - last > self._refresh_interval

    # --- Mutations ---

    def record_fetch(self, repositories: Iterable[RemoteRepository], etag: str | None) -> None:
        with self._lock:
            self._record = self._record.model_copy(
                update={
                    "repos": list(repositories),
                    "etag": etag,
                    "last_fetched": self._now(),
                }
            )
        self.flush()

    def record_not_modified(self) -> None:
        with self._lock:
            self._record = self._record.model_copy(update={"last_fetched": self._now()})
        self.flush()

    def set_username(self, username: str | None) -> None:
        with self._lock:
            self._record = self._record.model_copy(update={"username": username})
        self.flush()

    def remove_missing(self, current_ids: Iterable[int]) -> None:
        """Drop repositories whose id is not in ``current_ids``."""
        keep = set(current_ids)
        with self._lock:
            repos = [repo for repo in self._record.repos if repo.id in keep]
            self._record = self._record.model_copy(update={"repos": repos})
        self.flush()

    def clear(self) -> None:
        """Forget everything and delete the backing file."""
        with self._flush_lock:
            with self._lock:
                self._record = RemoteRepositoryCacheRecord()
            remove_file(self._path)

    def flush(self) -> bool:
        with self._flush_lock:
            with self._lock:
                document = RemoteRepositoryCacheFile(
                    last_fetched=self._record.last_fetched,
                    etag=self._record.etag,
                    username=self._record.username,
                    repos=self._record.repos,
                )
            try:
                write_text_atomic(self._path, document.model_dump_json(indent=2, by_alias=True))
            except OSError as e:
                logger.warning("Repository cache flush failed", path=str(self._path), error=str(e))
                return False
        return True
