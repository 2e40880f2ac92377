"""Path-keyed cache of folder detection results."""

import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, ValidationError

from peakview.core.models.folder import FolderIndexCacheEntry, SyncStatus
from peakview.repositories.storage import (
    CACHE_VERSION,
    read_text,
    remove_file,
    utc_now,
    write_text_atomic,
)

logger = structlog.get_logger(__name__)


class FolderIndexFile(BaseModel):
    """On-disk layout of the folder index cache."""

    version: int = CACHE_VERSION
    folders: dict[str, FolderIndexCacheEntry] = Field(default_factory=dict)


class FolderIndexCache:
    """Durable map from folder path to its last detection result.

    The file is read once at construction and rewritten by ``flush``.
    An entry stays usable until the folder's modification time moves
    past the one recorded with it. Entries for deleted folders are kept
    until the whole cache is cleared.
    """

    def __init__(self, path: Path, now: Callable[[], datetime] = utc_now) -> None:
        self._path = Path(path)
        self._now = now
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._entries: dict[str, FolderIndexCacheEntry] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _load(self) -> dict[str, FolderIndexCacheEntry]:
        text = read_text(self._path)
        if not text:
            return {}
        try:
            document = FolderIndexFile.model_validate_json(text)
        except ValidationError as e:
            logger.debug("Discarding unreadable folder cache", path=str(self._path), error=str(e))
            return {}
        if document.version != CACHE_VERSION:
            logger.debug("Discarding folder cache version", version=document.version)
            return {}
        return dict(document.folders)

    def lookup(self, path: str | Path, current_mod_time: datetime) -> FolderIndexCacheEntry | None:
        """Return the entry for ``path`` unless absent or invalidated."""
        with self._lock:
            entry = self._entries.get(str(path))
        if entry is None or not entry.is_valid_for(current_mod_time):
            return None
        return entry

    def upsert(
        self,
        path: str | Path,
        status: SyncStatus,
        mod_time: datetime,
        remote_url: str | None,
    ) -> FolderIndexCacheEntry:
        entry = FolderIndexCacheEntry(
            status=status,
            last_checked=self._now(),
            folder_mod_date=mod_time,
            remote_url=remote_url,
        )
        with self._lock:
            self._entries[str(path)] = entry
        return entry

    def flush(self) -> bool:
        """Rewrite the cache file. Failures are logged, never raised."""
        with self._flush_lock:
            with self._lock:
                document = FolderIndexFile(folders=dict(self._entries))
            try:
                write_text_atomic(self._path, document.model_dump_json(indent=2, by_alias=True))
            except OSError as e:
                logger.warning("Folder cache flush failed", path=str(self._path), error=str(e))
                return False
        return True

    def clear(self) -> None:
        """Drop every entry and delete the backing file."""
        with self._flush_lock:
            with self._lock:
                self._entries.clear()
            remove_file(self._path)
