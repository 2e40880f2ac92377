"""Folder sync-status classification by bounded file sampling."""

import os
from pathlib import Path

import structlog

from peakview.cloud.inspector import PlaceholderInspector, PlaceholderState, StatPlaceholderInspector
from peakview.core.models.folder import SyncStatus

logger = structlog.get_logger(__name__)

DEFAULT_SAMPLE_LIMIT = 3


class SyncStatusClassifier:
    """Decides whether a folder's content is on disk or a cloud placeholder.

    Only the first few regular files yielded by the directory iterator are
    inspected. Full enumeration is too slow to repeat for every folder on
    every scan, and a handful of files is enough to spot a placeholder
    pattern. Hidden entries and subdirectories are skipped; nothing is
    read recursively.
    """

    def __init__(
        self,
        inspector: PlaceholderInspector | None = None,
        sample_limit: int = DEFAULT_SAMPLE_LIMIT,
    ) -> None:
        self._inspector = inspector or StatPlaceholderInspector()
        self._sample_limit = sample_limit

    def classify(self, directory: Path) -> SyncStatus:
        """Return ONLINE_ONLY if any sampled file is not downloaded."""
        checked = 0
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if checked >= self._sample_limit:
                        break
                    if entry.name.startswith("."):
                        continue
                    try:
                        if entry.is_dir():
                            continue
                    except OSError:
                        continue

                    checked += 1
                    if self._file_status(Path(entry.path)) is SyncStatus.ONLINE_ONLY:
                        return SyncStatus.ONLINE_ONLY
        except OSError as e:
            logger.debug("Cannot enumerate folder", path=str(directory), error=str(e))

        return SyncStatus.LOCAL

    def _file_status(self, path: Path) -> SyncStatus:
        try:
            state = self._inspector.inspect(path)
        except OSError:
            return SyncStatus.LOCAL

        if state is PlaceholderState.NOT_DOWNLOADED:
            return SyncStatus.ONLINE_ONLY
        # Not cloud backed, current, downloaded and unknown all count as local
        return SyncStatus.LOCAL
