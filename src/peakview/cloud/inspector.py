"""Cloud-placeholder inspection of individual files."""

import os
import stat
import subprocess
import sys
from enum import Enum
from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)

# macOS: APFS dataless file (an iCloud Drive / File Provider placeholder)
SF_DATALESS = getattr(stat, "SF_DATALESS", 0x40000000)

# Windows: Cloud Files API placeholders (OneDrive, Dropbox, iCloud for Windows)
FILE_ATTRIBUTE_OFFLINE = 0x00001000
FILE_ATTRIBUTE_RECALL_ON_OPEN = 0x00040000
FILE_ATTRIBUTE_PINNED = 0x00080000
FILE_ATTRIBUTE_RECALL_ON_DATA_ACCESS = 0x00400000
_WINDOWS_PLACEHOLDER_BITS = (
    FILE_ATTRIBUTE_OFFLINE | FILE_ATTRIBUTE_RECALL_ON_OPEN | FILE_ATTRIBUTE_RECALL_ON_DATA_ACCESS
)


class PlaceholderState(str, Enum):
    """Download state of a single file."""

    NOT_CLOUD_BACKED = "not_cloud_backed"
    CURRENT = "current"
    DOWNLOADED = "downloaded"
    NOT_DOWNLOADED = "not_downloaded"
    UNKNOWN = "unknown"


class PlaceholderInspector(Protocol):
    """Narrow view of the platform's cloud-sync attributes."""

    def inspect(self, path: Path) -> PlaceholderState:
        """Report the placeholder state of ``path``; may raise OSError."""
        ...

    def request_download(self, path: Path) -> None:
        """Ask the sync provider to materialize ``path``. Best effort."""
        ...


class StatPlaceholderInspector:
    """Inspector built on ``os.stat`` file flags and attributes.

    Dataless files on macOS and recall-on-access files on Windows are
    reported as not downloaded. Pinned Windows files are downloaded.
    Anything else, including every file on platforms without placeholder
    flags, is not cloud backed.
    """

    def inspect(self, path: Path) -> PlaceholderState:
        info = os.stat(path, follow_symlinks=False)

        flags = getattr(info, "st_flags", 0)
        if flags & SF_DATALESS:
            return PlaceholderState.NOT_DOWNLOADED

        attributes = getattr(info, "st_file_attributes", 0)
        if attributes & _WINDOWS_PLACEHOLDER_BITS:
            return PlaceholderState.NOT_DOWNLOADED
        if attributes & FILE_ATTRIBUTE_PINNED:
            return PlaceholderState.DOWNLOADED

        return PlaceholderState.NOT_CLOUD_BACKED

    def request_download(self, path: Path) -> None:
        if sys.platform == "darwin":
            self._run_brctl(path)
            return
        # Other providers hydrate on first read
        try:
            with open(path, "rb") as handle:
                handle.read(1)
        except OSError as e:
            logger.debug("Download request by read failed", path=str(path), error=str(e))

    @staticmethod
    def _run_brctl(path: Path) -> None:
        try:
            subprocess.run(
                ["brctl", "download", str(path)],
                capture_output=True,
                text=True,
                check=True,
                timeout=5,
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as e:
            # Dropbox and other File Provider backends download on access instead
            logger.debug("brctl download failed", path=str(path), error=str(e))
