"""Origin remote detection from a repository's ``.git/config``."""

import time
from collections.abc import Callable
from pathlib import Path

import structlog

from peakview.cloud.inspector import PlaceholderInspector, PlaceholderState, StatPlaceholderInspector
from peakview.git.url_resolver import to_browser_url, to_display_name

logger = structlog.get_logger(__name__)

ORIGIN_SECTION = '[remote "origin"]'
DEFAULT_POLL_ATTEMPTS = 30
DEFAULT_POLL_INTERVAL = 0.1


def parse_remote_url(config_text: str) -> str | None:
    """Return the ``url`` of the ``[remote "origin"]`` section, if any.

    Only the origin remote is considered; any other section header ends
    the origin section.
    """
    in_origin = False
    for line in config_text.splitlines():
        stripped = line.strip()
        if stripped.startswith("["):
            in_origin = stripped.startswith(ORIGIN_SECTION)
            continue
        if in_origin and stripped.startswith("url") and "=" in stripped:
            value = stripped.split("=", 1)[1].strip()
            return value or None
    return None


class RemoteConfigParser:
    """Reads the origin remote URL of a working copy.

    Reads ``.git/config`` directly instead of shelling out to git, so a
    folder is never touched beyond one small file. When that file is a
    cloud placeholder, a download is requested and the file is polled for
    a bounded time.
    """

    to_browser_url = staticmethod(to_browser_url)
    to_display_name = staticmethod(to_display_name)

    def __init__(
        self,
        inspector: PlaceholderInspector | None = None,
        poll_attempts: int = DEFAULT_POLL_ATTEMPTS,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._inspector = inspector or StatPlaceholderInspector()
        self._poll_attempts = poll_attempts
        self._poll_interval = poll_interval
        self._sleep = sleep

    def detect_remote_url(self, directory: Path) -> str | None:
        """Return the origin URL of ``directory``, or None.

        Never raises; an unreadable config behaves like a missing one.
        """
        config_path = Path(directory) / ".git" / "config"
        if not config_path.is_file():
            return None

        content = self._read_text(config_path)
        if content is None:
            content = self._download_and_read(config_path)
        if content is None:
            logger.debug("Failed to read git config", path=str(config_path))
            return None
        return parse_remote_url(content)

    @staticmethod
    def _read_text(path: Path) -> str | None:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None
        return content or None

    def _download_and_read(self, path: Path) -> str | None:
        """Materialize a placeholder config and poll until it is readable."""
        try:
            state = self._inspector.inspect(path)
        except OSError as e:
            logger.debug("Failed to inspect git config", path=str(path), error=str(e))
            return None
        if state is PlaceholderState.NOT_CLOUD_BACKED:
            return None

        if state is PlaceholderState.NOT_DOWNLOADED:
            self._inspector.request_download(path)
            logger.debug("Requested download", path=str(path))

        for attempt in range(1, self._poll_attempts + 1):
            content = self._read_text(path)
            if content is not None:
                logger.debug(
                    "Read git config after download",
                    path=str(path),
                    waited_ms=int((attempt - 1) * self._poll_interval * 1000),
                )
                return content
            self._sleep(self._poll_interval)

        return None
