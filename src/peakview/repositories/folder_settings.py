"""Per-folder preference overrides."""

import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, Field, ValidationError

from peakview.core.models.folder import FolderSettings
from peakview.repositories.storage import CACHE_VERSION, read_text, write_text_atomic

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def resolve_setting(folder_override: T | None, global_default: T) -> T:
    """Folder override wins when set; otherwise the global default applies."""
    return folder_override if folder_override is not None else global_default


class FolderSettingsFile(BaseModel):
    version: int = CACHE_VERSION
    folders: dict[str, FolderSettings] = Field(default_factory=dict)


class FolderSettingsStore:
    """JSON-backed map from folder path to its overrides.

    Folders whose settings are all defaults are not stored.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._settings: dict[str, FolderSettings] = self._load()

    def _load(self) -> dict[str, FolderSettings]:
        text = read_text(self._path)
        if not text:
            return {}
        try:
            document = FolderSettingsFile.model_validate_json(text)
        except ValidationError as e:
            logger.debug("Discarding unreadable folder settings", path=str(self._path), error=str(e))
            return {}
        if document.version != CACHE_VERSION:
            return {}
        return dict(document.folders)

    def _save(self) -> None:
        document = FolderSettingsFile(folders=dict(self._settings))
        try:
            write_text_atomic(self._path, document.model_dump_json(indent=2, by_alias=True))
        except OSError as e:
            logger.warning("Folder settings save failed", path=str(self._path), error=str(e))

    def get(self, folder_path: str | Path) -> FolderSettings:
        with self._lock:
            settings = self._settings.get(str(folder_path))
        return settings.model_copy(deep=True) if settings else FolderSettings()

    def update(self, folder_path: str | Path, **changes: Any) -> FolderSettings:
        """Apply ``changes`` to a folder's settings and persist them."""
        key = str(folder_path)
        with self._lock:
            current = self._settings.get(key) or FolderSettings()
            updated = current.model_copy(update=changes)
            if updated.is_empty:
                self._settings.pop(key, None)
            else:
                self._settings[key] = updated
            self._save()
        return updated

    def set_editor(self, folder_path: str | Path, editor_id: str | None) -> FolderSettings:
        return self.update(folder_path, editor_id=editor_id)

    def set_terminal(self, folder_path: str | Path, terminal_id: str | None) -> FolderSettings:
        return self.update(folder_path, terminal_id=terminal_id)

    def set_website_urls(self, folder_path: str | Path, urls: Iterable[str]) -> FolderSettings:
        return self.update(folder_path, website_urls=[url for url in urls if url])

    def set_hidden(self, folder_path: str | Path, hidden: bool) -> FolderSettings:
        return self.update(folder_path, hidden=hidden)

    def clear(self, folder_path: str | Path) -> None:
        with self._lock:
            self._settings.pop(str(folder_path), None)
            self._save()

    def cleanup_orphaned(self, existing_paths: Iterable[str]) -> int:
        """Forget settings of folders that are no longer present."""
        existing = set(existing_paths)
        with self._lock:
            orphaned = set(self._settings) - existing
            if not orphaned:
                return 0
            for path in orphaned:
                del self._settings[path]
            self._save()
        logger.info("Cleaned up orphaned folder settings", count=len(orphaned))
        return len(orphaned)

    @property
    def hidden_paths(self) -> set[str]:
        with self._lock:
            return {path for path, settings in self._settings.items() if settings.hidden}

    @property
    def folders_with_settings(self) -> set[str]:
        with self._lock:
            return set(self._settings)
