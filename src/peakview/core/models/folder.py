"""Folder entry and folder cache models."""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class SyncStatus(str, Enum):
    """Whether a folder's content is present on disk."""

    LOCAL = "local"
    ONLINE_ONLY = "onlineOnly"


class FolderEntry(BaseModel):
    """One discovered subfolder of a watched root.

    Entries are rebuilt on every scan and never mutated; a refresh that
    changes a field produces a replacement via ``model_copy``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    path: Path
    modification_time: datetime
    sync_status: SyncStatus = SyncStatus.LOCAL
    remote_url: str | None = None

    # Hosted repository link
    linked_repo_id: int | None = None
    linked_pushed_at: datetime | None = None

    @property
    def is_linked(self) -> bool:
        return self.linked_repo_id is not None

    @property
    def display_name(self) -> str | None:
        """``owner/repo`` derived from the remote URL."""
        from peakview.git.url_resolver import to_display_name

        if not self.remote_url:
            return None
        return to_display_name(self.remote_url)

    @property
    def browser_url(self) -> str | None:
        from peakview.git.url_resolver import to_browser_url

        if not self.remote_url:
            return None
        return to_browser_url(self.remote_url)


class FolderIndexCacheEntry(BaseModel):
    """Persisted detection result for one folder path."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    status: SyncStatus
    last_checked: datetime
    folder_mod_date: datetime
    remote_url: str | None = None

    @field_validator("last_checked", "folder_mod_date")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # Timestamps without an offset are read as UTC
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)

    def is_valid_for(self, current_mod_time: datetime) -> bool:
        """True unless the folder changed after this entry was recorded."""
        return current_mod_time <= self.folder_mod_date


class FolderSettings(BaseModel):
    """Per-folder overrides of global preferences."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    editor_id: str | None = None
    terminal_id: str | None = None
    website_urls: list[str] = Field(default_factory=list)
    hidden: bool = False

    @property
    def is_empty(self) -> bool:
        return (
            self.editor_id is None
            and self.terminal_id is None
            and not self.website_urls
            and not self.hidden
        )
