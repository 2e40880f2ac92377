"""Tests for the folder index cache."""

import json
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from peakview.core.models.folder import SyncStatus
from peakview.repositories.folder_index import FolderIndexCache

MOD_TIME = datetime(2024, 3, 1, 8, 30, 15, 123456, tzinfo=timezone.utc)


@pytest.mark.unit
class TestFolderIndexCache:
    """Tests for FolderIndexCache."""

    def test_lookup_missing(self, folder_cache: FolderIndexCache) -> None:
        assert folder_cache.lookup("/watched/none", MOD_TIME) is None

    def test_upsert_then_lookup(self, folder_cache: FolderIndexCache, clock) -> None:
        folder_cache.upsert("/watched/a", SyncStatus.ONLINE_ONLY, MOD_TIME, "git@h:o/a.git")
        entry = folder_cache.lookup("/watched/a", MOD_TIME)
        assert entry is not None
        assert entry.status is SyncStatus.ONLINE_ONLY
        assert entry.remote_url == "git@h:o/a.git"
        assert entry.folder_mod_date == MOD_TIME
        assert entry.last_checked == clock.current

    @pytest.mark.parametrize("offset", [timedelta(0), timedelta(seconds=-1), timedelta(days=-30)])
    def test_lookup_not_newer_returns_entry(self, folder_cache: FolderIndexCache, offset: timedelta) -> None:
        stored = folder_cache.upsert("/watched/a", SyncStatus.LOCAL, MOD_TIME, None)
        assert folder_cache.lookup("/watched/a", MOD_TIME + offset) == stored

    @pytest.mark.parametrize("offset", [timedelta(microseconds=1), timedelta(seconds=1), timedelta(days=1)])
    def test_lookup_newer_invalidates(self, folder_cache: FolderIndexCache, offset: timedelta) -> None:
        folder_cache.upsert("/watched/a", SyncStatus.LOCAL, MOD_TIME, None)
        assert folder_cache.lookup("/watched/a", MOD_TIME + offset) is None

    def test_upsert_replaces(self, folder_cache: FolderIndexCache) -> None:
        folder_cache.upsert("/watched/a", SyncStatus.LOCAL, MOD_TIME, None)
        later = MOD_TIME + timedelta(hours=1)
        folder_cache.upsert("/watched/a", SyncStatus.ONLINE_ONLY, later, "https://h/o/a")
        entry = folder_cache.lookup("/watched/a", later)
        assert entry is not None
        assert entry.status is SyncStatus.ONLINE_ONLY
        assert len(folder_cache) == 1

    def test_path_objects_and_strings_share_keys(self, folder_cache: FolderIndexCache) -> None:
        folder_cache.upsert(Path("/watched/a"), SyncStatus.LOCAL, MOD_TIME, None)
        assert folder_cache.lookup("/watched/a", MOD_TIME) is not None

    def test_flush_and_reload(self, folder_cache: FolderIndexCache, clock) -> None:
        folder_cache.upsert("/watched/a", SyncStatus.LOCAL, MOD_TIME, None)
        folder_cache.upsert("/watched/b", SyncStatus.ONLINE_ONLY, MOD_TIME, "git@h:o/b.git")
        assert folder_cache.flush() is True

        reloaded = FolderIndexCache(folder_cache.path, now=clock)
        assert len(reloaded) == 2
        entry = reloaded.lookup("/watched/b", MOD_TIME)
        assert entry is not None
        assert entry.status is SyncStatus.ONLINE_ONLY
        assert entry.remote_url == "git@h:o/b.git"
        assert entry.folder_mod_date == MOD_TIME

    def test_file_format(self, folder_cache: FolderIndexCache) -> None:
        folder_cache.upsert("/watched/a", SyncStatus.ONLINE_ONLY, MOD_TIME, None)
        folder_cache.flush()

        text = folder_cache.path.read_text()
        assert "\n  " in text
        data = json.loads(text)
        assert data["version"] == 1
        record = data["folders"]["/watched/a"]
        assert record["status"] == "onlineOnly"
        assert record["remoteUrl"] is None
        assert datetime.fromisoformat(record["folderModDate"].replace("Z", "+00:00")) == MOD_TIME
        assert "lastChecked" in record

    def test_flush_leaves_no_temporary_files(self, folder_cache: FolderIndexCache) -> None:
        folder_cache.upsert("/watched/a", SyncStatus.LOCAL, MOD_TIME, None)
        folder_cache.flush()
        folder_cache.flush()
        assert [p.name for p in folder_cache.path.parent.iterdir()] == ["folder_cache.json"]

    @pytest.mark.parametrize(
        "content",
        ["", "{not json", "[1, 2, 3]", '{"version": 99, "folders": {}}', '{"folders": {"/a": {"status": "weird"}}}'],
    )
    def test_corrupt_file_loads_empty(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "folder_cache.json"
        path.write_text(content)
        assert len(FolderIndexCache(path)) == 0

    def test_missing_file_loads_empty(self, tmp_path: Path) -> None:
        assert len(FolderIndexCache(tmp_path / "nope" / "cache.json")) == 0

    def test_flush_failure_is_swallowed(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("a file where a directory should be")
        cache = FolderIndexCache(blocker / "folder_cache.json")
        cache.upsert("/watched/a", SyncStatus.LOCAL, MOD_TIME, None)
        assert cache.flush() is False
        assert cache.lookup("/watched/a", MOD_TIME) is not None

    def test_clear_deletes_file(self, folder_cache: FolderIndexCache) -> None:
        folder_cache.upsert("/watched/a", SyncStatus.LOCAL, MOD_TIME, None)
        folder_cache.flush()
        folder_cache.clear()
        assert len(folder_cache) == 0
        assert not folder_cache.path.exists()

    def test_concurrent_upserts(self, folder_cache: FolderIndexCache) -> None:
        def worker(offset: int) -> None:
            for i in range(200):
                folder_cache.upsert(f"/watched/{offset}-{i}", SyncStatus.LOCAL, MOD_TIME, None)
                if i % 50 == 0:
                    folder_cache.flush()

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(folder_cache) == 1600
        folder_cache.flush()
        assert len(FolderIndexCache(folder_cache.path)) == 1600

    def test_timestamps_without_offset_load_as_utc(self, tmp_path: Path) -> None:
        path = tmp_path / "folder_cache.json"
        path.write_text(
            json.dumps(
                {
                    "version": 1,
                    "folders": {
                        "/x": {
                            "status": "local",
                            "lastChecked": "2024-01-01T00:00:00",
                            "folderModDate": "2024-01-01T00:00:00",
                            "remoteUrl": None,
                        }
                    },
                }
            )
        )
        cache = FolderIndexCache(path)

        same = datetime(2024, 1, 1, tzinfo=timezone.utc)
        entry = cache.lookup("/x", same)
        assert entry is not None
        assert entry.folder_mod_date == same
        assert entry.last_checked.tzinfo is not None
        assert cache.lookup("/x", same + timedelta(seconds=1)) is None
