"""Tests for sync-status classification."""

import os
from pathlib import Path

import pytest

from peakview.cloud.classifier import SyncStatusClassifier
from peakview.cloud.inspector import (
    FILE_ATTRIBUTE_PINNED,
    FILE_ATTRIBUTE_RECALL_ON_DATA_ACCESS,
    SF_DATALESS,
    PlaceholderState,
    StatPlaceholderInspector,
)
from peakview.core.models.folder import SyncStatus
from tests.fakes import CountingInspector


def _make_files(folder: Path, count: int) -> None:
    for i in range(count):
        (folder / f"file_{i:03d}.txt").write_text("x")


@pytest.mark.unit
class TestSyncStatusClassifier:
    """Tests for SyncStatusClassifier."""

    def test_empty_folder_is_local(self, tmp_path: Path) -> None:
        inspector = CountingInspector()
        assert SyncStatusClassifier(inspector).classify(tmp_path) is SyncStatus.LOCAL
        assert inspector.inspected == []

    def test_only_subdirectories_is_local(self, tmp_path: Path) -> None:
        (tmp_path / "a").mkdir()
        (tmp_path / "b").mkdir()
        inspector = CountingInspector(default=PlaceholderState.NOT_DOWNLOADED)
        assert SyncStatusClassifier(inspector).classify(tmp_path) is SyncStatus.LOCAL
        assert inspector.inspected == []

    def test_hidden_files_are_skipped(self, tmp_path: Path) -> None:
        (tmp_path / ".DS_Store").write_text("x")
        inspector = CountingInspector(default=PlaceholderState.NOT_DOWNLOADED)
        assert SyncStatusClassifier(inspector).classify(tmp_path) is SyncStatus.LOCAL
        assert inspector.inspected == []

    def test_placeholder_file_makes_folder_online_only(self, tmp_path: Path) -> None:
        (tmp_path / "notes.md").write_text("x")
        inspector = CountingInspector(states={"notes.md": PlaceholderState.NOT_DOWNLOADED})
        assert SyncStatusClassifier(inspector).classify(tmp_path) is SyncStatus.ONLINE_ONLY

    @pytest.mark.parametrize(
        "state",
        [
            PlaceholderState.NOT_CLOUD_BACKED,
            PlaceholderState.CURRENT,
            PlaceholderState.DOWNLOADED,
            PlaceholderState.UNKNOWN,
        ],
    )
    def test_other_states_are_local(self, tmp_path: Path, state: PlaceholderState) -> None:
        _make_files(tmp_path, 2)
        inspector = CountingInspector(default=state)
        assert SyncStatusClassifier(inspector).classify(tmp_path) is SyncStatus.LOCAL

    def test_at_most_three_files_are_inspected(self, tmp_path: Path) -> None:
        _make_files(tmp_path, 100)
        inspector = CountingInspector(
            sequence=[PlaceholderState.NOT_CLOUD_BACKED] * 3,
            default=PlaceholderState.NOT_DOWNLOADED,
        )
        assert SyncStatusClassifier(inspector).classify(tmp_path) is SyncStatus.LOCAL
        assert len(inspector.inspected) == 3

    def test_stops_at_first_placeholder(self, tmp_path: Path) -> None:
        _make_files(tmp_path, 10)
        inspector = CountingInspector(default=PlaceholderState.NOT_DOWNLOADED)
        assert SyncStatusClassifier(inspector).classify(tmp_path) is SyncStatus.ONLINE_ONLY
        assert len(inspector.inspected) == 1

    def test_failed_attribute_read_counts_as_local(self, tmp_path: Path) -> None:
        (tmp_path / "broken.bin").write_text("x")
        inspector = CountingInspector(failing={"broken.bin"})
        assert SyncStatusClassifier(inspector).classify(tmp_path) is SyncStatus.LOCAL
        assert inspector.inspected == ["broken.bin"]

    def test_missing_folder_is_local(self, tmp_path: Path) -> None:
        inspector = CountingInspector()
        assert SyncStatusClassifier(inspector).classify(tmp_path / "gone") is SyncStatus.LOCAL

    def test_custom_sample_limit(self, tmp_path: Path) -> None:
        _make_files(tmp_path, 10)
        inspector = CountingInspector()
        SyncStatusClassifier(inspector, sample_limit=5).classify(tmp_path)
        assert len(inspector.inspected) == 5


class _FakeStat:
    def __init__(self, flags: int = 0, attributes: int = 0) -> None:
        self.st_flags = flags
        self.st_file_attributes = attributes


@pytest.mark.unit
class TestStatPlaceholderInspector:
    """Tests for StatPlaceholderInspector."""

    def test_regular_file_is_not_cloud_backed(self, tmp_path: Path) -> None:
        path = tmp_path / "plain.txt"
        path.write_text("x")
        assert StatPlaceholderInspector().inspect(path) is PlaceholderState.NOT_CLOUD_BACKED

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            StatPlaceholderInspector().inspect(tmp_path / "missing")

    @pytest.mark.parametrize(
        ("flags", "attributes", "expected"),
        [
            (SF_DATALESS, 0, PlaceholderState.NOT_DOWNLOADED),
            (0, FILE_ATTRIBUTE_RECALL_ON_DATA_ACCESS, PlaceholderState.NOT_DOWNLOADED),
            (0, FILE_ATTRIBUTE_PINNED, PlaceholderState.DOWNLOADED),
            (0, 0, PlaceholderState.NOT_CLOUD_BACKED),
        ],
    )
    def test_platform_flags(
        self,
        monkeypatch: pytest.MonkeyPatch,
        flags: int,
        attributes: int,
        expected: PlaceholderState,
    ) -> None:
        monkeypatch.setattr(os, "stat", lambda path, follow_symlinks=False: _FakeStat(flags, attributes))
        assert StatPlaceholderInspector().inspect(Path("anything")) is expected

    def test_request_download_reads_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.platform", "linux")
        path = tmp_path / "data.bin"
        path.write_bytes(b"abc")
        StatPlaceholderInspector().request_download(path)
        StatPlaceholderInspector().request_download(tmp_path / "missing.bin")
