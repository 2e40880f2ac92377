"""Folder indexation pipeline."""

from peakview.pipelines.indexation.pipeline import (
    FolderIndexer,
    find_matching_repo,
    link_entries,
    sort_entries,
    uncloned_repos,
)

__all__ = ["FolderIndexer", "find_matching_repo", "link_entries", "sort_entries", "uncloned_repos"]
