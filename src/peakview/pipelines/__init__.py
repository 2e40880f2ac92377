"""Processing pipelines for Peakview."""

from peakview.pipelines.indexation import FolderIndexer

__all__ = ["FolderIndexer"]
