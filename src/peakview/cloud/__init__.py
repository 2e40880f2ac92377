"""Cloud-sync placeholder detection."""

from peakview.cloud.classifier import SyncStatusClassifier
from peakview.cloud.inspector import PlaceholderInspector, PlaceholderState, StatPlaceholderInspector

__all__ = [
    "PlaceholderInspector",
    "PlaceholderState",
    "StatPlaceholderInspector",
    "SyncStatusClassifier",
]
