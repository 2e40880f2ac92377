"""Peakview: project folder indexing and hosted repository reconciliation."""

__version__ = "0.1.0"
