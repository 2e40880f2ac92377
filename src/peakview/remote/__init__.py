"""Hosted repository API access."""

from peakview.remote.client import RemoteRepositoryClient
from peakview.remote.transport import AiohttpTransport, ListingTransport, TransportResponse

__all__ = [
    "AiohttpTransport",
    "ListingTransport",
    "RemoteRepositoryClient",
    "TransportResponse",
]
