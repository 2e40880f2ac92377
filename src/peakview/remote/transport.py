"""HTTP transport seam for the hosted repository API."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol

import aiohttp
import structlog

from peakview.core.exceptions import NetworkError

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class TransportResponse:
    status: int
    body: bytes
    has_next_page: bool = False
    etag: str | None = None
    rate_limit_reset: datetime | None = None


class ListingTransport(Protocol):
    """Performs one GET against the hosting API."""

    async def get(
        self,
        url: str,
        token: str | None = None,
        if_none_match: str | None = None,
    ) -> TransportResponse:
        """Return the response; raise NetworkError when there is none."""
        ...


def has_next_link(link_header: str | None) -> bool:
    """True when an RFC 8288 ``Link`` header advertises ``rel="next"``."""
    if not link_header:
        return False
    for part in link_header.split(","):
        params = part.split(";")[1:]
        for param in params:
            key, _, value = param.strip().partition("=")
            if key.strip() == "rel" and "next" in value.strip().strip('"').split():
                return True
    return False


def parse_rate_limit_reset(
    reset_header: str | None,
    retry_after_header: str | None,
    now: datetime | None = None,
) -> datetime | None:
    """Reset time from ``X-RateLimit-Reset`` (epoch) or ``Retry-After`` (seconds)."""
    if reset_header:
        try:
            return datetime.fromtimestamp(float(reset_header), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            pass
    if retry_after_header:
        try:
            seconds = float(retry_after_header)
        except ValueError:
            return None
        return (now or datetime.now(timezone.utc)) + timedelta(seconds=seconds)
    return None


class AiohttpTransport:
    """``ListingTransport`` backed by an aiohttp client session.

    The session is created lazily and must be released with ``close``.
    """

    def __init__(self, timeout: float = 30.0, user_agent: str = "peakview") -> None:
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._user_agent = user_agent
        self._session: aiohttp.ClientSession | None = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def get(
        self,
        url: str,
        token: str | None = None,
        if_none_match: str | None = None,
    ) -> TransportResponse:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": self._user_agent,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if if_none_match:
            headers["If-None-Match"] = if_none_match

        session = await self._ensure_session()
        try:
            async with session.get(url, headers=headers) as resp:
                body = await resp.read()
                return TransportResponse(
                    status=resp.status,
                    body=body,
                    has_next_page=has_next_link(resp.headers.get("Link")),
                    etag=resp.headers.get("ETag"),
                    rate_limit_reset=parse_rate_limit_reset(
                        resp.headers.get("X-RateLimit-Reset"),
                        resp.headers.get("Retry-After"),
                    ),
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug("Request failed", url=url, error=str(e))
            raise NetworkError(e) from e

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None
