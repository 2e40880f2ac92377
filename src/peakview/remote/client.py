"""Authenticated, paginated fetcher of the account's repository list."""

import json
from typing import Any

import structlog

from peakview.core.exceptions import (
    InvalidCredentialError,
    RateLimitedError,
    ServerError,
    UnauthenticatedError,
)
from peakview.core.models.repository import AccountUser, RemoteRepository
from peakview.remote.transport import ListingTransport, TransportResponse
from peakview.repositories.remote_repos import RemoteRepositoryCache

logger = structlog.get_logger(__name__)

DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_PAGE_SIZE = 100
HTTP_OK = 200
HTTP_NOT_MODIFIED = 304
HTTP_UNAUTHORIZED = 401
RATE_LIMIT_STATUSES = (403, 429)


class RemoteRepositoryClient:
    """Reads the account's repositories, backed by a ``RemoteRepositoryCache``.

    Only two read endpoints are used: the authenticated user and the
    repository listing. Nothing is retried; every failure is raised to
    the caller and leaves the cache untouched.
    """

    def __init__(
        self,
        transport: ListingTransport,
        cache: RemoteRepositoryCache,
        api_base_url: str = DEFAULT_API_BASE_URL,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._transport = transport
        self._cache = cache
        self._api_base_url = api_base_url.rstrip("/")
        self._page_size = page_size

    @property
    def cache(self) -> RemoteRepositoryCache:
        return self._cache

    def _listing_url(self, page: int) -> str:
        return f"{self._api_base_url}/user/repos?per_page={self._page_size}&sort=pushed&page={page}"

    async def fetch_user(self, credential: str | None) -> AccountUser:
        """Return the account the credential belongs to."""
        if not credential:
            raise UnauthenticatedError()

        response = await self._transport.get(f"{self._api_base_url}/user", token=credential)
        self._raise_for_status(response, "user")
        payload = self._decode(response)
        if not isinstance(payload, dict):
            raise ServerError(response.status, "Invalid response from the user endpoint")
        try:
            return AccountUser(
                id=payload["id"],
                login=payload["login"],
                avatar_url=payload.get("avatar_url"),
            )
        except (KeyError, ValueError) as e:
            raise ServerError(response.status, "Invalid response from the user endpoint") from e

    async def fetch_all(
        self,
        credential: str | None,
        force_refresh: bool = False,
    ) -> list[RemoteRepository]:
        """Return every repository of the account.

        Without ``force_refresh`` a recent cache is returned without any
        request, and the first page is fetched conditionally on the cached
        revision tag. A "not modified" answer ends the fetch immediately.
        """
        if not credential:
            raise UnauthenticatedError()

        if not force_refresh and not self._cache.should_refresh():
            return self._cache.repositories

        repositories: list[RemoteRepository] = []
        new_etag: str | None = None
        page = 1
        has_more = True

        while has_more:
            if_none_match = None
            if page == 1 and not force_refresh:
                if_none_match = self._cache.etag

            response = await self._transport.get(
                self._listing_url(page),
                token=credential,
                if_none_match=if_none_match,
            )

            if response.status == HTTP_NOT_MODIFIED and page == 1:
                logger.debug("Repository list not modified")
                self._cache.record_not_modified()
                return self._cache.repositories

            self._raise_for_status(response, "repos")

            if page == 1:
                new_etag = response.etag

            payload = self._decode(response)
            if not isinstance(payload, list):
                raise ServerError(response.status, "Invalid response from the repository listing")
            repositories.extend(self._parse_page(payload, response))
            logger.debug("Fetched repository page", page=page, count=len(payload))

            has_more = response.has_next_page
            page += 1

        self._cache.record_fetch(repositories, new_etag)
        logger.info("Repository list refreshed", repos=len(repositories), pages=page - 1)
        return repositories

    @staticmethod
    def _raise_for_status(response: TransportResponse, endpoint: str) -> None:
        if response.status == HTTP_OK:
            return
        if response.status in RATE_LIMIT_STATUSES and response.rate_limit_reset is not None:
            raise RateLimitedError(response.rate_limit_reset)
        if response.status == HTTP_UNAUTHORIZED:
            raise InvalidCredentialError()
        raise ServerError(response.status, f"Failed to fetch {endpoint}: HTTP {response.status}")

    @staticmethod
    def _decode(response: TransportResponse) -> Any:
        try:
            return json.loads(response.body)
        except (ValueError, UnicodeDecodeError) as e:
            raise ServerError(response.status, "Invalid JSON in response") from e

    @staticmethod
    def _parse_page(payload: list[Any], response: TransportResponse) -> list[RemoteRepository]:
        try:
            return [RemoteRepository.from_api(item) for item in payload]
        except (KeyError, TypeError, ValueError) as e:
            raise ServerError(response.status, "Invalid repository in response") from e
