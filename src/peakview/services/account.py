"""Connecting and disconnecting the hosting account."""

import structlog

from peakview.core.exceptions import RemoteRepositoryError
from peakview.core.models.repository import AccountUser
from peakview.remote.client import RemoteRepositoryClient
from peakview.repositories.remote_repos import RemoteRepositoryCache

logger = structlog.get_logger(__name__)


class AccountService:
    """Validates a token and manages the cached account data.

    Storing the token itself is left to the caller's secret store; a
    token is only worth storing once ``connect`` has returned.
    """

    def __init__(self, client: RemoteRepositoryClient, cache: RemoteRepositoryCache) -> None:
        self._client = client
        self._cache = cache

    async def connect(self, token: str) -> AccountUser:
        """Validate ``token`` and load the account's repositories.

        Any failure leaves no account data behind and is re-raised; on
        ``InvalidCredentialError`` the caller should discard the token.
        """
        try:
            user = await self._client.fetch_user(token)
            self._cache.set_username(user.login)
            await self._client.fetch_all(token, force_refresh=True)
        except RemoteRepositoryError as e:
            logger.warning("Connect failed", error=e.message, error_type=type(e).__name__)
            self._cache.clear()
            raise

        logger.info("Account connected", login=user.login, repos=len(self._cache.repositories))
        return user

    def disconnect(self) -> None:
        """Remove every trace of the account from disk."""
        self._cache.clear()
        logger.info("Account disconnected")
