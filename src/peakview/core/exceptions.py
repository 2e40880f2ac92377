"""Exception hierarchy for Peakview."""

from datetime import datetime, timezone
from typing import Any


class PeakviewError(Exception):
    """Base exception for all Peakview errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class RemoteRepositoryError(PeakviewError):
    """Base for failures of the hosted repository listing."""


class UnauthenticatedError(RemoteRepositoryError):
    """No credential was supplied."""

    def __init__(self, message: str = "Not connected to the hosting account") -> None:
        super().__init__(message)


class InvalidCredentialError(RemoteRepositoryError):
    """The server rejected the supplied credential."""

    def __init__(self, message: str = "Invalid token. Please check and try again.") -> None:
        super().__init__(message)


class RateLimitedError(RemoteRepositoryError):
    """The server refused the request until ``reset_at``."""

    def __init__(self, reset_at: datetime) -> None:
        self.reset_at = reset_at
        super().__init__(
            f"Rate limit exceeded. Try again {format_retry_after(reset_at)}",
            details={"reset_at": reset_at.isoformat()},
        )


class NetworkError(RemoteRepositoryError):
    """The request never produced an HTTP response."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Network error: {cause}", details={"cause": repr(cause)})


class ServerError(RemoteRepositoryError):
    """The server answered with an unexpected status or payload."""

    def __init__(self, status: int, message: str | None = None) -> None:
        self.status = status
        super().__init__(
            message or f"Failed to fetch repositories: HTTP {status}",
            details={"status": status},
        )


def format_retry_after(reset_at: datetime, now: datetime | None = None) -> str:
    """Render a reset time relative to ``now``, e.g. ``in 5 minutes``."""
    now = now or datetime.now(timezone.utc)
    if reset_at.tzinfo is None:
        reset_at = reset_at.replace(tzinfo=timezone.utc)
    seconds = int((reset_at - now).total_seconds())
    if seconds <= 0:
        return "now"
    if seconds < 60:
        return f"in {seconds} second{'s' if seconds != 1 else ''}"
    minutes = -(-seconds // 60)
    if minutes < 60:
        return f"in {minutes} minute{'s' if minutes != 1 else ''}"
    hours = -(-minutes // 60)
    return f"in {hours} hour{'s' if hours != 1 else ''}"
