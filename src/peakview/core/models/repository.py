"""Hosted repository models."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _as_utc(value: datetime | None) -> datetime | None:
    """Read timestamps without an offset as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class RemoteRepository(BaseModel):
    """A repository owned by or visible to the connected account.

    Field aliases match the persisted cache format; ``from_api`` maps the
    listing endpoint's snake_case payload.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: int
    name: str
    full_name: str
    web_url: str = Field(alias="htmlUrl")
    clone_url: str
    ssh_url: str
    is_private: bool = Field(default=False, alias="private")
    pushed_at: datetime | None = None
    default_branch: str = "main"

    normalize_pushed_at = field_validator("pushed_at")(_as_utc)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "RemoteRepository":
        return cls(
            id=payload["id"],
            name=payload["name"],
            full_name=payload["full_name"],
            web_url=payload["html_url"],
            clone_url=payload["clone_url"],
            ssh_url=payload["ssh_url"],
            is_private=payload.get("private", False),
            pushed_at=payload.get("pushed_at"),
            default_branch=payload.get("default_branch") or "main",
        )


class RemoteRepositoryCacheRecord(BaseModel):
    """Everything persisted about the account's repository list."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    last_fetched: datetime | None = None
    etag: str | None = None
    username: str | None = None
    repos: list[RemoteRepository] = Field(default_factory=list)

    normalize_last_fetched = field_validator("last_fetched")(_as_utc)


class AccountUser(BaseModel):
    """The authenticated account as reported by the user endpoint."""

    model_config = ConfigDict(frozen=True)

    id: int
    login: str
    avatar_url: str | None = None
