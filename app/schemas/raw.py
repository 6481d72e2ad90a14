"""Normalized shape of one item fetched from an origin platform."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class RawItem(BaseModel):
    """One comment-like item as returned by a fetcher.

    ``published_at`` accepts ISO-8601 strings (YouTube) or epoch seconds
    (Reddit) and is always stored as an aware UTC datetime.
    """

    external_id: str = Field(min_length=1)
    author: Optional[str] = None
    body: Optional[str] = None
    published_at: Optional[datetime] = None
    url: Optional[str] = None
    lang: Optional[str] = None
    payload: dict[str, Any] = Field(default_factory=dict)

    @field_validator("published_at")
    @classmethod
    def as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def preview(self) -> dict[str, Any]:
        return {
            "id": self.external_id,
            "author": self.author,
            "body": self.body or "",
            "published_at": self.published_at,
            "url": self.url,
        }
