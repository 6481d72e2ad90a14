"""Typed query-string configuration for each endpoint.

Each model is built once at the request boundary from the raw query string.
Numeric knobs are clamped into range instead of rejected; a non-numeric value
falls back to the default. Filters that cannot be parsed are rejected.
"""

from datetime import datetime, timezone
from functools import partial
from typing import Annotated, Any, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator

from app.ingestion.reddit import extract_post_id

TRUTHY_FLAGS = {"1", "true", "yes", "on"}


def _clamp(value: Any, *, default: int, lo: int, hi: int) -> int:
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        number = default
    return max(lo, min(hi, number))


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUTHY_FLAGS


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def clamped_int(default: int, lo: int, hi: int):
    return Annotated[int, BeforeValidator(partial(_clamp, default=default, lo=lo, hi=hi))]


Flag = Annotated[bool, BeforeValidator(_flag)]
ListLimit = clamped_int(20, 1, 100)
Offset = clamped_int(0, 0, 2**31 - 1)
Pages = clamped_int(1, 1, 5)
Cooldown = clamped_int(60, 0, 3600)
RedditCooldown = clamped_int(0, 0, 3600)
FetchLimit = clamped_int(100, 1, 100)
KeepLimit = clamped_int(500, 1, 500)
BatchSize = clamped_int(3, 1, 10)


class QueryParams(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @classmethod
    def from_query(cls, query: Any) -> "QueryParams":
        return cls.model_validate(dict(query))


# -----------------------------------------------------------------------------
# Listing
# -----------------------------------------------------------------------------


class PageParams(QueryParams):
    limit: ListLimit = 20
    offset: Offset = 0


class RecordListParams(PageParams):
    product: Optional[str] = None
    source_id: Optional[UUID] = None
    rating_gte: Optional[float] = None
    rating_lte: Optional[float] = None
    since: Optional[datetime] = None
    q: Optional[str] = None

    @field_validator("product", "source_id", "rating_gte", "rating_lte", "since", "q", mode="before")
    @classmethod
    def blank_is_missing(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("since")
    @classmethod
    def since_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


# -----------------------------------------------------------------------------
# Ingestion
# -----------------------------------------------------------------------------


class YouTubeIngestParams(QueryParams):
    target: str = Field(validation_alias=AliasChoices("target", "video"), min_length=1)
    limit: Optional[KeepLimit] = None
    pages: Pages = 1
    dry: Flag = False
    cooldown: Cooldown = 60


class RedditIngestParams(QueryParams):
    url: Optional[str] = None
    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "post"))
    limit: FetchLimit = 100
    dry: Flag = False
    cooldown: RedditCooldown = 0

    @field_validator("url", "id", mode="before")
    @classmethod
    def blank_is_missing(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def resolve_post_id(self) -> "RedditIngestParams":
        if not self.url and not self.id:
            raise ValueError("Provide ?url=<reddit_thread_url> or ?id=<base36 id>")
        if not self.id:
            self.id = extract_post_id(self.url)
            if not self.id:
                raise ValueError("Could not extract post id from url")
        return self


class BatchParams(QueryParams):
    limit: BatchSize = 3
    pages: Pages = 1
    fetch: FetchLimit = 50
    dry: Flag = False
