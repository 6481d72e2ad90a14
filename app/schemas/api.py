import re
from datetime import date, datetime, timezone
from typing import Any, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# -----------------------------------------------------------------------------
# Sources
# -----------------------------------------------------------------------------


class SourceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    kind: Optional[str] = None
    url: Optional[str] = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _aware(value)


# -----------------------------------------------------------------------------
# Records
# -----------------------------------------------------------------------------


class RecordCreate(BaseModel):
    """Body of ``POST /records`` and of each ``POST /records/bulk`` line."""

    model_config = ConfigDict(extra="ignore")

    source_id: UUID
    external_id: str = Field(min_length=1, validation_alias=AliasChoices("external_id", "ext_id"))
    created_at: datetime
    author: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    rating: Optional[float] = None
    url: Optional[str] = None
    lang: Optional[str] = None
    product: Optional[str] = None
    tags: Optional[dict[str, Any]] = None

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _aware(value)


class RecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    source_id: UUID
    external_id: str
    author: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    rating: Optional[float] = None
    created_at: Optional[datetime] = None
    harvested_at: datetime
    url: Optional[str] = None
    lang: Optional[str] = None
    product: Optional[str] = None
    tags: Optional[dict[str, Any]] = None

    @field_validator("created_at", "harvested_at")
    @classmethod
    def as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _aware(value)


class BulkLineError(BaseModel):
    line: int
    error: str


class BulkResult(BaseModel):
    ok: bool = True
    took_lines: int
    inserted: int
    updated: int
    errors: list[BulkLineError]


# -----------------------------------------------------------------------------
# Reports
# -----------------------------------------------------------------------------


WEEK_START_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _parse_week_start(value: Any) -> Optional[date]:
    if value is None:
        return None
    if not isinstance(value, str) or not WEEK_START_PATTERN.match(value):
        raise ValueError("week_start must be YYYY-MM-DD")
    return date.fromisoformat(value)


def _clean_title(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("title cannot be empty")
    return value


class ReportCreate(BaseModel):
    title: str
    body: Optional[str] = None
    week_start: Optional[date] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value: Any) -> Any:
        return _clean_title(value)

    @field_validator("week_start", mode="before")
    @classmethod
    def check_week_start(cls, value: Any) -> Optional[date]:
        return _parse_week_start(value)


class ReportUpdate(BaseModel):
    """Partial update; only fields present in the body are written."""

    title: Optional[str] = None
    body: Optional[str] = None
    week_start: Optional[date] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("title cannot be null")
        return _clean_title(value)

    @field_validator("week_start", mode="before")
    @classmethod
    def check_week_start(cls, value: Any) -> Optional[date]:
        if value is None:
            raise ValueError("week_start cannot be null")
        return _parse_week_start(value)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(include=self.model_fields_set)


class ReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    week_start: date
    title: str
    body: Optional[str] = None
    created_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def id_as_str(cls, value: Any) -> str:
        return str(value)

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _aware(value)


# -----------------------------------------------------------------------------
# Ingestion
# -----------------------------------------------------------------------------


class UpsertStats(BaseModel):
    total: int = 0
    inserted: int = 0
    updated: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)


class IngestResult(BaseModel):
    ok: bool = True
    platform: str
    target_id: str
    source_id: Optional[UUID] = None
    stats: UpsertStats
    dry: bool = False
    preview: Optional[list[dict[str, Any]]] = None


class BatchOutcome(BaseModel):
    source_id: UUID
    target_id: Optional[str] = None
    ok: bool
    stats: Optional[UpsertStats] = None
    error: Optional[str] = None


class BatchResult(BaseModel):
    ok: bool = True
    platform: str
    count: int
    calls: list[BatchOutcome]


# -----------------------------------------------------------------------------
# Health / Stats
# -----------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    database: str


class StatsResponse(BaseModel):
    ok: bool = True
    counts: dict[str, int]
    sample: dict[str, list[dict[str, Any]]]
