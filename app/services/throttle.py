"""Per-key ingestion cooldown backed by the ``job_throttle`` table."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.db import dialect_insert
from app.core.logging import get_logger
from app.models.throttle import ThrottleEntry

log = get_logger("throttle")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes; stored values are always UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class ThrottleDecision:
    allowed: bool
    retry_after_seconds: int = 0


class ThrottleGate:
    """Checks and arms a cooldown in one statement.

    The row is inserted, or its ``next_allowed_at`` moved forward, only when
    the previous window has elapsed. ``RETURNING`` yields a row exactly when
    the write happened, so two concurrent callers cannot both be allowed.
    """

    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.clock = clock or utcnow

    def check_and_arm(self, key: str, cooldown_seconds: int) -> ThrottleDecision:
        if cooldown_seconds <= 0:
            return ThrottleDecision(allowed=True)

        now = self.clock()
        next_allowed = now + timedelta(seconds=cooldown_seconds)

        stmt = dialect_insert(self.db, ThrottleEntry).values(key=key, next_allowed_at=next_allowed)
        stmt = stmt.on_conflict_do_update(
            index_elements=[ThrottleEntry.key],
            set_={"next_allowed_at": stmt.excluded.next_allowed_at},
            where=ThrottleEntry.next_allowed_at <= now,
        ).returning(ThrottleEntry.next_allowed_at)

        armed = self.db.execute(stmt).first()
        if armed is not None:
            return ThrottleDecision(allowed=True)

        stored = self.next_allowed_at(key)
        if stored is None:
            # row vanished between the two statements; treat as one full window
            return ThrottleDecision(allowed=False, retry_after_seconds=max(1, cooldown_seconds))

        retry = max(1, math.ceil((stored - now).total_seconds()))
        log.info(f"Throttled {key}: retry in {retry}s")
        return ThrottleDecision(allowed=False, retry_after_seconds=retry)

    def next_allowed_at(self, key: str) -> Optional[datetime]:
        value = self.db.execute(
            select(ThrottleEntry.next_allowed_at).where(ThrottleEntry.key == key)
        ).scalar_one_or_none()
        return _as_utc(value) if value is not None else None
