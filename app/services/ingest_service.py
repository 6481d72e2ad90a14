"""Single-target ingestion: throttle, resolve source, fetch, upsert."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import AppError, CooldownActive
from app.core.logging import get_logger
from app.ingestion.registry import Fetchers, get_fetcher
from app.schemas.api import IngestResult, UpsertStats
from app.services.source_resolver import SourceResolver
from app.services.throttle import ThrottleGate
from app.services.upsert import RecordUpserter

log = get_logger("ingest_service")

PREVIEW_SIZE = 3


def throttle_key(platform: str, target_id: str) -> str:
    return f"pull:{platform}:{target_id}"


class IngestionService:
    """Pulls one target from one platform into the record store.

    Responsibilities:
    - Gate repeated pulls of the same target behind a cooldown
    - Register the source on first use
    - Upsert fetched items and commit
    - Roll back and re-raise on failure
    """

    def __init__(
        self,
        db: Session,
        fetchers: Fetchers,
        throttle: Optional[ThrottleGate] = None,
    ):
        self.db = db
        self.fetchers = fetchers
        self.throttle = throttle or ThrottleGate(db)
        self.resolver = SourceResolver(db)
        self.upserter = RecordUpserter(db)

    async def ingest(
        self,
        platform: str,
        target_id: str,
        *,
        limit: Optional[int] = None,
        pages: int = 1,
        dry_run: bool = False,
        cooldown: Optional[int] = None,
        source_url: Optional[str] = None,
        source_id: Optional[uuid.UUID] = None,
    ) -> IngestResult:
        """Run one pull.

        ``limit`` caps the number of fetched items kept, ``pages`` bounds paged
        platforms. A dry run only fetches and previews; nothing is written.
        ``source_id`` skips resolution when the caller already holds the row.
        """
        fetcher = get_fetcher(self.fetchers, platform)
        budget = fetcher.budget(limit, pages)

        if dry_run:
            items = await fetcher.fetch(target_id, budget)
            if limit:
                items = items[:limit]
            log.info(f"Dry run {platform}:{target_id} fetched={len(items)}")
            return IngestResult(
                platform=platform,
                target_id=target_id,
                stats=UpsertStats(total=len(items)),
                dry=True,
                preview=[item.preview() for item in items[:PREVIEW_SIZE]],
            )

        if cooldown is None:
            cooldown = fetcher.default_cooldown
        key = throttle_key(platform, target_id)

        try:
            decision = self.throttle.check_and_arm(key, cooldown)
            if not decision.allowed:
                raise CooldownActive(decision.retry_after_seconds)
            # the arm holds even if the fetch below fails
            self.db.commit()

            if source_id is None:
                url, name = fetcher.source_identity(target_id, source_url)
                source_id = self.resolver.resolve(platform, url, name)

            items = await fetcher.fetch(target_id, budget)
            if limit:
                items = items[:limit]

            stats = self.upserter.upsert(source_id, items, platform)
            self.db.commit()

            log.info(f"Ingested {platform}:{target_id} source={source_id} stats={stats.model_dump()}")
            return IngestResult(platform=platform, target_id=target_id, source_id=source_id, stats=stats)

        except CooldownActive:
            self.db.rollback()
            raise
        except AppError as exc:
            self.db.rollback()
            log.error(f"Ingest failed for {platform}:{target_id}: {exc.message}")
            raise
        except Exception as exc:  # noqa: BLE001
            self.db.rollback()
            log.exception(f"Ingest failed for {platform}:{target_id}: {exc}")
            raise
