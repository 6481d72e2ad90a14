"""Batch ingestion over recently registered sources of one platform."""

from __future__ import annotations

from typing import List

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.errors import AppError
from app.core.logging import get_logger
from app.ingestion.registry import get_fetcher
from app.models.sources import Source
from app.schemas.api import BatchOutcome
from app.services.ingest_service import IngestionService

log = get_logger("ingestion.runner")


class BatchRunner:
    """Runs single-target ingestion for each selected source, in order."""

    def __init__(self, db: Session, service: IngestionService):
        self.db = db
        self.service = service

    def select_sources(self, platform: str, max_sources: int) -> List[Source]:
        fetcher = get_fetcher(self.service.fetchers, platform)
        stmt = (
            select(Source)
            .where(or_(Source.kind == platform, Source.url.ilike(fetcher.legacy_url_pattern)))
            .order_by(Source.created_at.desc())
            .limit(max_sources)
        )
        return list(self.db.execute(stmt).scalars().all())

    async def run_batch(
        self,
        platform: str,
        max_sources: int,
        per_source_limit: int,
        pages: int = 1,
        dry_run: bool = False,
    ) -> List[BatchOutcome]:
        fetcher = get_fetcher(self.service.fetchers, platform)
        sources = self.select_sources(platform, max_sources)
        log.info(f"Batch {platform}: {len(sources)} source(s) selected")

        outcomes: List[BatchOutcome] = []
        for source in sources:
            target_id = fetcher.extract_target_id(source.url)
            if not target_id:
                outcomes.append(BatchOutcome(source_id=source.id, ok=False, error="no id"))
                continue

            try:
                result = await self.service.ingest(
                    platform,
                    target_id,
                    # paged platforms keep every page they fetch
                    limit=None if fetcher.paged else per_source_limit,
                    pages=pages,
                    dry_run=dry_run,
                    cooldown=fetcher.default_cooldown,
                    source_id=source.id,
                )
                outcomes.append(
                    BatchOutcome(source_id=source.id, target_id=target_id, ok=True, stats=result.stats)
                )
            except AppError as exc:
                outcomes.append(
                    BatchOutcome(source_id=source.id, target_id=target_id, ok=False, error=exc.message)
                )
            except Exception as exc:  # noqa: BLE001
                log.error(f"Batch {platform} failed for source {source.id}: {exc}")
                outcomes.append(
                    BatchOutcome(source_id=source.id, target_id=target_id, ok=False, error=str(exc))
                )

        failed = sum(1 for o in outcomes if not o.ok)
        log.info(f"Batch {platform} done: {len(outcomes) - failed} ok, {failed} failed")
        return outcomes
