"""Ingest entrypoint - Standalone script for running batch ingestion.

Usage:
    python -m app.ingest_entrypoint youtube         # 3 newest YouTube sources
    python -m app.ingest_entrypoint reddit 10       # 10 newest Reddit sources
"""

import asyncio
import sys
from typing import List

from app.core.db import SessionLocal
from app.core.logging import get_logger
from app.ingestion.registry import build_fetchers
from app.ingestion.runner import BatchRunner
from app.schemas.api import BatchOutcome
from app.services.ingest_service import IngestionService

logger = get_logger("ingest_entrypoint")

DEFAULT_SOURCES = 3
PER_SOURCE_LIMIT = 50


async def run_batch_job(platform: str, max_sources: int) -> List[BatchOutcome]:
    logger.info(f"Starting batch ingest for {platform} (max {max_sources} sources)")
    with SessionLocal() as db:
        fetchers = build_fetchers()
        runner = BatchRunner(db, IngestionService(db, fetchers))
        return await runner.run_batch(platform, max_sources=max_sources, per_source_limit=PER_SOURCE_LIMIT)


def main():
    """Main entry point for batch ingestion."""
    platforms = sorted(build_fetchers())
    if len(sys.argv) < 2 or sys.argv[1] not in platforms:
        logger.error(f"Usage: python -m app.ingest_entrypoint <{'|'.join(platforms)}> [max_sources]")
        sys.exit(2)

    platform = sys.argv[1]
    try:
        max_sources = int(sys.argv[2]) if len(sys.argv) > 2 else DEFAULT_SOURCES
    except ValueError:
        logger.error(f"Invalid max_sources: {sys.argv[2]}")
        sys.exit(2)
    max_sources = max(1, min(10, max_sources))

    outcomes = asyncio.run(run_batch_job(platform, max_sources))
    for outcome in outcomes:
        if outcome.ok:
            logger.info(f"{platform} {outcome.target_id}: {outcome.stats.model_dump() if outcome.stats else {}}")
        else:
            logger.error(f"{platform} source {outcome.source_id}: {outcome.error}")

    # Exit with error code if any source failed
    if any(not o.ok for o in outcomes):
        sys.exit(1)

    return outcomes


if __name__ == "__main__":
    main()
