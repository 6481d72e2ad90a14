"""Ingest routes - pull comments from YouTube and Reddit into records."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_fetchers, require_cron_token, require_ingest_token
from app.core.logging import get_logger
from app.core.responses import json_response
from app.ingestion.registry import Fetchers, get_fetcher
from app.ingestion.runner import BatchRunner
from app.schemas.api import BatchResult
from app.schemas.params import BatchParams, RedditIngestParams, YouTubeIngestParams
from app.services.ingest_service import IngestionService

router = APIRouter(prefix="/ingest", tags=["ingest"])
log = get_logger("ingest_routes")


@router.get("/youtube", dependencies=[Depends(require_ingest_token)])
async def ingest_youtube(
    request: Request,
    db: Session = Depends(get_db),
    fetchers: Fetchers = Depends(get_fetchers),
):
    """
    Pull top-level comments of one video.

    Query:
    - target (or video): video id
    - pages: 1-5 pages of 100 threads
    - limit: optional cap on kept items (1-500)
    - cooldown: seconds between pulls of the same video (0-3600, default 60)
    - dry: fetch and preview only, nothing is written
    """
    params = YouTubeIngestParams.from_query(request.query_params)
    log.info(f"YouTube ingest requested for {params.target} dry={params.dry}")

    result = await IngestionService(db, fetchers).ingest(
        "youtube",
        params.target,
        limit=params.limit,
        pages=params.pages,
        dry_run=params.dry,
        cooldown=params.cooldown,
    )
    return json_response(request, result)


@router.get("/reddit", dependencies=[Depends(require_ingest_token)])
async def ingest_reddit(
    request: Request,
    db: Session = Depends(get_db),
    fetchers: Fetchers = Depends(get_fetchers),
):
    """
    Pull comments of one Reddit thread.

    Query: ``url`` (thread URL) or ``id`` (base36 post id), ``limit`` (1-100),
    ``cooldown`` (default 0), ``dry``.
    """
    params = RedditIngestParams.from_query(request.query_params)
    log.info(f"Reddit ingest requested for {params.id} dry={params.dry}")

    result = await IngestionService(db, fetchers).ingest(
        "reddit",
        params.id,
        limit=params.limit,
        dry_run=params.dry,
        cooldown=params.cooldown,
        source_url=params.url,
    )
    return json_response(request, result)


@router.get("/{platform}/run", dependencies=[Depends(require_cron_token)])
async def run_batch(
    platform: str,
    request: Request,
    db: Session = Depends(get_db),
    fetchers: Fetchers = Depends(get_fetchers),
):
    """
    Ingest the most recently registered sources of one platform.

    Query: ``limit`` sources (1-10, default 3), ``pages`` (1-5), ``fetch``
    items per source (1-100, default 50), ``dry``. Each source succeeds or
    fails on its own; failures are reported in ``calls``.
    """
    get_fetcher(fetchers, platform)
    params = BatchParams.from_query(request.query_params)

    runner = BatchRunner(db, IngestionService(db, fetchers))
    outcomes = await runner.run_batch(
        platform,
        max_sources=params.limit,
        per_source_limit=params.fetch,
        pages=params.pages,
        dry_run=params.dry,
    )
    return json_response(request, BatchResult(platform=platform, count=len(outcomes), calls=outcomes))
