"""Stats routes - row counts and newest samples for quick inspection."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.responses import json_response
from app.models import Record, Report, Source
from app.schemas.api import StatsResponse

router = APIRouter(prefix="/stats", tags=["stats"])

SAMPLE_SIZE = 3


def _count(db: Session, model) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar() or 0


@router.get("")
def get_stats(request: Request, db: Session = Depends(get_db)):
    """Counts of sources, records and reports plus the newest sources and records."""
    sources = db.execute(select(Source).order_by(Source.created_at.desc()).limit(SAMPLE_SIZE)).scalars().all()
    records = db.execute(select(Record).order_by(Record.harvested_at.desc()).limit(SAMPLE_SIZE)).scalars().all()

    payload = StatsResponse(
        counts={
            "sources": _count(db, Source),
            "records": _count(db, Record),
            "reports": _count(db, Report),
        },
        sample={
            "sources": [
                {"id": str(s.id), "name": s.name, "kind": s.kind, "url": s.url, "created_at": s.created_at}
                for s in sources
            ],
            "records": [
                {
                    "id": str(r.id),
                    "source_id": str(r.source_id),
                    "external_id": r.external_id,
                    "created_at": r.created_at,
                    "harvested_at": r.harvested_at,
                }
                for r in records
            ],
        },
    )
    return json_response(request, payload)
