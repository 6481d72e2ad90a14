"""Source routes - registered ingestion origins."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.responses import json_response
from app.models.sources import Source
from app.schemas.api import SourceOut

router = APIRouter(prefix="/sources", tags=["sources"])


@router.get("")
def list_sources(request: Request, db: Session = Depends(get_db)):
    """All registered sources, newest first."""
    rows = db.execute(select(Source).order_by(Source.created_at.desc())).scalars().all()
    return json_response(
        request,
        {"ok": True, "count": len(rows), "items": [SourceOut.model_validate(s) for s in rows]},
    )
