"""Find-or-create for ``sources`` rows."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models.sources import Source

log = get_logger("source_resolver")


class SourceResolver:
    """Maps a (kind, url) origin to its ``sources`` id.

    Lookup and insert are two statements. Two concurrent first-time ingests
    of the same target can both miss the lookup and create duplicate rows;
    there is no unique constraint on (kind, url) to stop them.
    """

    def __init__(self, db: Session):
        self.db = db

    def find(self, kind: str, url: Optional[str]) -> Optional[Source]:
        stmt = select(Source).where(Source.kind == kind, Source.url == url).limit(1)
        return self.db.execute(stmt).scalars().first()

    def resolve(self, kind: str, url: Optional[str], name: str) -> uuid.UUID:
        existing = self.find(kind, url)
        if existing is not None:
            return existing.id

        source = Source(name=name, kind=kind, url=url)
        self.db.add(source)
        self.db.flush()
        log.info(f"Registered source {source.id} kind={kind} url={url}")
        return source.id
