"""Insert-or-update of records on (source_id, external_id)."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.db import dialect_insert
from app.core.logging import get_logger
from app.models.records import Record
from app.schemas.api import UpsertStats
from app.schemas.raw import RawItem

log = get_logger("upsert")

# Columns a re-harvest refreshes. Curated fields (tags, rating, title, product) survive.
OVERWRITE_FIELDS = ("author", "body", "created_at", "url", "lang")
OVERWRITE_FIELDS_NO_LANG = tuple(f for f in OVERWRITE_FIELDS if f != "lang")


class RecordUpserter:
    def __init__(self, db: Session):
        self.db = db

    def upsert_one(
        self,
        source_id: uuid.UUID,
        external_id: str,
        values: Dict[str, Any],
        overwrite: Iterable[str] = OVERWRITE_FIELDS,
    ) -> bool:
        """Write one record; return True when a new row was created.

        An existing row only gets the ``overwrite`` columns refreshed. Runs
        inside its own SAVEPOINT so a failure only discards this item.
        """
        now = datetime.now(timezone.utc)
        row = {
            **values,
            "id": uuid.uuid4(),
            "source_id": source_id,
            "external_id": external_id,
            "harvested_at": now,
        }
        row.setdefault("tags", {})

        stmt = (
            dialect_insert(self.db, Record)
            .values(**row)
            .on_conflict_do_nothing(index_elements=[Record.source_id, Record.external_id])
            .returning(Record.id)
        )

        with self.db.begin_nested():
            created = self.db.execute(stmt).first() is not None
            if not created:
                changes = {k: values.get(k) for k in overwrite}
                self.db.execute(
                    update(Record)
                    .where(Record.source_id == source_id, Record.external_id == external_id)
                    .values(**changes, harvested_at=now)
                    .execution_options(synchronize_session=False)
                )
        return created

    def upsert(self, source_id: uuid.UUID, items: Iterable[RawItem], platform: str) -> UpsertStats:
        stats = UpsertStats()
        for item in items:
            stats.total += 1
            values = {
                "author": item.author,
                "body": item.body,
                "created_at": item.published_at,
                "url": item.url,
                "lang": item.lang,
                "tags": {"source": platform},
            }
            # items without a language keep the stored one
            overwrite = OVERWRITE_FIELDS if item.lang else OVERWRITE_FIELDS_NO_LANG
            try:
                if self.upsert_one(source_id, item.external_id, values, overwrite):
                    stats.inserted += 1
                else:
                    stats.updated += 1
            except SQLAlchemyError as exc:
                stats.failed += 1
                stats.errors.append(item.external_id)
                log.warning(f"Upsert failed for {platform}:{item.external_id}: {exc}")

        log.info(
            f"Upserted {platform} source={source_id} total={stats.total} "
            f"inserted={stats.inserted} updated={stats.updated} failed={stats.failed}"
        )
        return stats
