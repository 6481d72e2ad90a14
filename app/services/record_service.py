"""Record queries, single writes and NDJSON bulk upload."""

from __future__ import annotations

import json
import uuid
from typing import Any, Dict, List

from pydantic import ValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import BadRequest, NotFound
from app.core.logging import get_logger
from app.models.records import Record
from app.schemas.api import BulkLineError, BulkResult, RecordCreate
from app.schemas.params import RecordListParams
from app.services.upsert import RecordUpserter

log = get_logger("record_service")


def describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    return f"{loc}: {first['msg']}" if loc else first["msg"]


class RecordService:
    def __init__(self, db: Session):
        self.db = db

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def list(self, params: RecordListParams) -> List[Record]:
        stmt = select(Record)

        if params.product:
            stmt = stmt.where(Record.product == params.product)
        if params.source_id:
            stmt = stmt.where(Record.source_id == params.source_id)
        if params.rating_gte is not None:
            stmt = stmt.where(Record.rating >= params.rating_gte)
        if params.rating_lte is not None:
            stmt = stmt.where(Record.rating <= params.rating_lte)
        if params.since:
            stmt = stmt.where(Record.created_at >= params.since)
        if params.q:
            pattern = f"%{params.q}%"
            stmt = stmt.where(
                or_(Record.title.ilike(pattern), Record.body.ilike(pattern), Record.author.ilike(pattern))
            )

        stmt = stmt.order_by(Record.created_at.desc().nullslast(), Record.harvested_at.desc())
        stmt = stmt.limit(params.limit).offset(params.offset)
        return list(self.db.execute(stmt).scalars().all())

    def get(self, record_id: uuid.UUID) -> Record:
        record = self.db.get(Record, record_id)
        if record is None:
            raise NotFound("record not found")
        return record

    def count(self) -> int:
        return self.db.execute(select(func.count()).select_from(Record)).scalar() or 0

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------
    def create(self, payload: RecordCreate) -> Record:
        """Plain insert; a duplicate (source_id, external_id) surfaces as a store error."""
        record = Record(**payload.model_dump(exclude_none=True))
        if record.tags is None:
            record.tags = {}
        self.db.add(record)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(record)
        log.info(f"Created record {record.id} source={record.source_id} external_id={record.external_id}")
        return record

    def delete(self, record_id: uuid.UUID) -> None:
        record = self.get(record_id)
        self.db.delete(record)
        self.db.commit()
        log.info(f"Deleted record {record_id}")

    def bulk(self, text: str) -> BulkResult:
        """Upsert one record per NDJSON line.

        Lines are numbered physically (1-based), so blank lines still count.
        Each line succeeds or fails on its own.
        """
        lines = text.splitlines()
        if not any(line.strip() for line in lines):
            raise BadRequest("empty body")

        upserter = RecordUpserter(self.db)
        inserted = updated = took = 0
        errors: List[BulkLineError] = []

        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            took += 1
            try:
                raw = json.loads(line)
                payload = RecordCreate.model_validate(raw)
            except json.JSONDecodeError as exc:
                errors.append(BulkLineError(line=lineno, error=f"invalid json: {exc.msg}"))
                continue
            except ValidationError as exc:
                errors.append(BulkLineError(line=lineno, error=describe_validation_error(exc)))
                continue

            values: Dict[str, Any] = payload.model_dump(exclude={"source_id", "external_id"})
            if values.get("tags") is None:
                values["tags"] = {}
            # a re-uploaded line replaces every field it carries
            carried = payload.model_fields_set - {"source_id", "external_id"}
            try:
                if upserter.upsert_one(payload.source_id, payload.external_id, values, overwrite=carried):
                    inserted += 1
                else:
                    updated += 1
            except SQLAlchemyError as exc:
                log.warning(f"Bulk line {lineno} failed: {exc}")
                errors.append(BulkLineError(line=lineno, error="database error"))

        self.db.commit()
        log.info(f"Bulk upload: lines={took} inserted={inserted} updated={updated} errors={len(errors)}")
        return BulkResult(took_lines=took, inserted=inserted, updated=updated, errors=errors)
