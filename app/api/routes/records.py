"""Record routes - list, create, bulk upload, read and delete harvested records."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.deps import get_db, parse_uuid, require_write_token
from app.schemas.api import RecordCreate, RecordOut
from app.schemas.params import RecordListParams
from app.core.responses import json_response
from app.services.record_service import RecordService

router = APIRouter(prefix="/records", tags=["records"])


@router.get("")
def list_records(request: Request, db: Session = Depends(get_db)):
    """
    List records, newest origin ``created_at`` first.

    Query: ``limit`` (1-100, default 20), ``offset``, ``product``, ``source_id``,
    ``rating_gte``, ``rating_lte``, ``since`` (ISO-8601) and ``q`` (substring
    of title, body or author, case-insensitive).
    """
    params = RecordListParams.from_query(request.query_params)
    records = RecordService(db).list(params)

    return json_response(
        request,
        {
            "ok": True,
            "items": [RecordOut.model_validate(r) for r in records],
            "limit": params.limit,
            "offset": params.offset,
            "filters": params.model_dump(exclude={"limit", "offset"}),
        },
    )


@router.post("", status_code=201, dependencies=[Depends(require_write_token)])
def create_record(request: Request, payload: RecordCreate, db: Session = Depends(get_db)):
    record = RecordService(db).create(payload)
    return json_response(request, {"ok": True, "item": RecordOut.model_validate(record)}, status_code=201)


@router.post("/bulk", dependencies=[Depends(require_write_token)])
async def bulk_records(request: Request, db: Session = Depends(get_db)):
    """
    Upsert records from an NDJSON body, one JSON object per line.

    Blank lines are skipped but still counted for the reported line numbers.
    A bad line is reported and the rest of the upload continues.
    """
    raw = await request.body()
    result = RecordService(db).bulk(raw.decode("utf-8", errors="replace"))
    return json_response(request, result)


@router.get("/{record_id}")
def get_record(record_id: str, request: Request, db: Session = Depends(get_db)):
    record = RecordService(db).get(parse_uuid(record_id))
    return json_response(request, {"ok": True, "item": RecordOut.model_validate(record)})


@router.delete("/{record_id}", dependencies=[Depends(require_write_token)])
def delete_record(record_id: str, request: Request, db: Session = Depends(get_db)):
    rid = parse_uuid(record_id)
    RecordService(db).delete(rid)
    return json_response(request, {"ok": True, "deleted": rid})
