"""Report routes - weekly report CRUD."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.deps import client_key, get_db, get_rate_limiter, require_write_token
from app.core.config import settings
from app.core.responses import json_response
from app.core.security import RateLimiter
from app.schemas.api import ReportCreate, ReportOut, ReportUpdate
from app.schemas.params import PageParams
from app.services.report_service import ReportService, parse_report_id

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("")
def list_reports(request: Request, db: Session = Depends(get_db)):
    """List reports, most recent week first. Query: ``limit`` (1-100), ``offset``."""
    params = PageParams.from_query(request.query_params)
    service = ReportService(db)
    reports = service.list(params.limit, params.offset)

    return json_response(
        request,
        {
            "ok": True,
            "total": service.count(),
            "limit": params.limit,
            "offset": params.offset,
            "items": [ReportOut.model_validate(r) for r in reports],
        },
    )


@router.post("", status_code=201, dependencies=[Depends(require_write_token)])
def create_report(
    request: Request,
    payload: ReportCreate,
    db: Session = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """
    Create a report.

    ``week_start`` (YYYY-MM-DD) defaults to the Monday of the current UTC week.
    Limited per caller to REPORT_CREATE_LIMIT per window.
    """
    limiter.hit(
        client_key(request, "POST:/reports"),
        settings.REPORT_CREATE_LIMIT,
        settings.RATE_LIMIT_WINDOW_SECONDS,
    )
    report = ReportService(db).create(payload)
    return json_response(request, {"ok": True, "item": ReportOut.model_validate(report)}, status_code=201)


@router.get("/{report_id}")
def get_report(report_id: str, request: Request, db: Session = Depends(get_db)):
    report = ReportService(db).get(parse_report_id(report_id))
    return json_response(request, {"ok": True, "item": ReportOut.model_validate(report)})


@router.put("/{report_id}", dependencies=[Depends(require_write_token)])
def update_report(report_id: str, request: Request, payload: ReportUpdate, db: Session = Depends(get_db)):
    """Partial update of ``title``, ``body`` and ``week_start``; an empty body is rejected."""
    report = ReportService(db).update(parse_report_id(report_id), payload)
    return json_response(request, {"ok": True, "item": ReportOut.model_validate(report)})


@router.delete("/{report_id}", dependencies=[Depends(require_write_token)])
def delete_report(
    report_id: str,
    request: Request,
    db: Session = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    rid = parse_report_id(report_id)
    limiter.hit(
        client_key(request, f"DELETE:/reports/{rid}"),
        settings.REPORT_DELETE_LIMIT,
        settings.RATE_LIMIT_WINDOW_SECONDS,
    )
    ReportService(db).delete(rid)
    return json_response(request, {"ok": True, "deleted": str(rid)})
