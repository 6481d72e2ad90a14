"""Weekly report CRUD."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.errors import BadRequest, NotFound
from app.core.logging import get_logger
from app.models.reports import Report
from app.schemas.api import ReportCreate, ReportUpdate

log = get_logger("report_service")


def current_week_monday(today: Optional[date] = None) -> date:
    """Monday of the ISO week containing ``today`` (UTC by default)."""
    today = today or datetime.now(timezone.utc).date()
    return today - timedelta(days=today.weekday())


def parse_report_id(raw: str) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise BadRequest("invalid id") from None
    if value <= 0:
        raise BadRequest("invalid id")
    return value


class ReportService:
    def __init__(self, db: Session):
        self.db = db

    def list(self, limit: int, offset: int) -> List[Report]:
        stmt = select(Report).order_by(Report.week_start.desc(), Report.id.desc()).limit(limit).offset(offset)
        return list(self.db.execute(stmt).scalars().all())

    def count(self) -> int:
        return self.db.execute(select(func.count()).select_from(Report)).scalar() or 0

    def get(self, report_id: int) -> Report:
        report = self.db.get(Report, report_id)
        if report is None:
            raise NotFound("report not found")
        return report

    def create(self, payload: ReportCreate) -> Report:
        report = Report(
            title=payload.title,
            body=payload.body,
            week_start=payload.week_start or current_week_monday(),
        )
        self.db.add(report)
        self.db.commit()
        self.db.refresh(report)
        log.info(f"Created report {report.id} week_start={report.week_start}")
        return report

    def update(self, report_id: int, payload: ReportUpdate) -> Report:
        changes = payload.changes()
        if not changes:
            raise BadRequest("no fields to update")

        report = self.get(report_id)
        for field, value in changes.items():
            setattr(report, field, value)
        self.db.commit()
        self.db.refresh(report)
        log.info(f"Updated report {report_id} fields={sorted(changes)}")
        return report

    def delete(self, report_id: int) -> None:
        report = self.get(report_id)
        self.db.delete(report)
        self.db.commit()
        log.info(f"Deleted report {report_id}")
