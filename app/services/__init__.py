# Services package
from app.services.ingest_service import IngestionService
from app.services.record_service import RecordService
from app.services.report_service import ReportService
from app.services.source_resolver import SourceResolver
from app.services.throttle import ThrottleDecision, ThrottleGate
from app.services.upsert import RecordUpserter

__all__ = [
    "IngestionService",
    "RecordService",
    "ReportService",
    "SourceResolver",
    "ThrottleDecision",
    "ThrottleGate",
    "RecordUpserter",
]
