from app.models.base import Base
from app.models.sources import Source
from app.models.records import Record
from app.models.reports import Report
from app.models.throttle import ThrottleEntry

__all__ = [
    "Base",
    "Source",
    "Record",
    "Report",
    "ThrottleEntry",
]
