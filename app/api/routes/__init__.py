from app.api.routes.health import router as health_router
from app.api.routes.ingest import router as ingest_router
from app.api.routes.records import router as records_router
from app.api.routes.reports import router as reports_router
from app.api.routes.sources import router as sources_router
from app.api.routes.stats import router as stats_router

__all__ = [
    "health_router",
    "ingest_router",
    "records_router",
    "reports_router",
    "sources_router",
    "stats_router",
]
