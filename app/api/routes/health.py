"""Health routes - System health and readiness checks."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.logging import get_logger
from app.core.responses import json_response
from app.schemas.api import HealthResponse

router = APIRouter(prefix="/health", tags=["health"])
log = get_logger("health")


@router.get("")
def health(request: Request, db: Session = Depends(get_db)):
    """
    Health check endpoint for load balancer and Docker health checks.

    Returns 503 if database is unreachable.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        log.error(f"Health check failed: {e}")
        return json_response(request, HealthResponse(status="degraded", database="down"), status_code=503)

    return json_response(request, HealthResponse(status="ok", database="ok"))


@router.get("/ready")
def readiness(request: Request, db: Session = Depends(get_db)):
    """
    Readiness probe - checks if service can serve traffic.

    Returns 200 if ready, 503 if database is unreachable.
    """
    now = datetime.now(timezone.utc).isoformat()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return json_response(request, {"status": "not_ready", "timestamp": now}, status_code=503)
    return json_response(request, {"status": "ready", "timestamp": now})
