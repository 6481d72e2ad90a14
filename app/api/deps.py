"""API dependencies"""

import uuid
from typing import Generator, Optional

from fastapi import Depends, Header, Query, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import SessionLocal
from app.core.errors import BadRequest
from app.core.security import RateLimiter, extract_bearer, require_token
from app.ingestion.registry import Fetchers, build_fetchers


def get_db() -> Generator[Session, None, None]:
    """Database dependency"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


_fetchers: Optional[Fetchers] = None


def get_fetchers() -> Fetchers:
    """Process-wide fetcher registry; overridden in tests."""
    global _fetchers
    if _fetchers is None:
        _fetchers = build_fetchers()
    return _fetchers


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def parse_uuid(raw: str, what: str = "id") -> uuid.UUID:
    try:
        return uuid.UUID(raw)
    except (TypeError, ValueError):
        raise BadRequest(f"invalid {what}") from None


def client_key(request: Request, scope: str) -> str:
    """Rate-limit key: caller token, client address and route scope."""
    token = extract_bearer(request.headers.get("authorization")) or "anon"
    forwarded = request.headers.get("x-forwarded-for", "")
    ip = (
        forwarded.split(",")[0].strip()
        or request.headers.get("x-real-ip")
        or (request.client.host if request.client else None)
        or "0.0.0.0"
    )
    return f"{token}:{ip}:{scope}"


# -----------------------------------------------------------------------------
# Auth
# -----------------------------------------------------------------------------


def require_write_token(authorization: Optional[str] = Header(None)) -> None:
    """Write endpoints: bearer token must equal API_TOKEN."""
    require_token(settings.API_TOKEN, authorization)


def require_ingest_token(
    authorization: Optional[str] = Header(None),
    token: Optional[str] = Query(None),
) -> None:
    """Single-target ingest: only enforced in production with CRON_TOKEN set."""
    if settings.ingest_token_required:
        require_token(settings.CRON_TOKEN, authorization, token)


def require_cron_token(
    authorization: Optional[str] = Header(None),
    token: Optional[str] = Query(None),
) -> None:
    """Batch runs: cron token is required in every environment."""
    require_token(settings.CRON_TOKEN, authorization, token)
