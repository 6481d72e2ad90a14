"""Error taxonomy shared by routes and services.

Every error carries the HTTP status it maps to and a message that is safe to
return to the client. Handlers in ``app.main`` render them as
``{"ok": false, "error": ...}``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class AppError(Exception):
    status_code: int = 500
    default_message: str = "internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.message}

    def headers(self) -> Dict[str, str]:
        return {}


class BadRequest(AppError):
    status_code = 400
    default_message = "bad request"


class Unauthorized(AppError):
    status_code = 401
    default_message = "unauthorized"


class NotFound(AppError):
    status_code = 404
    default_message = "not found"


class RateLimited(AppError):
    status_code = 429
    default_message = "rate_limited"

    def __init__(self, retry_after_seconds: int, message: Optional[str] = None):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        return {**super().to_payload(), "retry_after_seconds": self.retry_after_seconds}

    def headers(self) -> Dict[str, str]:
        return {"Retry-After": str(self.retry_after_seconds)}


class CooldownActive(RateLimited):
    default_message = "cooldown_active"


class UpstreamError(AppError):
    """An origin platform answered with a non-success status or an unusable payload."""

    status_code = 500

    def __init__(self, message: str, upstream_status: Optional[int] = None, body: Optional[str] = None):
        self.upstream_status = upstream_status
        self.body = body
        super().__init__(message)


class StoreError(AppError):
    """Database failure. Detail is logged server-side only."""

    status_code = 500
    default_message = "database error"
