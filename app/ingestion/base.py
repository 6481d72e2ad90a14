"""Abstract fetcher interface for ingestion."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Tuple

import httpx

from app.core.config import settings
from app.core.errors import UpstreamError
from app.schemas.raw import RawItem


class BaseFetcher(ABC):
    """One implementation per platform.

    Besides ``fetch`` a fetcher knows how its platform names things: the
    canonical source URL and display name for a target, how to read the target
    id back out of a stored URL, and which legacy URLs belong to it.
    """

    platform: str
    legacy_url_pattern: str
    default_cooldown: int = 0
    # budget counts pages rather than items
    paged: bool = False

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
    ):
        self._client = client
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self.user_agent = user_agent or settings.USER_AGENT

    @abstractmethod
    async def fetch(self, target_id: str, budget: int) -> List[RawItem]:
        """Fetch items for ``target_id``; ``budget`` is pages or items depending on the platform."""

    def budget(self, limit: Optional[int], pages: int) -> int:
        """Translate the request knobs into the ``fetch`` budget."""
        return pages

    @abstractmethod
    def source_identity(self, target_id: str, source_url: Optional[str] = None) -> Tuple[str, str]:
        """Return ``(url, display name)`` of the source row for ``target_id``."""

    @abstractmethod
    def extract_target_id(self, url: Optional[str]) -> Optional[str]:
        """Read the platform-native id back out of a stored source URL."""

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }

    @asynccontextmanager
    async def http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    @staticmethod
    def raise_for_status(resp: httpx.Response, label: str) -> None:
        if resp.is_success:
            return
        raise UpstreamError(
            f"{label} error: HTTP {resp.status_code} {resp.text}",
            upstream_status=resp.status_code,
            body=resp.text,
        )
