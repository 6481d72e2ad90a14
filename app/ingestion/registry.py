"""Platform name -> fetcher lookup."""

from __future__ import annotations

from typing import Dict, Optional

import httpx

from app.core.errors import NotFound
from .base import BaseFetcher
from .reddit import RedditFetcher
from .youtube import YouTubeFetcher

Fetchers = Dict[str, BaseFetcher]


def build_fetchers(client: Optional[httpx.AsyncClient] = None) -> Fetchers:
    fetchers = [YouTubeFetcher(client=client), RedditFetcher(client=client)]
    return {f.platform: f for f in fetchers}


def get_fetcher(fetchers: Fetchers, platform: str) -> BaseFetcher:
    try:
        return fetchers[platform]
    except KeyError:
        raise NotFound(f"unknown platform: {platform}") from None
