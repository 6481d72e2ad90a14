"""YouTube comment threads (paged, API key)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from pydantic import ValidationError

from app.core.config import settings
from app.core.errors import UpstreamError
from app.core.logging import get_logger
from app.schemas.raw import RawItem
from .base import BaseFetcher

log = get_logger("ingestion.youtube")

COMMENT_THREADS_URL = "https://www.googleapis.com/youtube/v3/commentThreads"
WATCH_URL = "https://www.youtube.com/watch"
PAGE_SIZE = 100


def extract_video_id(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    try:
        values = parse_qs(urlparse(url).query).get("v")
    except ValueError:
        return None
    return values[0] if values and values[0] else None


class YouTubeFetcher(BaseFetcher):
    """Fetches top-level comments of a video, following ``nextPageToken``."""

    platform = "youtube"
    legacy_url_pattern = "%youtube.com/watch?v=%"
    default_cooldown = 60
    paged = True

    def __init__(self, api_key: Optional[str] = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.api_key = api_key if api_key is not None else settings.YOUTUBE_API_KEY

    async def fetch(self, target_id: str, budget: int) -> List[RawItem]:
        if not self.api_key:
            raise UpstreamError("Missing YOUTUBE_API_KEY setting")

        max_pages = max(1, budget)
        threads: List[Dict[str, Any]] = []
        page_token: Optional[str] = None
        pages = 0

        async with self.http() as client:
            while True:
                params = {
                    "part": "snippet",
                    "videoId": target_id,
                    "maxResults": PAGE_SIZE,
                    "textFormat": "plainText",
                    "key": self.api_key,
                }
                if page_token:
                    params["pageToken"] = page_token

                resp = await client.get(COMMENT_THREADS_URL, params=params, headers=self.headers)
                self.raise_for_status(resp, "YouTube API")
                try:
                    data = resp.json()
                except ValueError as exc:
                    raise UpstreamError("YouTube API returned a non-JSON body", resp.status_code, resp.text) from exc

                items = data.get("items") if isinstance(data, dict) else None
                if isinstance(items, list):
                    threads.extend(items)
                page_token = data.get("nextPageToken") if isinstance(data, dict) else None
                pages += 1
                if not page_token or pages >= max_pages:
                    break

        results = [item for item in (self._to_item(t) for t in threads) if item is not None]
        log.info(f"Fetched {len(results)} comments for video {target_id} ({pages} page(s))")
        return results

    @staticmethod
    def _to_item(thread: Dict[str, Any]) -> Optional[RawItem]:
        snippet = thread.get("snippet") or {}
        comment = snippet.get("topLevelComment") or {}
        s = comment.get("snippet")
        if not comment.get("id") or not s:
            return None

        video_id = snippet.get("videoId") or s.get("videoId")
        try:
            return RawItem(
                external_id=comment["id"],
                author=s.get("authorDisplayName"),
                body=s.get("textDisplay") or s.get("textOriginal"),
                published_at=s.get("publishedAt"),
                url=f"{WATCH_URL}?v={video_id}&lc={comment['id']}" if video_id else None,
                lang=s.get("language"),
                payload=thread,
            )
        except ValidationError as exc:
            log.warning(f"Skipping malformed comment thread {thread.get('id')}: {exc}")
            return None

    def source_identity(self, target_id: str, source_url: Optional[str] = None) -> Tuple[str, str]:
        return f"{WATCH_URL}?v={target_id}", f"YouTube: {target_id}"

    def extract_target_id(self, url: Optional[str]) -> Optional[str]:
        return extract_video_id(url)
