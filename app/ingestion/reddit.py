"""Reddit thread comments (single public JSON listing, no auth)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from pydantic import ValidationError

from app.core.errors import UpstreamError
from app.core.logging import get_logger
from app.schemas.raw import RawItem
from .base import BaseFetcher

log = get_logger("ingestion.reddit")

REDDIT_BASE = "https://www.reddit.com"
MAX_COMMENTS = 100


def extract_post_id(url: Optional[str]) -> Optional[str]:
    """Return the path segment after ``comments`` in a thread URL."""
    if not url:
        return None
    try:
        parts = [p for p in urlparse(url).path.split("/") if p]
    except ValueError:
        return None
    if "comments" not in parts:
        return None
    idx = parts.index("comments")
    if idx + 1 >= len(parts):
        return None
    return parts[idx + 1]


class RedditFetcher(BaseFetcher):
    platform = "reddit"
    legacy_url_pattern = "%reddit.com/%comments/%"
    default_cooldown = 0

    async def fetch(self, target_id: str, budget: int) -> List[RawItem]:
        limit = max(1, min(MAX_COMMENTS, budget))
        params = {"limit": limit, "depth": 1, "raw_json": 1}

        async with self.http() as client:
            resp = await client.get(f"{REDDIT_BASE}/comments/{target_id}.json", params=params, headers=self.headers)
            self.raise_for_status(resp, "Reddit")
            try:
                data = resp.json()
            except ValueError as exc:
                raise UpstreamError("Reddit returned a non-JSON body", resp.status_code, resp.text) from exc

        # [post listing, comment listing]
        if not isinstance(data, list) or len(data) < 2 or not isinstance(data[1], dict):
            raise UpstreamError("Unexpected Reddit payload", resp.status_code, resp.text)

        thread_url = f"{REDDIT_BASE}/comments/{target_id}/"
        children: List[Dict[str, Any]] = (data[1].get("data") or {}).get("children") or []

        results: List[RawItem] = []
        for child in children:
            if not isinstance(child, dict) or child.get("kind") != "t1":
                continue
            item = self._to_item(child.get("data") or {}, thread_url)
            if item is not None:
                results.append(item)

        log.info(f"Fetched {len(results)} comments for post {target_id}")
        return results

    @staticmethod
    def _to_item(c: Dict[str, Any], thread_url: Optional[str] = None) -> Optional[RawItem]:
        # "more" stubs and deleted comments carry no author
        if not c.get("id") or not c.get("author"):
            return None
        permalink = c.get("permalink")
        try:
            return RawItem(
                external_id=c["id"],
                author=c["author"],
                body=c.get("body"),
                published_at=c.get("created_utc"),
                url=f"{REDDIT_BASE}{permalink}" if permalink else thread_url,
                payload=c,
            )
        except ValidationError as exc:
            log.warning(f"Skipping malformed Reddit comment {c.get('id')}: {exc}")
            return None

    def budget(self, limit: Optional[int], pages: int) -> int:
        return limit or MAX_COMMENTS

    def source_identity(self, target_id: str, source_url: Optional[str] = None) -> Tuple[str, str]:
        return source_url or f"{REDDIT_BASE}/comments/{target_id}/", f"Reddit: {target_id}"

    def extract_target_id(self, url: Optional[str]) -> Optional[str]:
        return extract_post_id(url)
