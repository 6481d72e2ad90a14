"""Query parameter models, token checks and the rate limiter"""

import pytest
from pydantic import ValidationError

from app.core.errors import RateLimited, Unauthorized
from app.core.security import RateLimiter, extract_bearer, require_token, tokens_match
from app.schemas.params import BatchParams, PageParams, RedditIngestParams, YouTubeIngestParams


class TestQueryParams:
    """Clamping and defaults"""

    def test_youtube_defaults_and_clamps(self):
        p = YouTubeIngestParams.from_query({"video": "abc"})
        assert (p.target, p.pages, p.cooldown, p.limit, p.dry) == ("abc", 1, 60, None, False)

        p = YouTubeIngestParams.from_query({"target": "abc", "pages": "9", "cooldown": "99999", "limit": "900"})
        assert (p.pages, p.cooldown, p.limit) == (5, 3600, 500)

        p = YouTubeIngestParams.from_query({"target": "abc", "pages": "-1", "cooldown": "x", "dry": "true"})
        assert (p.pages, p.cooldown, p.dry) == (1, 60, True)

    def test_reddit_defaults(self):
        p = RedditIngestParams.from_query({"post": "xyz"})
        assert (p.id, p.limit, p.cooldown, p.url) == ("xyz", 100, 0, None)

        p = RedditIngestParams.from_query({"url": "https://www.reddit.com/r/a/comments/k1/t/", "limit": "500"})
        assert (p.id, p.limit) == ("k1", 100)

    def test_reddit_needs_an_id(self):
        with pytest.raises(ValidationError):
            RedditIngestParams.from_query({})
        with pytest.raises(ValidationError):
            RedditIngestParams.from_query({"url": "https://example.com/nothing"})

    def test_batch_and_page_params(self):
        p = BatchParams.from_query({"limit": "50", "fetch": "0", "pages": "3", "dry": "no"})
        assert (p.limit, p.fetch, p.pages, p.dry) == (10, 1, 3, False)

        p = BatchParams.from_query({})
        assert (p.limit, p.fetch, p.pages) == (3, 50, 1)

        p = PageParams.from_query({"limit": "12.7", "offset": "4"})
        assert (p.limit, p.offset) == (12, 4)


class TestTokens:
    def test_extract_bearer(self):
        assert extract_bearer("Bearer abc") == "abc"
        assert extract_bearer("bearer   abc ") == "abc"
        assert extract_bearer("Basic abc") is None
        assert extract_bearer("Bearer ") is None
        assert extract_bearer(None) is None

    def test_tokens_match(self):
        assert tokens_match("s3cret", "s3cret")
        assert not tokens_match("s3cret", "s3cre")
        assert not tokens_match(None, "x")
        assert not tokens_match("x", None)

    def test_require_token(self):
        require_token("tok", "Bearer tok")
        require_token("tok", None, query_token="tok")
        with pytest.raises(Unauthorized):
            require_token("tok", "Bearer other")
        with pytest.raises(Unauthorized):
            require_token(None, "Bearer anything")


class TestRateLimiter:
    """Fixed window counters"""

    def test_blocks_after_limit(self):
        limiter = RateLimiter()
        for _ in range(3):
            limiter.hit("k", limit=3, window_seconds=60)

        with pytest.raises(RateLimited) as exc:
            limiter.hit("k", limit=3, window_seconds=60)
        assert 1 <= exc.value.retry_after_seconds <= 60
        assert exc.value.headers() == {"Retry-After": str(exc.value.retry_after_seconds)}
        assert exc.value.to_payload()["error"] == "rate_limited"

    def test_keys_are_independent(self):
        limiter = RateLimiter()
        limiter.hit("a", limit=1, window_seconds=60)
        limiter.hit("b", limit=1, window_seconds=60)
        with pytest.raises(RateLimited):
            limiter.hit("a", limit=1, window_seconds=60)

    def test_reset_clears_counters(self):
        limiter = RateLimiter()
        limiter.hit("a", limit=1, window_seconds=60)
        limiter.reset()
        limiter.hit("a", limit=1, window_seconds=60)
