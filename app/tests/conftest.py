"""Shared fixtures: in-memory SQLite, stub fetchers and an API client."""

import os

os.environ["ENV"] = "dev"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RUN_MIGRATIONS"] = "false"
os.environ["LOG_DIR"] = ""
os.environ["API_TOKEN"] = "test-api-token"
os.environ["CRON_TOKEN"] = "test-cron-token"
os.environ["YOUTUBE_API_KEY"] = "test-youtube-key"
os.environ.pop("SLACK_WEBHOOK_URL", None)

from datetime import datetime, timezone  # noqa: E402
from typing import List, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.deps import get_db, get_fetchers  # noqa: E402
from app.ingestion.reddit import RedditFetcher  # noqa: E402
from app.ingestion.youtube import YouTubeFetcher  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base, Source  # noqa: E402
from app.schemas.raw import RawItem  # noqa: E402

API_TOKEN = "test-api-token"
CRON_TOKEN = "test-cron-token"
AUTH = {"Authorization": f"Bearer {API_TOKEN}"}
CRON_AUTH = {"Authorization": f"Bearer {CRON_TOKEN}"}

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def make_items(*ids: str, prefix: str = "comment") -> List[RawItem]:
    return [
        RawItem(
            external_id=ext_id,
            author=f"author-{ext_id}",
            body=f"{prefix} {ext_id}",
            published_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
            url=f"https://example.com/{ext_id}",
            lang="en",
            payload={"id": ext_id},
        )
        for ext_id in ids
    ]


class _StubMixin:
    """Replaces the network call with canned items and records every call."""

    def _init_stub(self, items: Optional[List[RawItem]] = None, error: Optional[Exception] = None):
        self.items = items or []
        self.error = error
        self.calls = []

    async def fetch(self, target_id: str, budget: int) -> List[RawItem]:
        self.calls.append((target_id, budget))
        if self.error is not None:
            raise self.error
        return list(self.items)


class StubYouTubeFetcher(_StubMixin, YouTubeFetcher):
    def __init__(self, items=None, error=None):
        YouTubeFetcher.__init__(self, api_key="test-youtube-key")
        self._init_stub(items, error)


class StubRedditFetcher(_StubMixin, RedditFetcher):
    def __init__(self, items=None, error=None):
        RedditFetcher.__init__(self)
        self._init_stub(items, error)


@pytest.fixture
def db():
    """Fresh schema per test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fetchers():
    return {
        "youtube": StubYouTubeFetcher(items=make_items("yt1", "yt2")),
        "reddit": StubRedditFetcher(items=make_items("rd1", "rd2", "rd3")),
    }


@pytest.fixture
def client(db, fetchers):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_fetchers] = lambda: fetchers
    app.state.rate_limiter.reset()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_source(db):
    def _make(kind: str = "youtube", url: Optional[str] = None, name: str = "test source", created_at=None) -> Source:
        source = Source(kind=kind, url=url, name=name)
        if created_at is not None:
            source.created_at = created_at
        db.add(source)
        db.commit()
        return source

    return _make
