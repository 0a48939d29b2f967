from __future__ import annotations
import fakeredis
import pytest

from subguessr.main import app
from subguessr.services.categories import configured_categories
from subguessr.services.feed import Candidate, FeedUnavailable, get_feed
from subguessr.store import get_redis


class ScriptedFeed:
    """Content feed double: serves fixed pages per category, or raises FeedUnavailable."""

    def __init__(self, pages: dict[str, list[Candidate] | Exception] | None = None):
        self.pages = pages or {}
        self.calls: list[tuple[str, int]] = []

    async def list_candidates(self, category: str, limit: int) -> list[Candidate]:
        self.calls.append((category, limit))
        page = self.pages.get(category, [])
        if isinstance(page, Exception):
            raise page
        return list(page)[:limit]


def image(url: str, thumb: str | None = None) -> Candidate:
    return Candidate(reference=url, thumbnail_ref=thumb)


@pytest.fixture
def r():
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def feed():
    return ScriptedFeed({
        "cats": [image("https://i.redd.it/cat1.jpg"), image("https://example.com/article", "self")],
    })


@pytest.fixture
def broken_feed():
    return ScriptedFeed({"cats": FeedUnavailable("boom")})


@pytest.fixture
def api(r, feed):
    """Wire the app to fakeredis, the scripted feed and a single category."""
    app.dependency_overrides[get_redis] = lambda: r
    app.dependency_overrides[get_feed] = lambda: feed
    app.dependency_overrides[configured_categories] = lambda: ("cats",)
    yield app
    app.dependency_overrides.clear()
