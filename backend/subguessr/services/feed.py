from __future__ import annotations
from dataclasses import dataclass
from typing import Protocol
import httpx

from subguessr.config import settings


class FeedUnavailable(Exception):
    pass


@dataclass(frozen=True)
class Candidate:
    reference: str
    thumbnail_ref: str | None = None


class ContentFeed(Protocol):
    async def list_candidates(self, category: str, limit: int) -> list[Candidate]: ...


class RedditFeed:
    """Hot listing of a subreddit via the public JSON endpoints."""

    def __init__(self, client: httpx.AsyncClient | None = None, base_url: str | None = None):
        self._client = client or httpx.AsyncClient(
            timeout=settings.feed_timeout_seconds,
            headers={"User-Agent": settings.feed_user_agent},
            follow_redirects=True,
        )
        self._base_url = (base_url or settings.feed_base_url).rstrip("/")

    async def list_candidates(self, category: str, limit: int) -> list[Candidate]:
        url = f"{self._base_url}/r/{category}/hot.json"
        try:
            resp = await self._client.get(url, params={"limit": limit, "raw_json": 1})
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise FeedUnavailable(f"listing r/{category} failed: {e}") from e

        try:
            children = payload["data"]["children"]
        except (KeyError, TypeError) as e:
            raise FeedUnavailable(f"unexpected listing shape for r/{category}") from e
        if not isinstance(children, list):
            raise FeedUnavailable(f"unexpected listing shape for r/{category}")

        out: list[Candidate] = []
        for child in children[:limit]:
            data = child.get("data") if isinstance(child, dict) else None
            if not isinstance(data, dict):
                raise FeedUnavailable(f"unexpected listing item for r/{category}")
            url, thumb = data.get("url"), data.get("thumbnail")
            out.append(Candidate(
                reference=url if isinstance(url, str) else "",
                thumbnail_ref=thumb if isinstance(thumb, str) else None,
            ))
        return out

    async def aclose(self) -> None:
        await self._client.aclose()


_feed: RedditFeed | None = None

def get_feed() -> ContentFeed:
    global _feed
    if _feed is None:
        _feed = RedditFeed()
    return _feed

async def close_feed() -> None:
    global _feed
    if _feed is not None:
        await _feed.aclose()
        _feed = None
