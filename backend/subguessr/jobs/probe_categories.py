from __future__ import annotations
import asyncio
import json
import time
from typing import Sequence
import structlog
from redis.asyncio import Redis

from subguessr.config import settings
from subguessr.services.categories import configured_categories
from subguessr.services.feed import ContentFeed, FeedUnavailable, RedditFeed
from subguessr.services.generator import is_image_candidate
from subguessr.store import CATEGORY_HEALTH_KEY

log = structlog.get_logger()

UNREACHABLE = -1


async def probe(r: Redis, feed: ContentFeed, categories: Sequence[str]) -> dict[str, int]:
    """
    Fetch one page per category and count candidates that pass the image
    filter (-1 when the feed could not be read). Results replace the previous
    probe in the `category_health` hash.
    """
    results: dict[str, int] = {}
    for category in categories:
        try:
            candidates = await feed.list_candidates(category, settings.feed_page_size)
        except FeedUnavailable as e:
            log.warning("category_probe_failed", category=category, error=str(e))
            results[category] = UNREACHABLE
            continue
        results[category] = sum(1 for c in candidates if is_image_candidate(c))

    async with r.pipeline(transaction=True) as pipe:
        pipe.delete(CATEGORY_HEALTH_KEY)
        pipe.hset(CATEGORY_HEALTH_KEY, mapping={
            "checked_at": str(int(time.time() * 1000)),
            "results": json.dumps(results),
        })
        await pipe.execute()

    dead = [c for c, n in results.items() if n <= 0]
    log.info("category_probe_done", categories=len(results), without_images=dead)
    return results


async def _run():
    r = Redis.from_url(settings.redis_url, decode_responses=True)
    feed = RedditFeed()
    try:
        await probe(r, feed, configured_categories())
    finally:
        await feed.aclose()
        await r.aclose()

def probe_categories():
    # RQ entry point (sync); run the async coroutine
    asyncio.run(_run())
