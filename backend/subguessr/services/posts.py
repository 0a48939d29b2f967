from __future__ import annotations
import json
import secrets
from typing import Any, Protocol
from redis.asyncio import Redis

from subguessr.config import settings
from subguessr.services.identity import to_base36
from subguessr.store import days, post_meta_key

POST_TITLE = "SubGuessr Challenge - Can you guess this sub?"


class PostPlatform(Protocol):
    async def create_sharable_post(self, title: str, image_url: str, metadata: dict[str, Any]) -> str: ...


class LocalPostPlatform:
    """Posts hosted by this service: a random base-36 id plus a metadata record."""

    def __init__(self, r: Redis):
        self._r = r

    async def create_sharable_post(self, title: str, image_url: str, metadata: dict[str, Any]) -> str:
        for _ in range(5):
            post_id = to_base36(secrets.randbits(40))
            created = await self._r.set(
                post_meta_key(post_id),
                json.dumps({"title": title, "image_url": image_url, "metadata": metadata}),
                nx=True,
                ex=days(settings.challenge_ttl_days),
            )
            if created:
                return post_id
        raise RuntimeError("could not allocate a post id")