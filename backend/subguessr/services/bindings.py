from __future__ import annotations
import structlog
from redis.asyncio import Redis

from subguessr.config import settings
from subguessr.schemas.game import Challenge
from subguessr.store import current_challenge_key, days, decode_record_or_none, original_challenge_key

log = structlog.get_logger()


def _snapshot(challenge: Challenge) -> str:
    return challenge.model_dump_json()


async def bind_original(r: Redis, post_id: str, challenge: Challenge) -> None:
    """Store the post's canonical challenge and start `current` from it. Call once, right after the post exists."""
    ttl = days(settings.challenge_ttl_days)
    payload = _snapshot(challenge)
    async with r.pipeline(transaction=True) as pipe:
        pipe.set(original_challenge_key(post_id), payload, ex=ttl)
        pipe.set(current_challenge_key(post_id), payload, ex=ttl)
        await pipe.execute()
    log.info("post_bound", post_id=post_id, image_id=challenge.image_id)


async def set_current(r: Redis, post_id: str, challenge: Challenge) -> None:
    await r.set(current_challenge_key(post_id), _snapshot(challenge), ex=days(settings.challenge_ttl_days))


async def get_original(r: Redis, post_id: str) -> Challenge | None:
    key = original_challenge_key(post_id)
    return decode_record_or_none(key, await r.get(key), Challenge)


async def get_current(r: Redis, post_id: str) -> Challenge | None:
    key = current_challenge_key(post_id)
    return decode_record_or_none(key, await r.get(key), Challenge)


async def reset_current_to_original(r: Redis, post_id: str) -> Challenge | None:
    """
    Overwrite `current` with `original` (fresh start on entering the post).
    Posts bound before `original` existed fall back to their `current` value,
    which is rewritten to renew its retention window. Returns the challenge now
    current, or None for an unknown post.
    """
    challenge = await get_original(r, post_id)
    if challenge is None:
        challenge = await get_current(r, post_id)
    if challenge is None:
        return None
    await set_current(r, post_id, challenge)
    return challenge
