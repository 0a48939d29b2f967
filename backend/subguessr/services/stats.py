from __future__ import annotations
import structlog
from redis.asyncio import Redis
from redis.exceptions import ResponseError

from subguessr.config import settings
from subguessr.schemas.game import ImageStats
from subguessr.store import days, image_stats_key

log = structlog.get_logger()

_TOTAL = "total_guesses"
_CORRECT = "correct_guesses"
_INCORRECT = "incorrect_guesses"


def _stats_from_hash(key: str, raw: dict[str, str]) -> ImageStats:
    if not raw:
        return ImageStats()
    try:
        correct = int(raw.get(_CORRECT, 0))
        incorrect = int(raw.get(_INCORRECT, 0))
    except (TypeError, ValueError):
        log.warning("malformed_record", key=key, reason="non-integer counters", raw=raw)
        return ImageStats()
    # total is derived so the snapshot always satisfies total = correct + incorrect
    return ImageStats(total_guesses=correct + incorrect, correct_guesses=correct, incorrect_guesses=incorrect)


async def get_stats(r: Redis, image_id: str) -> ImageStats:
    key = image_stats_key(image_id)
    return _stats_from_hash(key, await r.hgetall(key))


async def _bump(r: Redis, key: str, is_correct: bool) -> dict[str, str]:
    async with r.pipeline(transaction=True) as pipe:
        pipe.hincrby(key, _TOTAL, 1)
        pipe.hincrby(key, _CORRECT if is_correct else _INCORRECT, 1)
        pipe.expire(key, days(settings.stats_ttl_days))
        pipe.hgetall(key)
        *_, raw = await pipe.execute()
    return raw


async def record_outcome(r: Redis, image_id: str, is_correct: bool) -> ImageStats:
    """
    Count one completed guess. Counters are bumped with HINCRBY inside a
    MULTI/EXEC block, which also refreshes the retention window and reads back
    the snapshot. Call only after record_guess succeeded.

    A stats key holding something HINCRBY cannot work with is dropped and
    counting starts over from zero.
    """
    key = image_stats_key(image_id)
    try:
        raw = await _bump(r, key, is_correct)
    except ResponseError as e:
        log.warning("malformed_record", key=key, reason=str(e))
        await r.delete(key)
        raw = await _bump(r, key, is_correct)
    return _stats_from_hash(key, raw)
