from __future__ import annotations
import time
import structlog
from redis.asyncio import Redis
from redis.exceptions import ResponseError

from subguessr.schemas.game import LeaderboardRow
from subguessr.store import (
    LEADERBOARD_KEY,
    LEADERBOARD_MEMBERS_KEY,
    LEADERBOARD_RANKED_KEY,
    player_score_key,
)

log = structlog.get_logger()

# reached-at seconds live below this factor in the ranked score
_TIE_SPAN = 2**32


def _now_s() -> int:
    return int(time.time())


def ranked_value(score: int, reached_at: int) -> int:
    """
    Order key for the ranked set: higher score first, then earlier reached-at.
    Exact in a double for scores below 2**21.
    """
    return score * _TIE_SPAN - reached_at


def leaderboard_member(player_id: str, display_name: str) -> str:
    return f"{display_name.replace(':', '_')}:{player_id}"


def display_name_of(member: str) -> str:
    return member.split(":", 1)[0]


async def get_score(r: Redis, player_id: str) -> int:
    key = player_score_key(player_id)
    raw = await r.get(key)
    if raw is None:
        return 0
    try:
        return int(raw)
    except ValueError:
        log.warning("malformed_record", key=key, reason="non-integer score", raw=raw)
        return 0


async def _incr(r: Redis, player_id: str) -> int:
    key = player_score_key(player_id)
    try:
        return int(await r.incr(key))
    except ResponseError as e:
        log.warning("malformed_record", key=key, reason=str(e))
        await r.set(key, 0)
        return int(await r.incr(key))


async def increment_score(r: Redis, player_id: str, display_name: str) -> int:
    """
    Add one point for the player and mirror it into the ranked sets.
    INCR gives every concurrent caller a distinct score. Both sets are written
    with ZADD GT, so a late stale write changes neither the score nor the time
    the higher score was reached.
    """
    new_score = await _incr(r, player_id)
    member = leaderboard_member(player_id, display_name)
    previous = await r.hget(LEADERBOARD_MEMBERS_KEY, player_id)

    async with r.pipeline(transaction=True) as pipe:
        if previous and previous != member:
            # display name changed: move the entry instead of duplicating it
            pipe.zrem(LEADERBOARD_KEY, previous)
            pipe.zrem(LEADERBOARD_RANKED_KEY, previous)
        pipe.hset(LEADERBOARD_MEMBERS_KEY, player_id, member)
        pipe.zadd(LEADERBOARD_KEY, {member: new_score}, gt=True)
        pipe.zadd(LEADERBOARD_RANKED_KEY, {member: ranked_value(new_score, _now_s())}, gt=True)
        await pipe.execute()
    return new_score


async def top_scores(r: Redis, limit: int = 10) -> list[LeaderboardRow]:
    """
    Highest scores first, at most `limit` rows, rank = 1-based position.
    Equal scores are ordered by who reached the score first; players tied to
    the second fall back to reverse member order.
    """
    if limit <= 0:
        return []
    members = await r.zrevrange(LEADERBOARD_RANKED_KEY, 0, limit - 1)
    if not members:
        return []
    scores = await r.zmscore(LEADERBOARD_KEY, members)
    return [
        LeaderboardRow(rank=i, username=display_name_of(m), score=int(s or 0))
        for i, (m, s) in enumerate(zip(members, scores), start=1)
    ]
