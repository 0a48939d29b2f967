from __future__ import annotations
import json
from datetime import timedelta
from typing import AsyncGenerator, TypeVar
import structlog
from pydantic import BaseModel, ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError
from subguessr.config import settings

log = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)

redis_client: Redis = Redis.from_url(settings.redis_url, decode_responses=True)

async def get_redis() -> AsyncGenerator[Redis, None]:
    yield redis_client


class StoreUnavailable(Exception):
    pass


class MalformedPersistedRecord(Exception):
    def __init__(self, key: str, reason: str):
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason


# ---------- key layout ----------

def original_challenge_key(post_id: str) -> str:
    return f"post_original_challenge:{post_id}"

def current_challenge_key(post_id: str) -> str:
    return f"post_challenge:{post_id}"

def post_meta_key(post_id: str) -> str:
    return f"post_meta:{post_id}"

def guess_key(player_id: str, image_id: str) -> str:
    return f"user_guess:{player_id}:{image_id}"

def image_stats_key(image_id: str) -> str:
    return f"image_stats:{image_id}"

def player_score_key(player_id: str) -> str:
    return f"user_score:{player_id}"

LEADERBOARD_KEY = "leaderboard"
LEADERBOARD_RANKED_KEY = "leaderboard:ranked"
LEADERBOARD_MEMBERS_KEY = "leaderboard:members"
CATEGORY_HEALTH_KEY = "category_health"


def days(n: int) -> timedelta:
    return timedelta(days=n)


def decode_record(key: str, raw: str | None, model: type[M]) -> M | None:
    """
    Parse a JSON record read from the store.
    Returns None when the key is absent. Raises MalformedPersistedRecord when the
    payload is not valid JSON or does not fit the model.
    """
    if raw is None:
        return None
    try:
        return model.model_validate_json(raw)
    except (ValidationError, json.JSONDecodeError) as e:
        raise MalformedPersistedRecord(key, str(e)) from e


def decode_record_or_none(key: str, raw: str | None, model: type[M]) -> M | None:
    """Same as decode_record, but a malformed payload is logged and treated as absent."""
    try:
        return decode_record(key, raw, model)
    except MalformedPersistedRecord as e:
        log.warning("malformed_record", key=e.key, reason=e.reason)
        return None


async def ping(r: Redis) -> None:
    try:
        await r.ping()
    except (RedisError, OSError) as e:
        raise StoreUnavailable("ping failed") from e
