from __future__ import annotations
import re
import time
import structlog
from redis.asyncio import Redis

from subguessr.config import settings
from subguessr.schemas.game import GuessRecord
from subguessr.store import days, decode_record_or_none, guess_key

log = structlog.get_logger()

_PREFIX = re.compile(r"^/?r/")


class DuplicateGuess(Exception):
    pass


AlreadyGuessed = DuplicateGuess


def normalize_guess(guess: str) -> str:
    """Lower-case, trim and drop a leading "r/" (or "/r/") community marker."""
    cleaned = guess.strip().lower()
    return _PREFIX.sub("", cleaned).strip()


def is_correct_guess(guess: str, answer: str) -> bool:
    return normalize_guess(guess) == answer.strip().lower()


async def has_guessed(r: Redis, player_id: str, image_id: str) -> bool:
    return bool(await r.exists(guess_key(player_id, image_id)))


async def record_guess(
    r: Redis,
    player_id: str,
    image_id: str,
    guess: str,
    is_correct: bool,
    *,
    image_url: str | None = None,
    answer: str | None = None,
) -> GuessRecord:
    """
    Persist the player's one guess for this image. The write is a single
    SET NX, so concurrent duplicates cannot both succeed.
    Raises DuplicateGuess if a record already exists; the stored one is left as is.
    """
    record = GuessRecord(
        guess=guess,
        is_correct=is_correct,
        timestamp=int(time.time() * 1000),
        image_url=image_url,
        answer=answer,
        image_id=image_id,
    )
    created = await r.set(
        guess_key(player_id, image_id),
        record.model_dump_json(),
        nx=True,
        ex=days(settings.guess_ttl_days),
    )
    if not created:
        log.info("duplicate_guess", player_id=player_id, image_id=image_id)
        raise DuplicateGuess(f"player {player_id} already guessed on {image_id}")
    return record


async def get_guess_record(r: Redis, player_id: str, image_id: str) -> GuessRecord | None:
    key = guess_key(player_id, image_id)
    return decode_record_or_none(key, await r.get(key), GuessRecord)
