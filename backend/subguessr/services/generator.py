from __future__ import annotations
import random
from typing import Sequence
import structlog
from redis.asyncio import Redis

from subguessr.config import settings
from subguessr.schemas.game import Challenge
from subguessr.services.feed import Candidate, ContentFeed, FeedUnavailable
from subguessr.services.guesses import has_guessed

log = structlog.get_logger()

IMAGE_HOSTS = ("i.redd.it", "imgur.com")
IMAGE_SUFFIXES = (".jpg", ".png", ".gif")
SENTINEL_REFS = frozenset({"self", "default"})


class GenerationExhausted(Exception):
    pass


def looks_like_image(ref: str | None) -> bool:
    if not ref or ref in SENTINEL_REFS:
        return False
    return any(h in ref for h in IMAGE_HOSTS) or any(s in ref for s in IMAGE_SUFFIXES)


def is_image_candidate(c: Candidate) -> bool:
    has_thumbnail = bool(c.thumbnail_ref) and c.thumbnail_ref not in SENTINEL_REFS
    return looks_like_image(c.reference) or has_thumbnail


def resolve_image_ref(c: Candidate) -> str | None:
    return c.reference or c.thumbnail_ref


async def generate_challenge(
    feed: ContentFeed,
    categories: Sequence[str],
    *,
    max_attempts: int | None = None,
    page_size: int | None = None,
    rng: random.Random | None = None,
) -> Challenge:
    """
    Pick a random category, fetch a page of candidates and keep one whose
    reference resolves to an image. Feed failures count as a spent attempt.
    Raises GenerationExhausted when no attempt produces a challenge.
    """
    rng = rng or random.Random()
    max_attempts = max_attempts or settings.generation_max_attempts
    page_size = page_size or settings.feed_page_size
    if not categories:
        raise GenerationExhausted("no categories configured")

    for attempt in range(1, max_attempts + 1):
        category = rng.choice(categories)
        try:
            candidates = await feed.list_candidates(category, page_size)
        except FeedUnavailable as e:
            log.warning("challenge_attempt_failed", attempt=attempt, category=category, error=str(e))
            continue

        images = [c for c in candidates if is_image_candidate(c)]
        if not images:
            log.info("challenge_attempt_empty", attempt=attempt, category=category, candidates=len(candidates))
            continue

        ref = resolve_image_ref(rng.choice(images))
        if looks_like_image(ref):
            return Challenge(image_url=ref, answer=category)
        log.info("challenge_attempt_rejected", attempt=attempt, category=category, ref=ref)

    log.error("challenge_generation_exhausted", attempts=max_attempts)
    raise GenerationExhausted(f"Could not generate challenge after {max_attempts} attempts")


async def generate_fresh_challenge(
    r: Redis,
    feed: ContentFeed,
    categories: Sequence[str],
    player_id: str | None,
    *,
    max_rounds: int | None = None,
    rng: random.Random | None = None,
) -> Challenge:
    """
    Generate a challenge the player has not guessed on yet, trying up to
    `max_rounds` times. The last generated challenge is returned even if the
    player already answered it. Anonymous players get the first one.
    """
    max_rounds = max_rounds or settings.fresh_challenge_attempts
    challenge = None
    for round_no in range(1, max_rounds + 1):
        challenge = await generate_challenge(feed, categories, rng=rng)
        if player_id is None:
            return challenge
        if not await has_guessed(r, player_id, challenge.image_id):
            return challenge
        log.info("challenge_already_guessed", player_id=player_id, image_id=challenge.image_id, round=round_no)

    log.warning("fresh_challenge_fallback", player_id=player_id, rounds=max_rounds)
    return challenge
