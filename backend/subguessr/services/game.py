from __future__ import annotations
from typing import Sequence
import structlog
from redis.asyncio import Redis

from subguessr.config import settings
from subguessr.schemas.game import Challenge, GuessOutcome, ImageStats, LeaderboardRow, SessionView
from subguessr.services.bindings import (
    bind_original,
    get_current,
    get_original,
    reset_current_to_original,
    set_current,
)
from subguessr.services.feed import ContentFeed
from subguessr.services.generator import generate_challenge, generate_fresh_challenge
from subguessr.services.guesses import get_guess_record, has_guessed, is_correct_guess, normalize_guess, record_guess
from subguessr.services.leaderboard import get_score, increment_score, top_scores
from subguessr.services.posts import POST_TITLE, PostPlatform
from subguessr.services.stats import get_stats, record_outcome

log = structlog.get_logger()


async def start_or_resume_session(r: Redis, post_id: str, player_id: str | None, username: str) -> SessionView:
    """Entering a post always starts from its original challenge."""
    challenge = await reset_current_to_original(r, post_id)
    view = SessionView(
        post_id=post_id,
        username=username,
        user_score=await get_score(r, player_id) if player_id else 0,
        challenge=challenge,
    )
    if challenge is None:
        log.info("session_unbound_post", post_id=post_id)
        return view

    view.stats = await get_stats(r, challenge.image_id)
    if player_id and await has_guessed(r, player_id, challenge.image_id):
        view.has_guessed = True
        view.prior_guess = await get_guess_record(r, player_id, challenge.image_id)
    return view


async def new_round(
    r: Redis,
    feed: ContentFeed,
    categories: Sequence[str],
    post_id: str,
    player_id: str | None,
) -> tuple[Challenge, ImageStats]:
    """Replace the post's current challenge; the original is left alone."""
    challenge = await generate_fresh_challenge(r, feed, categories, player_id)
    await set_current(r, post_id, challenge)
    return challenge, await get_stats(r, challenge.image_id)


async def submit_guess(r: Redis, player_id: str, display_name: str, challenge: Challenge, guess: str) -> GuessOutcome:
    """
    Score a player's first guess on a challenge. Raises DuplicateGuess for any
    later guess; statistics and score are only touched after the guess record
    was created.
    """
    normalized = normalize_guess(guess)
    correct = is_correct_guess(guess, challenge.answer)

    await record_guess(
        r, player_id, challenge.image_id, normalized, correct,
        image_url=challenge.image_url, answer=challenge.answer,
    )
    stats = await record_outcome(r, challenge.image_id, correct)
    score = await increment_score(r, player_id, display_name) if correct else await get_score(r, player_id)

    log.info("guess_recorded", player_id=player_id, image_id=challenge.image_id, correct=correct, score=score)
    return GuessOutcome(
        is_correct=correct,
        normalized_guess=normalized,
        correct_answer=challenge.answer,
        new_score=score,
        stats=stats,
    )


async def is_on_post(r: Redis, post_id: str, challenge: Challenge) -> bool:
    """True when the challenge is the post's original or its current round."""
    bound = (await get_original(r, post_id), await get_current(r, post_id))
    return any(c is not None and c.image_id == challenge.image_id for c in bound)


async def stats_for(r: Redis, challenge: Challenge) -> ImageStats:
    return await get_stats(r, challenge.image_id)


async def leaderboard(r: Redis, limit: int | None = None) -> list[LeaderboardRow]:
    return await top_scores(r, limit or settings.leaderboard_default_size)


async def share_challenge(r: Redis, platform: PostPlatform, challenge: Challenge, *, shared: bool = True) -> str:
    post_id = await platform.create_sharable_post(
        POST_TITLE, challenge.image_url, {"image_id": challenge.image_id, "shared": shared},
    )
    await bind_original(r, post_id, challenge)
    return post_id


async def create_post(
    r: Redis,
    feed: ContentFeed,
    categories: Sequence[str],
    platform: PostPlatform,
) -> tuple[str, Challenge]:
    challenge = await generate_challenge(feed, categories)
    return await share_challenge(r, platform, challenge, shared=False), challenge
