from __future__ import annotations
import asyncio
import pytest

from subguessr.schemas.game import Challenge
from subguessr.services.game import submit_guess
from subguessr.services.leaderboard import get_score
from subguessr.services.stats import get_stats
from subguessr.services.guesses import (
    DuplicateGuess,
    get_guess_record,
    has_guessed,
    is_correct_guess,
    normalize_guess,
    record_guess,
)
from subguessr.store import guess_key


@pytest.mark.parametrize("raw", ["R/Cats", " cats ", "cats", "r/cats", "/r/CATS", "  r/cats  "])
def test_normalize_guess(raw):
    assert normalize_guess(raw) == "cats"


def test_normalize_keeps_inner_r():
    assert normalize_guess("rarepuppers") == "rarepuppers"
    assert normalize_guess("r/r/foo") == "r/foo"


def test_correctness_is_case_insensitive():
    assert is_correct_guess("r/Cats", "cats")
    assert is_correct_guess("CATS", "Cats")
    assert not is_correct_guess("dogs", "cats")


@pytest.mark.asyncio
async def test_record_then_lookup(r):
    assert not await has_guessed(r, "p1", "abc")
    rec = await record_guess(r, "p1", "abc", "cats", True, image_url="img1", answer="cats")
    assert await has_guessed(r, "p1", "abc")
    stored = await get_guess_record(r, "p1", "abc")
    assert stored == rec
    assert stored.is_correct is True and stored.image_id == "abc"
    # other players and other images are independent
    assert not await has_guessed(r, "p2", "abc")
    assert not await has_guessed(r, "p1", "xyz")


@pytest.mark.asyncio
async def test_write_once(r):
    first = await record_guess(r, "p1", "abc", "dogs", False)
    for attempt in ("cats", "dogs"):
        with pytest.raises(DuplicateGuess):
            await record_guess(r, "p1", "abc", attempt, True)
    stored = await get_guess_record(r, "p1", "abc")
    assert stored.guess == "dogs" and stored.is_correct is False
    assert stored.timestamp == first.timestamp


@pytest.mark.asyncio
async def test_record_expires_after_a_week(r):
    await record_guess(r, "p1", "abc", "cats", True)
    ttl = await r.ttl(guess_key("p1", "abc"))
    assert 7 * 86400 - 5 <= ttl <= 7 * 86400


@pytest.mark.asyncio
async def test_malformed_record_reads_as_absent(r):
    await r.set(guess_key("p1", "abc"), "{not json")
    assert await get_guess_record(r, "p1", "abc") is None
    # the key still blocks a second scored guess
    assert await has_guessed(r, "p1", "abc")
    with pytest.raises(DuplicateGuess):
        await record_guess(r, "p1", "abc", "cats", True)


@pytest.mark.asyncio
async def test_concurrent_duplicate_guesses_score_once(r):
    ch = Challenge(image_url="img1", answer="cats")
    results = await asyncio.gather(
        *(submit_guess(r, "p1", "alice", ch, "cats") for _ in range(5)),
        return_exceptions=True,
    )
    wins = [x for x in results if not isinstance(x, Exception)]
    dupes = [x for x in results if isinstance(x, DuplicateGuess)]
    assert len(wins) == 1 and len(dupes) == 4
    assert wins[0].new_score == 1
    assert await get_score(r, "p1") == 1
    stats = await get_stats(r, ch.image_id)
    assert stats.total_guesses == 1 and stats.correct_guesses == 1
