from __future__ import annotations
import pytest

from subguessr.services import leaderboard as lb
from subguessr.services.leaderboard import get_score, increment_score, top_scores
from subguessr.store import LEADERBOARD_KEY, player_score_key


@pytest.mark.asyncio
async def test_absent_score_is_zero(r):
    assert await get_score(r, "nobody") == 0


@pytest.mark.asyncio
async def test_increment_is_monotonic(r):
    for expected in range(1, 6):
        assert await increment_score(r, "p1", "alice") == expected
    assert await get_score(r, "p1") == 5
    assert await r.zscore(LEADERBOARD_KEY, "alice:p1") == 5


@pytest.mark.asyncio
async def test_top_scores_ordering_and_limit(r):
    for player, name, points in [("p1", "alice", 3), ("p2", "bob", 5), ("p3", "carol", 1), ("p4", "dan", 4)]:
        for _ in range(points):
            await increment_score(r, player, name)

    rows = await top_scores(r, 3)
    assert [(x.rank, x.username, x.score) for x in rows] == [(1, "bob", 5), (2, "dan", 4), (3, "alice", 3)]
    assert len(await top_scores(r, 10)) == 4
    assert await top_scores(r, 0) == []


@pytest.mark.asyncio
async def test_empty_leaderboard(r):
    assert await top_scores(r, 10) == []


@pytest.mark.asyncio
async def test_ties_go_to_whoever_reached_the_score_first(r, monkeypatch):
    clock = iter(range(1000, 2000))
    monkeypatch.setattr(lb, "_now_s", lambda: next(clock))

    await increment_score(r, "p1", "amy")
    await increment_score(r, "p2", "zed")
    await increment_score(r, "p3", "mid")
    await increment_score(r, "p3", "mid")

    rows = await top_scores(r, 2)
    # amy reached 1 before zed, so the tie at the cutoff keeps amy
    assert [(x.username, x.score) for x in rows] == [("mid", 2), ("amy", 1)]
    rows = await top_scores(r, 3)
    assert [x.username for x in rows] == ["mid", "amy", "zed"]
    assert [x.rank for x in rows] == [1, 2, 3]


@pytest.mark.asyncio
async def test_display_name_change_moves_the_entry(r):
    await increment_score(r, "p1", "old")
    await increment_score(r, "p1", "new")
    rows = await top_scores(r, 10)
    assert [(x.username, x.score) for x in rows] == [("new", 2)]
    assert await r.zscore(LEADERBOARD_KEY, "old:p1") is None


@pytest.mark.asyncio
async def test_stale_write_does_not_lower_ranked_score(r):
    await r.zadd(LEADERBOARD_KEY, {"alice:p1": 7})
    await r.set(player_score_key("p1"), 2)
    assert await increment_score(r, "p1", "alice") == 3
    assert await r.zscore(LEADERBOARD_KEY, "alice:p1") == 7


@pytest.mark.asyncio
async def test_colon_in_display_name(r):
    await increment_score(r, "p1", "a:b")
    rows = await top_scores(r, 1)
    assert rows[0].username == "a_b"


@pytest.mark.asyncio
async def test_malformed_score(r):
    await r.set(player_score_key("p1"), "NaN-ish")
    assert await get_score(r, "p1") == 0
    assert await increment_score(r, "p1", "alice") == 1


@pytest.mark.asyncio
async def test_stale_write_keeps_time_the_higher_score_was_reached(r, monkeypatch):
    times = iter([100, 150, 200])
    monkeypatch.setattr(lb, "_now_s", lambda: next(times))

    await r.set(player_score_key("p1"), 5)
    await increment_score(r, "p1", "alice")  # 6 at t=100
    await r.set(player_score_key("p2"), 5)
    await increment_score(r, "p2", "bob")  # 6 at t=150

    # a late increment for alice that lost the race lands after bob's
    await r.set(player_score_key("p1"), 4)
    await increment_score(r, "p1", "alice")  # 5 at t=200, must not count

    rows = await top_scores(r, 2)
    assert [(x.username, x.score) for x in rows] == [("alice", 6), ("bob", 6)]


@pytest.mark.asyncio
async def test_top_scores_reads_only_the_requested_rows(r):
    await increment_score(r, "leader", "lead")
    await increment_score(r, "leader", "lead")
    for i in range(200):
        await increment_score(r, f"p{i}", f"player{i}")

    fetched: list[int] = []
    real_zrevrange, real_zmscore = r.zrevrange, r.zmscore

    async def counting_zrevrange(*args, **kwargs):
        out = await real_zrevrange(*args, **kwargs)
        fetched.append(len(out))
        return out

    async def counting_zmscore(key, members):
        fetched.append(len(members))
        return await real_zmscore(key, members)

    r.zrevrange = counting_zrevrange
    r.zmscore = counting_zmscore

    rows = await top_scores(r, 2)
    assert [x.score for x in rows] == [2, 1]
    assert fetched and max(fetched) <= 2
