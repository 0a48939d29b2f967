from __future__ import annotations
from typing import Sequence
from fastapi import APIRouter, Depends, HTTPException, Query
from redis.asyncio import Redis

from subguessr.auth_deps import Player, get_current_player, get_player
from subguessr.config import settings
from subguessr.schemas.game import (
    Challenge,
    GuessOutcome,
    GuessRequest,
    ImageStats,
    LeaderboardRow,
    NewGameRequest,
    NewGameResponse,
    PostCreated,
    SessionView,
    ShareRequest,
)
from subguessr.services import game
from subguessr.services.categories import configured_categories
from subguessr.services.feed import ContentFeed, get_feed
from subguessr.services.generator import GenerationExhausted
from subguessr.services.guesses import DuplicateGuess
from subguessr.services.posts import LocalPostPlatform, PostPlatform
from subguessr.store import get_redis

router = APIRouter(prefix="/api", tags=["game"])


def get_post_platform(r: Redis = Depends(get_redis)) -> PostPlatform:
    return LocalPostPlatform(r)


@router.get("/init", response_model=SessionView)
async def init_session(
    post_id: str = Query(..., min_length=1),
    r: Redis = Depends(get_redis),
    player: Player = Depends(get_player),
):
    return await game.start_or_resume_session(r, post_id, player.id, player.name)


@router.post("/new-game", response_model=NewGameResponse)
async def new_game(
    payload: NewGameRequest,
    r: Redis = Depends(get_redis),
    feed: ContentFeed = Depends(get_feed),
    categories: Sequence[str] = Depends(configured_categories),
    player: Player = Depends(get_player),
):
    try:
        challenge, stats = await game.new_round(r, feed, categories, payload.post_id, player.id)
    except GenerationExhausted:
        raise HTTPException(status_code=503, detail="Failed to generate new challenge")
    return NewGameResponse(challenge=challenge, stats=stats)


@router.post("/guess", response_model=GuessOutcome)
async def guess(
    payload: GuessRequest,
    r: Redis = Depends(get_redis),
    player: Player = Depends(get_current_player),
):
    challenge = Challenge(image_url=payload.image_url, answer=payload.answer)
    if payload.post_id and not await game.is_on_post(r, payload.post_id, challenge):
        raise HTTPException(status_code=400, detail="Challenge does not belong to this post")
    try:
        return await game.submit_guess(r, player.id, player.name, challenge, payload.guess)
    except DuplicateGuess:
        raise HTTPException(status_code=409, detail="You have already guessed on this image!")


@router.get("/stats", response_model=ImageStats)
async def image_stats(
    image_url: str = Query(..., min_length=1),
    answer: str = Query(..., min_length=1),
    r: Redis = Depends(get_redis),
):
    return await game.stats_for(r, Challenge(image_url=image_url, answer=answer))


@router.get("/leaderboard", response_model=list[LeaderboardRow])
async def get_leaderboard(
    limit: int = Query(default=settings.leaderboard_default_size, ge=1, le=settings.leaderboard_max_size),
    r: Redis = Depends(get_redis),
):
    return await game.leaderboard(r, limit)


@router.post("/posts", response_model=PostCreated, status_code=201)
async def create_post(
    r: Redis = Depends(get_redis),
    feed: ContentFeed = Depends(get_feed),
    categories: Sequence[str] = Depends(configured_categories),
    platform: PostPlatform = Depends(get_post_platform),
):
    try:
        post_id, challenge = await game.create_post(r, feed, categories, platform)
    except GenerationExhausted:
        raise HTTPException(status_code=503, detail="Failed to generate new challenge")
    return PostCreated(post_id=post_id, challenge=challenge)


@router.post("/share", response_model=PostCreated, status_code=201)
async def share(
    payload: ShareRequest,
    r: Redis = Depends(get_redis),
    platform: PostPlatform = Depends(get_post_platform),
):
    challenge = Challenge(image_url=payload.image_url, answer=payload.answer)
    post_id = await game.share_challenge(r, platform, challenge)
    return PostCreated(post_id=post_id, challenge=challenge)
