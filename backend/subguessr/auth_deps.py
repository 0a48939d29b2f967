from __future__ import annotations
from dataclasses import dataclass
from fastapi import Depends, Header, HTTPException

ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class Player:
    id: str | None
    name: str


async def get_player(
    x_player_id: str | None = Header(default=None, alias="X-Player-Id"),
    x_player_name: str | None = Header(default=None, alias="X-Player-Name"),
) -> Player:
    """Identity comes from the fronting platform as opaque header values."""
    player_id = (x_player_id or "").strip() or None
    name = (x_player_name or "").strip() or ANONYMOUS
    return Player(id=player_id, name=name)


async def get_current_player(player: Player = Depends(get_player)) -> Player:
    if player.id is None:
        raise HTTPException(status_code=401, detail="Player identity is required")
    return player
