"""Serialized room views sent with every state-carrying event."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from fish.logic.enums import RoomPhase  # noqa: TC001
from fish.logic.settings import GameSettings  # noqa: TC001
from fish.logic.state import GameState  # noqa: TC001
from fish.logic.teams import TeamSetup  # noqa: TC001

if TYPE_CHECKING:
    from fish.session.models import Room


class PlayerView(BaseModel):
    player_id: str
    name: str
    is_host: bool
    disconnected: bool
    registered: bool  # has a persistent identity and can reconnect


class RoomSnapshot(BaseModel):
    """Full room state. Carries no connection ids and no timer handles."""

    code: str
    phase: RoomPhase
    host_id: str | None
    players: list[PlayerView]
    settings: GameSettings
    team_setup: TeamSetup | None = None
    game: GameState | None = None


def build_room_snapshot(room: Room) -> RoomSnapshot:
    return RoomSnapshot(
        code=room.code,
        phase=room.phase,
        host_id=room.host_id,
        players=[
            PlayerView(
                player_id=p.player_id,
                name=p.name,
                is_host=room.is_host(p.player_id),
                disconnected=p.disconnected,
                registered=bool(p.user_id),
            )
            for p in room.players
        ],
        settings=room.settings,
        team_setup=room.team_setup,
        game=room.game,
    )
