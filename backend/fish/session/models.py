from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import uuid4

from fish.logic.enums import RoomPhase
from fish.logic.settings import GameSettings

if TYPE_CHECKING:
    from fish.logic.state import GameState
    from fish.logic.teams import TeamSetup
    from fish.messaging.protocol import ConnectionProtocol


def new_player_id() -> str:
    return uuid4().hex


@dataclass
class Player:
    """Represent a player seated in a room.

    player_id is generated once on join and keys every game structure.
    The connection changes on reconnect; only the binding moves.

    Lifecycle:
    - Created on CREATE_ROOM / JOIN_ROOM
    - On transport loss mid-game (with user_id): connection cleared, disconnected set
    - On reconnect: connection rebound, disconnected cleared
    - On leave / expiry: removed from the room roster
    """

    player_id: str
    name: str
    connection: ConnectionProtocol | None = None
    user_id: str | None = None  # persistent identity from REGISTER_USER, enables reconnection
    disconnected: bool = False
    disconnected_at: float | None = None  # time.time() timestamp, None if connected
    disconnect_episode: int = 0  # bumped on every disconnect, guards stale deadlines

    @property
    def connection_id(self) -> str | None:
        return self.connection.connection_id if self.connection is not None else None

    @property
    def is_connected(self) -> bool:
        return self.connection is not None and not self.disconnected


@dataclass
class Room:
    """A room groups players from lobby through team setup to a game and back.

    The phase is derived: a game that is present decides it, otherwise a team
    setup, otherwise the room is in the lobby.
    """

    code: str
    host_id: str | None = None
    players: list[Player] = field(default_factory=list)  # roster order
    settings: GameSettings = field(default_factory=GameSettings)
    team_setup: TeamSetup | None = None
    game: GameState | None = None

    @property
    def phase(self) -> RoomPhase:
        if self.game is not None:
            return RoomPhase.GAME_OVER if self.game.game_over else RoomPhase.IN_PROGRESS
        if self.team_setup is not None:
            return RoomPhase.TEAM_SETUP
        return RoomPhase.LOBBY

    @property
    def game_in_progress(self) -> bool:
        return self.phase is RoomPhase.IN_PROGRESS

    @property
    def player_ids(self) -> list[str]:
        return [p.player_id for p in self.players]

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_empty(self) -> bool:
        return not self.players

    @property
    def connected_players(self) -> list[Player]:
        return [p for p in self.players if p.is_connected]

    @property
    def disconnected_players(self) -> list[Player]:
        return [p for p in self.players if p.disconnected]

    def get_player(self, player_id: str) -> Player | None:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def find_by_user_id(self, user_id: str) -> Player | None:
        for player in self.players:
            if player.user_id == user_id:
                return player
        return None

    def is_host(self, player_id: str) -> bool:
        return self.host_id == player_id

    def remove_player(self, player_id: str) -> Player | None:
        player = self.get_player(player_id)
        if player is not None:
            self.players.remove(player)
            if self.host_id == player_id:
                self.elect_host()
        return player

    def elect_host(self, exclude: str | None = None) -> str | None:
        """Hand the host role to the first connected player, else the first remaining one."""
        candidates = [p for p in self.players if p.player_id != exclude]
        connected = [p for p in candidates if p.is_connected]
        chosen = (connected or candidates or [None])[0]
        self.host_id = chosen.player_id if chosen is not None else None
        return self.host_id
