"""
Disconnect handling for players in a running game.

The monitor owns the reconnection deadlines and applies the room-level
transitions for a disconnect, a reconnect and a departure. It performs no
I/O and takes no locks: the SessionManager calls it under the room lock and
broadcasts the outcome.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, NamedTuple

import structlog

from fish.logic.redistribution import hold_for_reconnection, remove_player, resume_after_reconnection
from fish.logic.state import DisconnectedPlayer
from fish.session.reconnect_timers import DeadlineCallback, ReconnectTimers

if TYPE_CHECKING:
    from collections.abc import Callable

    from fish.logic.enums import Team
    from fish.messaging.protocol import ConnectionProtocol
    from fish.session.models import Player, Room

logger = structlog.get_logger()

DEFAULT_GRACE_SECONDS = 60


class DepartureOutcome(NamedTuple):
    player: Player
    cards_moved: int
    attrition_winner: Team | None = None


def _markers(room: Room, exclude: str) -> list[DisconnectedPlayer]:
    return [
        DisconnectedPlayer(player_id=p.player_id, name=p.name, disconnected_at=p.disconnected_at or 0.0)
        for p in room.disconnected_players
        if p.player_id != exclude
    ]


class DisconnectMonitor:
    def __init__(
        self,
        on_expire: DeadlineCallback,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._timers = ReconnectTimers(on_expire)
        self._grace_seconds = grace_seconds
        self._clock = clock

    @property
    def grace_seconds(self) -> float:
        return self._grace_seconds

    @property
    def timers(self) -> ReconnectTimers:
        return self._timers

    @staticmethod
    def can_hold(player: Player) -> bool:
        """Only players with a persistent identity can come back."""
        return bool(player.user_id)

    def hold(self, room: Room, player: Player) -> int:
        """
        Hold the player's seat open for the grace period.

        Marks the player disconnected, hands the host role on, pauses the game
        with the disconnect marker and starts the deadline. Returns the
        disconnect episode the deadline was started for.
        """
        now = self._clock()
        player.connection = None
        player.disconnected = True
        player.disconnected_at = now
        player.disconnect_episode += 1

        if room.is_host(player.player_id):
            room.elect_host(exclude=player.player_id)

        if room.game is not None:
            room.game = hold_for_reconnection(room.game, player.player_id, player.name, now)

        self._timers.start(room.code, player.player_id, player.disconnect_episode, self._grace_seconds)
        logger.info(
            "player disconnected, seat held",
            player_id=player.player_id,
            grace_seconds=self._grace_seconds,
        )
        return player.disconnect_episode

    def restore(self, room: Room, player: Player, connection: ConnectionProtocol) -> None:
        """Rebind a returning player to their new connection and resume when nobody else is away."""
        self._timers.cancel(room.code, player.player_id)
        player.connection = connection
        player.disconnected = False
        player.disconnected_at = None
        if room.game is not None:
            room.game = resume_after_reconnection(room.game, player.player_id, _markers(room, player.player_id))
        logger.info("player reconnected", player_id=player.player_id)

    def is_current_episode(self, room: Room, player_id: str, episode: int) -> bool:
        """True when a fired deadline still applies: same player, still away, same episode."""
        player = room.get_player(player_id)
        return player is not None and player.disconnected and player.disconnect_episode == episode

    def depart(self, room: Room, player: Player) -> DepartureOutcome:
        """
        Remove a player from a running game.

        Their hand goes round-robin to the remaining connected players, they
        leave the roster and both teams, and the host role moves on if needed.
        """
        self._timers.cancel(room.code, player.player_id)
        if room.game is None:
            room.remove_player(player.player_id)
            return DepartureOutcome(player, 0)

        active_ids = {p.player_id for p in room.connected_players if p.player_id != player.player_id}
        result = remove_player(room.game, player.player_id, active_ids, _markers(room, player.player_id))
        room.game = result.state
        room.remove_player(player.player_id)
        logger.info(
            "player removed from game",
            player_id=player.player_id,
            cards_moved=result.cards_moved,
            attrition_winner=result.attrition_winner,
        )
        return DepartureOutcome(player, result.cards_moved, result.attrition_winner)

    def forget_room(self, room_code: str) -> None:
        self._timers.cancel_room(room_code)

    def shutdown(self) -> None:
        self._timers.cancel_all()
