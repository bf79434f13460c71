from __future__ import annotations

from typing import TYPE_CHECKING

from fish.logic.state import GameState
from fish.logic.teams import Teams
from fish.tests.conftest import cards
from fish.tests.mocks import MockConnection

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from fish.session.manager import SessionManager
    from fish.session.models import Room

PLAYER_NAMES = ["Alice", "Bob", "Carol", "Dave", "Erin", "Frank"]


def clear_outboxes(connections: list[MockConnection]) -> None:
    for conn in connections:
        conn._outbox.clear()


def player_id_of(manager: SessionManager, conn: MockConnection) -> str:
    return manager._bindings[conn.connection_id][1]


async def connect(manager: SessionManager, *, user_id: str | None = None, name: str = "") -> MockConnection:
    """Open a mock connection, optionally registering a persistent identity."""
    conn = MockConnection()
    manager.register_connection(conn)
    if user_id is not None:
        await manager.register_user(conn, user_id, name or user_id)
    return conn


async def create_room_with_players(
    manager: SessionManager,
    num_players: int = 4,
    *,
    registered: bool = False,
) -> tuple[str, list[MockConnection]]:
    """Create a room hosted by the first connection and join the others.

    With registered=True every player has user id "user-<index>" and can reconnect.
    """
    connections: list[MockConnection] = []
    code = ""
    for i, name in enumerate(PLAYER_NAMES[:num_players]):
        conn = await connect(manager, user_id=f"user-{i}" if registered else None, name=name)
        if i == 0:
            code = (await manager.create_room(conn, name)).code
        else:
            await manager.join_room(conn, code, name)
        connections.append(conn)

    clear_outboxes(connections)
    return code, connections


async def create_started_game(
    manager: SessionManager,
    num_players: int = 4,
    *,
    registered: bool = True,
) -> tuple[Room, list[MockConnection]]:
    """Create a room and drive it through team setup into a dealt game."""
    code, connections = await create_room_with_players(manager, num_players, registered=registered)
    await manager.start_game(connections[0], code)
    await manager.confirm_teams(connections[0], code)
    clear_outboxes(connections)
    return manager.get_room(code), connections


def seat_game(
    room: Room,
    hands: Mapping[int, Sequence[str]],
    *,
    team_a: Sequence[int] = (0, 2),
    team_b: Sequence[int] = (1, 3),
    current: int = 0,
    **overrides: object,
) -> GameState:
    """Replace the room's game with known hands, addressing players by join order."""
    ids = room.player_ids
    room.game = GameState(
        hands={ids[i]: cards(*hands.get(i, ())) for i in range(len(ids))},
        teams=Teams(A=tuple(ids[i] for i in team_a), B=tuple(ids[i] for i in team_b)),
        roster=tuple(ids),
        current_player=ids[current],
        **overrides,
    )
    return room.game
