"""Shared broadcast utility for sending per-recipient messages to a room."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from fish.session.models import Player


async def broadcast_to_players(
    players: Iterable[Player],
    build_message: Callable[[Player], dict[str, Any]],
    exclude_player_id: str | None = None,
) -> None:
    """Send each connected player their own message, skipping one if excluded.

    Snapshot the players via list() so a concurrent leave cannot mutate the
    roster while we yield on send_message. A failed send never stops the
    broadcast; transport loss is handled by the disconnect path.
    """
    for player in list(players):
        if player.player_id == exclude_player_id or not player.is_connected:
            continue
        with contextlib.suppress(RuntimeError, OSError, ConnectionError):
            await player.connection.send_message(build_message(player))
