"""Reconnection deadline tasks keyed by (room_code, player_id)."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger()

# Callback type: (room_code, player_id, episode) -> Awaitable[None]
DeadlineCallback = Callable[[str, str, int], Awaitable[None]]


class ReconnectTimers:
    """Manage one cancellable deadline task per disconnected player.

    The table only schedules and cancels. It does NOT decide what expiry
    means: the owner's on_expire callback re-checks, under the room lock,
    that the player is still away in the same disconnect episode.
    """

    def __init__(self, on_expire: DeadlineCallback) -> None:
        self._tasks: dict[tuple[str, str], asyncio.Task[None]] = {}
        self._on_expire = on_expire

    def start(self, room_code: str, player_id: str, episode: int, delay: float) -> None:
        """Start (or restart) the deadline for a player."""
        key = (room_code, player_id)
        self.cancel(room_code, player_id)
        self._tasks[key] = asyncio.create_task(self._run(key, episode, delay))

    def cancel(self, room_code: str, player_id: str) -> bool:
        """Cancel a pending deadline. Returns True if one was pending."""
        task = self._tasks.pop((room_code, player_id), None)
        if task is None:
            return False
        if not task.done() and task is not asyncio.current_task():
            task.cancel()
        return True

    def cancel_room(self, room_code: str) -> None:
        """Cancel every deadline of a room."""
        for code, player_id in [key for key in self._tasks if key[0] == room_code]:
            self.cancel(code, player_id)

    def cancel_all(self) -> None:
        for code, player_id in list(self._tasks):
            self.cancel(code, player_id)

    def is_pending(self, room_code: str, player_id: str) -> bool:
        return (room_code, player_id) in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    async def _run(self, key: tuple[str, str], episode: int, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            return
        # the deadline fired; drop the entry before the callback so it cannot cancel itself
        if self._tasks.get(key) is asyncio.current_task():
            del self._tasks[key]
        try:
            await self._on_expire(key[0], key[1], episode)
        except Exception:
            logger.exception("reconnect deadline callback failed", room_code=key[0], player_id=key[1])
