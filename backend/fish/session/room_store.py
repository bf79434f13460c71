"""In-memory room directory keyed by room code."""

from __future__ import annotations

import secrets
import string
from typing import TYPE_CHECKING

from fish.session.models import Room

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from fish.logic.settings import GameSettings

ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
# 36**6 codes; collisions only matter when the directory is nearly full
MAX_CODE_ATTEMPTS = 20


class RoomCodeExhaustedError(Exception):
    """No free room code was found within the retry budget."""


def generate_room_code() -> str:
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


class RoomStore:
    """In-memory store for active rooms.

    Passed to the SessionManager by dependency so tests can seed rooms and
    plug in a deterministic code generator.
    """

    def __init__(
        self,
        code_factory: Callable[[], str] = generate_room_code,
        max_attempts: int = MAX_CODE_ATTEMPTS,
    ) -> None:
        self._rooms: dict[str, Room] = {}  # code -> Room
        self._code_factory = code_factory
        self._max_attempts = max_attempts

    def _new_code(self) -> str:
        for _ in range(self._max_attempts):
            code = self._code_factory()
            if code not in self._rooms:
                return code
        raise RoomCodeExhaustedError(f"no free room code after {self._max_attempts} attempts")

    def create(self, settings: GameSettings | None = None, code: str | None = None) -> Room:
        """Create an empty room under a fresh code, or under code if given and free."""
        if code is None:
            code = self._new_code()
        else:
            code = code.upper()
            if code in self._rooms:
                raise ValueError(f"room {code} already exists")
        room = Room(code=code) if settings is None else Room(code=code, settings=settings)
        self._rooms[code] = room
        return room

    def get(self, code: str) -> Room | None:
        return self._rooms.get(code.upper())

    def remove(self, code: str) -> Room | None:
        return self._rooms.pop(code.upper(), None)

    def count(self) -> int:
        return len(self._rooms)

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.upper() in self._rooms

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self._rooms.values()))
