"""Best-effort recording of finished games."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime  # noqa: TC003

from pydantic import BaseModel, Field

from fish.logic.enums import Team  # noqa: TC001


class GameResultPlayer(BaseModel, frozen=True):
    player_id: str
    name: str
    team: Team | None = None
    user_id: str | None = None  # None for anonymous players


class GameResult(BaseModel, frozen=True):
    """Outcome of one finished game, handed to the history recorder."""

    room_code: str
    finished_at: datetime
    winner: Team | None = None
    is_draw: bool = False
    claimed_a: list[str] = Field(default_factory=list)
    claimed_b: list[str] = Field(default_factory=list)
    # players still seated at the end, in roster order
    players: list[GameResultPlayer] = Field(default_factory=list)


class GameHistoryRecorder(ABC):
    """Abstract interface for game history persistence."""

    @abstractmethod
    async def record(self, result: GameResult) -> None: ...


class InMemoryGameHistory(GameHistoryRecorder):
    def __init__(self) -> None:
        self._results: list[GameResult] = []

    async def record(self, result: GameResult) -> None:
        self._results.append(result)

    @property
    def results(self) -> list[GameResult]:
        return list(self._results)
