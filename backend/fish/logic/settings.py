"""Per-room game rules configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

DECK_SIZE = 48
NUM_HALF_SUITS = 8
HALF_SUIT_SIZE = 6
MIN_PLAYERS = 4
MAX_PLAYERS = 10


class GameSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_players: int = Field(default=MIN_PLAYERS, ge=MIN_PLAYERS, le=MAX_PLAYERS)
    max_players: int = Field(default=MAX_PLAYERS, ge=MIN_PLAYERS, le=MAX_PLAYERS)
    # 48 % num_players cards are left undealt unless this is set
    deal_remainder: bool = False
    # half-suits a team needs before the host may end the game early
    clinch_threshold: int = Field(default=5, gt=NUM_HALF_SUITS // 2, le=NUM_HALF_SUITS)

    @model_validator(mode="after")
    def _check_player_bounds(self) -> GameSettings:
        if self.min_players > self.max_players:
            raise ValueError(f"min_players ({self.min_players}) exceeds max_players ({self.max_players})")
        return self

    def is_valid_player_count(self, num_players: int) -> bool:
        """Teams must be equal, so only even counts inside the bounds are playable."""
        return self.min_players <= num_players <= self.max_players and num_players % 2 == 0
