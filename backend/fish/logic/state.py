"""
Immutable game state models for Fish.

All models are frozen. Transitions in fish.logic.game build new instances via
model_copy (see fish.logic.state_utils) and never mutate in place.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from fish.logic.cards import Card, half_suit_of
from fish.logic.enums import ClaimFailureReason, IllegalQuestionReason, LogEntryType, Team, TransactionType
from fish.logic.teams import Teams


class ClaimedHalfSuits(BaseModel):
    model_config = ConfigDict(frozen=True)

    A: tuple[str, ...] = ()
    B: tuple[str, ...] = ()

    def for_team(self, team: Team) -> tuple[str, ...]:
        return self.A if team is Team.A else self.B

    @property
    def total(self) -> int:
        return len(self.A) + len(self.B)

    def is_claimed(self, half_suit: str) -> bool:
        return half_suit in self.A or half_suit in self.B

    def award(self, team: Team, half_suit: str) -> ClaimedHalfSuits:
        if team is Team.A:
            return self.model_copy(update={"A": (*self.A, half_suit)})
        return self.model_copy(update={"B": (*self.B, half_suit)})


class IllegalQuestionEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal[LogEntryType.ILLEGAL_QUESTION] = LogEntryType.ILLEGAL_QUESTION
    asker_id: str
    target_id: str
    card: Card
    reason: IllegalQuestionReason
    timestamp: float


class ClaimEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal[LogEntryType.CLAIM_SUCCESS, LogEntryType.CLAIM_FAILED]
    player_id: str
    claimer_team: Team
    half_suit: str
    target_team: Team
    awarded_to: Team | None
    reason: ClaimFailureReason | None = None
    timestamp: float


LogEntry = Annotated[IllegalQuestionEntry | ClaimEntry, Field(discriminator="type")]


class Transaction(BaseModel):
    """Most recent ask or claim outcome, for client animation only."""

    model_config = ConfigDict(frozen=True)

    type: TransactionType
    player_id: str
    target_id: str | None = None
    card: Card | None = None
    half_suit: str | None = None
    awarded_to: Team | None = None
    reason: str | None = None


class DisconnectedPlayer(BaseModel):
    model_config = ConfigDict(frozen=True)

    player_id: str
    name: str
    disconnected_at: float


class GameState(BaseModel):
    """
    Complete state of one Fish game, keyed by stable player ids.

    Cards are conserved: hands plus undealt plus the six cards of every
    claimed half-suit always make up the 48-card deck.
    """

    model_config = ConfigDict(frozen=True)

    hands: dict[str, tuple[Card, ...]]
    undealt: tuple[Card, ...] = ()
    teams: Teams
    roster: tuple[str, ...]
    current_player: str
    claimed: ClaimedHalfSuits = ClaimedHalfSuits()
    game_log: tuple[LogEntry, ...] = ()
    last_transaction: Transaction | None = None
    is_paused: bool = False
    paused_by: str | None = None
    game_over: bool = False
    winner: Team | None = None
    is_draw: bool = False
    disconnected_player: DisconnectedPlayer | None = None

    def hand_of(self, player_id: str) -> tuple[Card, ...]:
        return self.hands.get(player_id, ())

    def team_of(self, player_id: str) -> Team | None:
        return self.teams.team_of(player_id)

    def holds(self, player_id: str, card: Card) -> bool:
        return card in self.hand_of(player_id)

    def holds_half_suit(self, player_id: str, half_suit: str) -> bool:
        return any(half_suit_of(c) == half_suit for c in self.hand_of(player_id))

    @property
    def current_team(self) -> Team | None:
        return self.teams.team_of(self.current_player)

    def card_count(self) -> int:
        """Cards still in play or undealt; 48 minus six per claimed half-suit."""
        return sum(len(h) for h in self.hands.values()) + len(self.undealt)
