"""
String enum definitions for Fish game concepts.
"""

from __future__ import annotations

from enum import StrEnum


class Suit(StrEnum):
    CLUBS = "clubs"
    DIAMONDS = "diamonds"
    HEARTS = "hearts"
    SPADES = "spades"


class HalfSuitRange(StrEnum):
    """Which half of a suit a card belongs to (2-7 or 9-A)."""

    LOW = "low"
    HIGH = "high"


class Team(StrEnum):
    A = "A"
    B = "B"

    @property
    def opponent(self) -> Team:
        return Team.B if self is Team.A else Team.A


class RoomPhase(StrEnum):
    """Lifecycle phase of a room, derived from its team setup and game state."""

    LOBBY = "lobby"
    TEAM_SETUP = "team_setup"
    IN_PROGRESS = "in_progress"
    GAME_OVER = "game_over"


class SwapStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class IllegalQuestionReason(StrEnum):
    """Why an ask was illegal, in the order the checks are applied."""

    SAME_TEAM = "SAME_TEAM"
    ALREADY_HAS_CARD = "ALREADY_HAS_CARD"
    NO_CARD_IN_HALFSUIT = "NO_CARD_IN_HALFSUIT"


class ClaimFailureReason(StrEnum):
    ALREADY_CLAIMED = "ALREADY_CLAIMED"
    WRONG_TEAM_MEMBER = "WRONG_TEAM_MEMBER"
    WRONG_HALFSUIT_CARD = "WRONG_HALFSUIT_CARD"
    DUPLICATE_CARD = "DUPLICATE_CARD"
    PLAYER_MISSING_CARD = "PLAYER_MISSING_CARD"
    INCOMPLETE_CLAIM = "INCOMPLETE_CLAIM"


class LogEntryType(StrEnum):
    """Entries of the permanent game log. Legal asks are never logged."""

    ILLEGAL_QUESTION = "ILLEGAL_QUESTION"
    CLAIM_SUCCESS = "CLAIM_SUCCESS"
    CLAIM_FAILED = "CLAIM_FAILED"


class TransactionType(StrEnum):
    """Outcome of the most recent ask or claim, used only for client animation."""

    CARD_GIVEN = "CARD_GIVEN"
    CARD_NOT_FOUND = "CARD_NOT_FOUND"
    ILLEGAL_QUESTION = "ILLEGAL_QUESTION"
    CLAIM_SUCCESS = "CLAIM_SUCCESS"
    CLAIM_FAILED = "CLAIM_FAILED"


class GameErrorCode(StrEnum):
    """Error codes sent to clients when a game command is rejected."""

    NOT_YOUR_TURN = "not_your_turn"
    NOT_YOUR_TEAMS_TURN = "not_your_teams_turn"
    GAME_PAUSED = "game_paused"
    GAME_OVER = "game_over"
    UNKNOWN_PLAYER = "unknown_player"
    INVALID_CARD = "invalid_card"
    INVALID_TEAMS = "invalid_teams"
    INVALID_SWAP = "invalid_swap"
    INVALID_PLAYER_COUNT = "invalid_player_count"
    WINNER_NOT_CLINCHED = "winner_not_clinched"
    DISCONNECT_PENDING = "disconnect_pending"
