"""Typed domain exceptions for Fish rule preconditions.

Domain functions raise subclasses of FishRuleError when a command cannot be
applied to the current state at all (wrong turn, paused game, bad swap).
Illegal questions and failed claims are NOT errors: they are valid moves
with a penalty and never raise.
"""

from fish.logic.enums import GameErrorCode


class FishRuleError(Exception):
    """Base exception for rejected game commands.

    Caught at the session boundary and converted to an ERROR message sent
    to the requesting connection only. The game state is left untouched.
    """

    code: GameErrorCode = GameErrorCode.INVALID_CARD

    def __init__(self, message: str, *, code: GameErrorCode | None = None) -> None:
        if code is not None:
            self.code = code
        self.message = message
        super().__init__(message)


class NotYourTurnError(FishRuleError):
    code = GameErrorCode.NOT_YOUR_TURN


class NotYourTeamsTurnError(FishRuleError):
    code = GameErrorCode.NOT_YOUR_TEAMS_TURN


class GamePausedError(FishRuleError):
    code = GameErrorCode.GAME_PAUSED


class GameOverError(FishRuleError):
    code = GameErrorCode.GAME_OVER


class UnknownPlayerError(FishRuleError):
    code = GameErrorCode.UNKNOWN_PLAYER


class InvalidCardError(FishRuleError):
    """Card or half-suit id could not be parsed."""

    code = GameErrorCode.INVALID_CARD


class TeamSetupError(FishRuleError):
    code = GameErrorCode.INVALID_TEAMS


class InvalidSwapError(FishRuleError):
    code = GameErrorCode.INVALID_SWAP


class InvalidPlayerCountError(FishRuleError):
    code = GameErrorCode.INVALID_PLAYER_COUNT


class WinnerNotClinchedError(FishRuleError):
    code = GameErrorCode.WINNER_NOT_CLINCHED


class DisconnectPendingError(FishRuleError):
    """Pause cannot be toggled while the game is held for a reconnection."""

    code = GameErrorCode.DISCONNECT_PENDING
