"""
Turn protocol for Fish: dealing, asking, claiming, pausing and early wins.

Every operation is a pure function from a GameState to an ActionResult.
Preconditions that make a command inapplicable raise FishRuleError
subclasses. Illegal questions and wrong claims are legal moves with a
penalty, so they produce a new state instead of raising.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, NamedTuple

from fish.logic.cards import deal, half_suit_cards, half_suit_of, parse_half_suit
from fish.logic.enums import ClaimFailureReason, IllegalQuestionReason, LogEntryType, Team, TransactionType
from fish.logic.exceptions import (
    DisconnectPendingError,
    GameOverError,
    GamePausedError,
    InvalidPlayerCountError,
    NotYourTeamsTurnError,
    NotYourTurnError,
    TeamSetupError,
    UnknownPlayerError,
    WinnerNotClinchedError,
)
from fish.logic.settings import NUM_HALF_SUITS, GameSettings
from fish.logic.state import ClaimEntry, GameState, IllegalQuestionEntry, Transaction
from fish.logic.state_utils import (
    append_log,
    finish_game,
    move_card,
    set_current_player,
    set_paused,
    set_transaction,
    strip_half_suit,
)

if TYPE_CHECKING:
    import random
    from collections.abc import Mapping, Sequence

    from fish.logic.cards import Card
    from fish.logic.state import LogEntry
    from fish.logic.teams import Teams


class ActionResult(NamedTuple):
    state: GameState
    transaction: Transaction | None = None
    log_entry: LogEntry | None = None


def _now(now: float | None) -> float:
    return time.time() if now is None else now


def _check_playable(state: GameState) -> None:
    if state.game_over:
        raise GameOverError("the game is over")
    if state.is_paused:
        raise GamePausedError("the game is paused")


def _require_in_game(state: GameState, player_id: str) -> None:
    if player_id not in state.roster:
        raise UnknownPlayerError(f"player {player_id} is not in this game")


def start_game(
    teams: Teams,
    roster: Sequence[str],
    settings: GameSettings,
    rng: random.Random,
) -> GameState:
    """
    Deal a fresh game for the confirmed teams.

    Hands are dealt in roster order and the first roster player starts.
    """
    if not settings.is_valid_player_count(len(roster)):
        raise InvalidPlayerCountError(
            f"need an even number of players between {settings.min_players} and {settings.max_players}",
        )
    if set(teams.all_players) != set(roster) or len(teams.A) != len(teams.B):
        raise TeamSetupError("teams must split the whole roster evenly")

    dealt = deal(len(roster), rng, deal_remainder=settings.deal_remainder)
    hands = {pid: tuple(hand) for pid, hand in zip(roster, dealt.hands, strict=True)}
    return GameState(
        hands=hands,
        undealt=tuple(dealt.undealt),
        teams=teams,
        roster=tuple(roster),
        current_player=roster[0],
    )


def _illegal_reason(state: GameState, asker_id: str, target_id: str, card: Card) -> IllegalQuestionReason | None:
    if state.team_of(asker_id) is state.team_of(target_id):
        return IllegalQuestionReason.SAME_TEAM
    if state.holds(asker_id, card):
        return IllegalQuestionReason.ALREADY_HAS_CARD
    if not state.holds_half_suit(asker_id, half_suit_of(card)):
        return IllegalQuestionReason.NO_CARD_IN_HALFSUIT
    return None


def ask_card(
    state: GameState,
    asker_id: str,
    target_id: str,
    card: Card,
    *,
    now: float | None = None,
) -> ActionResult:
    """
    Current player asks an opponent for a specific card.

    Illegal questions are logged permanently and pass the turn to the target.
    Legal asks are never logged: a hit moves the card and keeps the turn,
    a miss passes the turn to the target.
    """
    _check_playable(state)
    _require_in_game(state, asker_id)
    if state.current_player != asker_id:
        raise NotYourTurnError("it is not your turn")
    _require_in_game(state, target_id)
    if target_id == asker_id:
        raise UnknownPlayerError("cannot ask yourself")

    reason = _illegal_reason(state, asker_id, target_id, card)
    if reason is not None:
        entry = IllegalQuestionEntry(
            asker_id=asker_id,
            target_id=target_id,
            card=card,
            reason=reason,
            timestamp=_now(now),
        )
        transaction = Transaction(
            type=TransactionType.ILLEGAL_QUESTION,
            player_id=asker_id,
            target_id=target_id,
            card=card,
            reason=reason.value,
        )
        new_state = append_log(state, entry)
        new_state = set_transaction(new_state, transaction)
        new_state = set_current_player(new_state, target_id)
        return ActionResult(new_state, transaction, entry)

    if state.holds(target_id, card):
        transaction = Transaction(
            type=TransactionType.CARD_GIVEN,
            player_id=asker_id,
            target_id=target_id,
            card=card,
        )
        new_state = move_card(state, target_id, asker_id, card)
        return ActionResult(set_transaction(new_state, transaction), transaction)

    transaction = Transaction(
        type=TransactionType.CARD_NOT_FOUND,
        player_id=asker_id,
        target_id=target_id,
        card=card,
    )
    new_state = set_transaction(state, transaction)
    return ActionResult(set_current_player(new_state, target_id), transaction)


def validate_claim(
    state: GameState,
    half_suit: str,
    distribution: Mapping[str, Sequence[Card]],
    target_team: Team,
) -> ClaimFailureReason | None:
    """Return the first reason the claim is wrong, or None if it is exact."""
    if state.claimed.is_claimed(half_suit):
        return ClaimFailureReason.ALREADY_CLAIMED

    members = state.teams.members(target_team)
    if any(pid not in members for pid in distribution):
        return ClaimFailureReason.WRONG_TEAM_MEMBER

    expected = set(half_suit_cards(half_suit))
    named = [card for cards in distribution.values() for card in cards]
    if any(card not in expected for card in named):
        return ClaimFailureReason.WRONG_HALFSUIT_CARD
    if len(set(named)) != len(named):
        return ClaimFailureReason.DUPLICATE_CARD

    for pid, cards in distribution.items():
        if any(not state.holds(pid, card) for card in cards):
            return ClaimFailureReason.PLAYER_MISSING_CARD

    if set(named) != expected:
        return ClaimFailureReason.INCOMPLETE_CLAIM
    return None


def next_turn_holder(state: GameState, after_id: str, team: Team | None) -> str:
    """
    Next roster player after after_id who still holds cards.

    Members of team are preferred, then anyone. Falls back to after_id
    (or the first roster player if after_id left) when nobody holds cards.
    """
    roster = state.roster
    start = roster.index(after_id) + 1 if after_id in roster else 0
    ordered = [roster[(start + i) % len(roster)] for i in range(len(roster))]
    with_cards = [pid for pid in ordered if state.hand_of(pid)]
    for pid in with_cards:
        if team is not None and state.team_of(pid) is team:
            return pid
    if with_cards:
        return with_cards[0]
    return after_id if after_id in roster else roster[0]


def check_game_over(state: GameState) -> GameState:
    """Finish the game once all eight half-suits are claimed. A 4-4 split is a draw."""
    if state.game_over or state.claimed.total < NUM_HALF_SUITS:
        return state
    count_a = len(state.claimed.A)
    count_b = len(state.claimed.B)
    if count_a == count_b:
        return finish_game(state, winner=None, is_draw=True)
    return finish_game(state, winner=Team.A if count_a > count_b else Team.B, is_draw=False)


def make_claim(
    state: GameState,
    claimer_id: str,
    half_suit: str,
    distribution: Mapping[str, Sequence[Card]],
    target_team: Team,
    *,
    now: float | None = None,
) -> ActionResult:
    """
    Claim the full current location of a half-suit.

    Any member of the team holding the turn may claim, for either team. An
    exact claim awards the half-suit to target_team; any mistake awards it to
    the claimer's opponents. Either way its six cards leave play.
    """
    _check_playable(state)
    _require_in_game(state, claimer_id)
    parse_half_suit(half_suit)
    claimer_team = state.team_of(claimer_id)
    if claimer_team is None or claimer_team is not state.current_team:
        raise NotYourTeamsTurnError("claims are only allowed during your team's turn")

    reason = validate_claim(state, half_suit, distribution, target_team)
    awarded_to: Team | None = target_team if reason is None else claimer_team.opponent
    # an already claimed half-suit keeps its owner and is not scored twice
    if reason is ClaimFailureReason.ALREADY_CLAIMED:
        awarded_to = None
    entry_type = LogEntryType.CLAIM_SUCCESS if reason is None else LogEntryType.CLAIM_FAILED

    entry = ClaimEntry(
        type=entry_type,
        player_id=claimer_id,
        claimer_team=claimer_team,
        half_suit=half_suit,
        target_team=target_team,
        awarded_to=awarded_to,
        reason=reason,
        timestamp=_now(now),
    )
    transaction = Transaction(
        type=TransactionType(entry_type.value),
        player_id=claimer_id,
        half_suit=half_suit,
        awarded_to=awarded_to,
        reason=reason.value if reason is not None else None,
    )

    new_state = strip_half_suit(state, half_suit)
    if awarded_to is not None:
        new_state = new_state.model_copy(update={"claimed": new_state.claimed.award(awarded_to, half_suit)})
    new_state = append_log(new_state, entry)
    new_state = set_transaction(new_state, transaction)

    if not new_state.hand_of(new_state.current_player):
        holder = next_turn_holder(new_state, new_state.current_player, new_state.current_team)
        new_state = set_current_player(new_state, holder)

    return ActionResult(check_game_over(new_state), transaction, entry)


def toggle_pause(state: GameState, player_id: str) -> ActionResult:
    """Pause or unpause; only the team holding the turn may do either."""
    if state.game_over:
        raise GameOverError("the game is over")
    _require_in_game(state, player_id)
    if state.disconnected_player is not None:
        raise DisconnectPendingError("the game is held until the disconnected player returns")
    if state.team_of(player_id) is not state.current_team:
        raise NotYourTeamsTurnError("you can only pause during your team's turn")
    if state.is_paused:
        return ActionResult(set_paused(state, None))
    return ActionResult(set_paused(state, player_id))


def declare_winner(state: GameState, team: Team, *, clinch_threshold: int = 5) -> ActionResult:
    """End the game early for a team that already holds a clinching majority."""
    if state.game_over:
        raise GameOverError("the game is over")
    claimed = len(state.claimed.for_team(team))
    if claimed < clinch_threshold:
        raise WinnerNotClinchedError(
            f"team {team.value} has {claimed} half-suits, needs {clinch_threshold} to be declared winner",
        )
    return ActionResult(finish_game(state, winner=team, is_draw=False))
