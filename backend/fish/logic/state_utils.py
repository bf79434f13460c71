"""
Immutable state update utilities using Pydantic model_copy.

These helpers never mutate the input state; they always return a new
GameState with the requested changes applied.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fish.logic.cards import half_suit_of

if TYPE_CHECKING:
    from collections.abc import Iterable

    from fish.logic.cards import Card
    from fish.logic.state import GameState, LogEntry, Transaction


def set_hand(state: GameState, player_id: str, cards: Iterable[Card]) -> GameState:
    hands = dict(state.hands)
    hands[player_id] = tuple(cards)
    return state.model_copy(update={"hands": hands})


def move_card(state: GameState, from_id: str, to_id: str, card: Card) -> GameState:
    """
    Return new state with one card moved between two hands.

    Raises:
        ValueError: If the source hand does not hold the card

    """
    source = list(state.hand_of(from_id))
    if card not in source:
        raise ValueError(f"{from_id} does not hold {card}")
    source.remove(card)
    hands = dict(state.hands)
    hands[from_id] = tuple(source)
    hands[to_id] = (*state.hand_of(to_id), card)
    return state.model_copy(update={"hands": hands})


def strip_half_suit(state: GameState, half_suit: str) -> GameState:
    """Remove every card of the half-suit from all hands and the undealt pile."""
    hands = {pid: tuple(c for c in cards if half_suit_of(c) != half_suit) for pid, cards in state.hands.items()}
    undealt = tuple(c for c in state.undealt if half_suit_of(c) != half_suit)
    return state.model_copy(update={"hands": hands, "undealt": undealt})


def append_log(state: GameState, entry: LogEntry) -> GameState:
    return state.model_copy(update={"game_log": (*state.game_log, entry)})


def set_transaction(state: GameState, transaction: Transaction) -> GameState:
    return state.model_copy(update={"last_transaction": transaction})


def set_current_player(state: GameState, player_id: str) -> GameState:
    if player_id not in state.roster:
        raise ValueError(f"current player {player_id} is not in the roster")
    return state.model_copy(update={"current_player": player_id})


def set_paused(state: GameState, paused_by: str | None) -> GameState:
    """Pause on behalf of paused_by, or unpause when it is None."""
    return state.model_copy(update={"is_paused": paused_by is not None, "paused_by": paused_by})


def finish_game(state: GameState, **updates: object) -> GameState:
    """Return a terminal state. Unpauses and drops any disconnect marker."""
    return state.model_copy(
        update={
            "game_over": True,
            "is_paused": False,
            "paused_by": None,
            "disconnected_player": None,
            **updates,
        },
    )
