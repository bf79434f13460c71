"""
Player departures from a running game.

A player leaves a game either voluntarily or when their reconnection window
expires. Their remaining hand is dealt round-robin to the players still in
the game, they are dropped from the roster and both teams, and the game ends
by attrition if one team is left without members.

The disconnect marker helpers here hold the game while a player may still
come back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

from fish.logic.enums import Team
from fish.logic.game import next_turn_holder
from fish.logic.state import DisconnectedPlayer
from fish.logic.state_utils import finish_game, set_paused

if TYPE_CHECKING:
    from collections.abc import Collection

    from fish.logic.state import GameState


class RedistributionResult(NamedTuple):
    state: GameState
    cards_moved: int
    # None unless the departure emptied a team and ended the game
    attrition_winner: Team | None = None


def hold_for_reconnection(state: GameState, player_id: str, name: str, disconnected_at: float) -> GameState:
    """Pause the game on behalf of a disconnected player and record the marker."""
    marker = DisconnectedPlayer(player_id=player_id, name=name, disconnected_at=disconnected_at)
    return state.model_copy(
        update={
            "is_paused": True,
            "paused_by": player_id,
            "disconnected_player": marker,
        },
    )


def _release_marker(state: GameState, player_id: str, still_disconnected: Collection[DisconnectedPlayer]) -> GameState:
    """Point the marker at another absent player, or unpause once nobody is missing."""
    others = [p for p in still_disconnected if p.player_id != player_id and p.player_id in state.roster]
    if others:
        marker = others[0]
        return state.model_copy(
            update={
                "is_paused": True,
                "paused_by": marker.player_id,
                "disconnected_player": marker,
            },
        )
    if state.disconnected_player is not None or state.paused_by == player_id:
        return set_paused(state, None).model_copy(update={"disconnected_player": None})
    return state


def resume_after_reconnection(
    state: GameState,
    player_id: str,
    still_disconnected: Collection[DisconnectedPlayer] = (),
) -> GameState:
    """Clear the marker for a returning player; the game resumes once nobody else is away."""
    if state.game_over:
        return state
    return _release_marker(state, player_id, still_disconnected)


def remove_player(
    state: GameState,
    player_id: str,
    active_ids: Collection[str],
    still_disconnected: Collection[DisconnectedPlayer] = (),
) -> RedistributionResult:
    """
    Remove a player from a running game and hand out their cards.

    Cards go round-robin, in roster order, to the remaining players in
    active_ids. When none of them is connected every remaining roster player
    receives cards instead. If the departing player held the turn it moves to
    the next teammate with cards, otherwise to anyone with cards.

    Args:
        state: Current game state
        player_id: Departing player
        active_ids: Player ids with a live connection
        still_disconnected: Markers of other players still inside their reconnection window

    Returns:
        RedistributionResult with the new state and the number of cards moved

    """
    if player_id not in state.roster:
        return RedistributionResult(state, 0)

    hand = state.hand_of(player_id)
    remaining = tuple(pid for pid in state.roster if pid != player_id)
    recipients = [pid for pid in remaining if pid in active_ids] or list(remaining)

    dealt: dict[str, list] = {pid: list(state.hand_of(pid)) for pid in remaining}
    undealt = state.undealt
    if recipients:
        for i, card in enumerate(hand):
            dealt[recipients[i % len(recipients)]].append(card)
    else:
        # last player out; keep their cards accounted for
        undealt = (*undealt, *hand)
    hands = {pid: tuple(cards) for pid, cards in dealt.items()}

    current = state.current_player
    if current == player_id and remaining:
        # the departing player still anchors roster order, with an empty hand
        interim = state.model_copy(update={"hands": {**hands, player_id: ()}})
        current = next_turn_holder(interim, player_id, state.team_of(player_id))
        if current == player_id:
            # nobody holds cards; the seat after the departed player takes over
            current = remaining[state.roster.index(player_id) % len(remaining)]

    new_state = state.model_copy(
        update={
            "hands": hands,
            "undealt": undealt,
            "teams": state.teams.without(player_id),
            "roster": remaining,
            "current_player": current,
        },
    )
    new_state = _release_marker(new_state, player_id, still_disconnected)

    if new_state.game_over:
        return RedistributionResult(new_state, len(hand))

    for team in Team:
        if not new_state.teams.members(team):
            winner = team.opponent
            return RedistributionResult(finish_game(new_state, winner=winner, is_draw=False), len(hand), winner)

    return RedistributionResult(new_state, len(hand))
