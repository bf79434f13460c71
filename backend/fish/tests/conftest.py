from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from fish.logic.cards import Card, build_deck, create_rng, half_suit_cards, parse_card
from fish.logic.enums import Team
from fish.logic.state import ClaimedHalfSuits, GameState
from fish.logic.teams import Teams
from fish.messaging.router import MessageRouter
from fish.server.app import create_app
from fish.server.settings import FishServerSettings
from fish.session.history import InMemoryGameHistory
from fish.session.manager import SessionManager
from fish.tests.mocks import MockConnection

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence


# ============================================================================
# Test State Builder Helpers
# ============================================================================


def cards(*card_ids: str) -> tuple[Card, ...]:
    """Parse card ids like "2-hearts" into a tuple of cards."""
    return tuple(parse_card(card_id) for card_id in card_ids)


def create_game_state(
    hands: Mapping[str, Sequence[str]],
    *,
    team_a: Sequence[str],
    team_b: Sequence[str],
    current_player: str | None = None,
    claimed_a: Iterable[str] = (),
    claimed_b: Iterable[str] = (),
    undealt: Sequence[str] = (),
    **overrides: object,
) -> GameState:
    """Create a GameState from card ids, with roster order following the hands mapping."""
    roster = tuple(hands)
    return GameState(
        hands={pid: cards(*held) for pid, held in hands.items()},
        undealt=cards(*undealt),
        teams=Teams(A=tuple(team_a), B=tuple(team_b)),
        roster=roster,
        current_player=current_player or roster[0],
        claimed=ClaimedHalfSuits(A=tuple(claimed_a), B=tuple(claimed_b)),
        **overrides,
    )


def unclaimed_deck(*claimed: str) -> list[Card]:
    """The deck minus the cards of the given half-suits."""
    gone = {card for half_suit in claimed for card in half_suit_cards(half_suit)}
    return [card for card in build_deck() if card not in gone]


def total_cards(state: GameState) -> int:
    return state.card_count() + 6 * state.claimed.total


def four_player_state(**overrides: object) -> GameState:
    """The standard P1(A) P2(B) P3(A) P4(B) table with hands chosen per test."""
    hands = overrides.pop("hands", None) or {
        "P1": ["2-hearts", "9-spades"],
        "P2": ["3-hearts", "10-spades"],
        "P3": ["4-hearts", "J-spades"],
        "P4": ["5-hearts", "Q-spades"],
    }
    return create_game_state(hands, team_a=["P1", "P3"], team_b=["P2", "P4"], **overrides)


@pytest.fixture
def rng():
    return create_rng(1234)


@pytest.fixture
def history():
    return InMemoryGameHistory()


@pytest.fixture
def session_manager(history):
    return SessionManager(history=history, rng=create_rng(42))


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def server_settings():
    return FishServerSettings(cors_origins=["http://localhost:5173"])


@pytest.fixture
def app(server_settings, session_manager, message_router):
    return create_app(
        settings=server_settings,
        session_manager=session_manager,
        message_router=message_router,
    )


