"""
Card representation, deck construction and dealing for Fish.

The deck is a standard 52-card deck with every 8 removed: 4 suits x 12 ranks.
Each suit splits into a low half (2-7) and a high half (9-A); these eight
half-suits of six cards are the unit of scoring.

Card ids use the "<rank>-<suit>" format (e.g. "10-hearts") and half-suit ids
the "<suit>-<low|high>" format (e.g. "hearts-low").
"""

from __future__ import annotations

import random
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

from fish.logic.enums import HalfSuitRange, Suit
from fish.logic.exceptions import InvalidCardError, InvalidPlayerCountError
from fish.logic.settings import DECK_SIZE

LOW_RANKS = ("2", "3", "4", "5", "6", "7")
HIGH_RANKS = ("9", "10", "J", "Q", "K", "A")
RANKS = LOW_RANKS + HIGH_RANKS


class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    suit: Suit
    rank: str

    @field_validator("rank")
    @classmethod
    def _validate_rank(cls, v: str) -> str:
        if v not in RANKS:
            raise ValueError(f"rank must be one of {RANKS}, got {v!r}")
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def id(self) -> str:
        return f"{self.rank}-{self.suit.value}"

    @property
    def half_suit(self) -> str:
        return half_suit_of(self)

    def __str__(self) -> str:
        return self.id


class DealResult(NamedTuple):
    """Hands in seat order plus the cards nobody received."""

    hands: list[list[Card]]
    undealt: list[Card]


def _range_of(rank: str) -> HalfSuitRange:
    return HalfSuitRange.LOW if rank in LOW_RANKS else HalfSuitRange.HIGH


def half_suit_id(suit: Suit, half: HalfSuitRange) -> str:
    return f"{suit.value}-{half.value}"


ALL_HALF_SUITS: tuple[str, ...] = tuple(half_suit_id(suit, half) for suit in Suit for half in HalfSuitRange)


def half_suit_of(card: Card) -> str:
    return half_suit_id(card.suit, _range_of(card.rank))


def parse_card(card_id: str) -> Card:
    """
    Parse a "<rank>-<suit>" card id.

    Raises InvalidCardError for unknown ranks (including "8") or suits.
    """
    rank, sep, suit = card_id.partition("-")
    if not sep or rank not in RANKS:
        raise InvalidCardError(f"unknown card: {card_id!r}")
    try:
        return Card(suit=Suit(suit), rank=rank)
    except ValueError:
        raise InvalidCardError(f"unknown card: {card_id!r}") from None


def parse_half_suit(half_suit: str) -> tuple[Suit, HalfSuitRange]:
    suit, sep, half = half_suit.partition("-")
    if not sep:
        raise InvalidCardError(f"unknown half-suit: {half_suit!r}")
    try:
        return Suit(suit), HalfSuitRange(half)
    except ValueError:
        raise InvalidCardError(f"unknown half-suit: {half_suit!r}") from None


def half_suit_cards(half_suit: str) -> tuple[Card, ...]:
    """Return the six canonical cards of a half-suit, lowest rank first."""
    suit, half = parse_half_suit(half_suit)
    ranks = LOW_RANKS if half is HalfSuitRange.LOW else HIGH_RANKS
    return tuple(Card(suit=suit, rank=rank) for rank in ranks)


def build_deck() -> list[Card]:
    """Return the 48 canonical cards, grouped by suit."""
    return [Card(suit=suit, rank=rank) for suit in Suit for rank in RANKS]


def create_rng(seed: int | None = None) -> random.Random:
    """Seeded generator for reproducible games, OS entropy otherwise."""
    if seed is None:
        return random.SystemRandom()
    return random.Random(seed)  # noqa: S311


def shuffle_deck(deck: list[Card], rng: random.Random) -> None:
    """
    Shuffle the deck in place with Fisher-Yates.

    Walks from the last index down, swapping each position with a uniformly
    chosen index at or below it, which yields every permutation with equal
    probability.
    """
    for i in range(len(deck) - 1, 0, -1):
        j = rng.randint(0, i)
        deck[i], deck[j] = deck[j], deck[i]


def deal(num_players: int, rng: random.Random, *, deal_remainder: bool = False) -> DealResult:
    """
    Shuffle a fresh deck and split it into contiguous per-player slices.

    Each player gets 48 // num_players cards. The 48 % num_players leftover
    cards go to nobody unless deal_remainder is set, in which case they are
    handed out one at a time starting from the first player.
    """
    if num_players <= 0 or num_players % 2 != 0:
        raise InvalidPlayerCountError(f"cannot deal to {num_players} players")

    deck = build_deck()
    shuffle_deck(deck, rng)

    per_player = DECK_SIZE // num_players
    hands = [deck[i * per_player : (i + 1) * per_player] for i in range(num_players)]
    leftover = deck[num_players * per_player :]

    if deal_remainder:
        for i, card in enumerate(leftover):
            hands[i % num_players].append(card)
        leftover = []

    return DealResult(hands=hands, undealt=leftover)
