"""Combination (announcement) detection.

A combination is claimed by playing one of its cards: the candidate set is
the hand after the play plus the card just played.  Suit combinations are
looked up in the played card's suit only.

Priority, first match wins:

1. Chouine     A 10 K Q J of one suit — instant win, never blocked
2. Quinte      5+ brisques of any suits — once per game
3. Quarteron   A K Q J                  — once per suit
4. Tierce      K Q J                    — once per suit
5. Mariage     K Q                      — once per suit
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Any, Iterable, Optional

from chouine.cards import Card, Rank, Suit
from chouine.constants import COMBINATION_POINTS, QUINTE_KEY, QUINTE_MIN_BRISQUES, QUINTE_POINTS


class Combination(str, Enum):
    CHOUINE = "chouine"
    QUINTE = "quinte"
    QUARTERON = "quarteron"
    TIERCE = "tierce"
    MARIAGE = "mariage"


CHOUINE_RANKS: frozenset[Rank] = frozenset({Rank.ACE, Rank.TEN, Rank.KING, Rank.QUEEN, Rank.JACK})

# Suit combinations in descending value.
SUIT_COMBINATIONS: tuple[tuple[Combination, frozenset[Rank]], ...] = (
    (Combination.QUARTERON, frozenset({Rank.ACE, Rank.KING, Rank.QUEEN, Rank.JACK})),
    (Combination.TIERCE, frozenset({Rank.KING, Rank.QUEEN, Rank.JACK})),
    (Combination.MARIAGE, frozenset({Rank.KING, Rank.QUEEN})),
)


@dataclass(frozen=True, slots=True)
class Announcement:
    combination: Combination
    suit: Optional[Suit]
    points: int

    @property
    def instant_win(self) -> bool:
        return self.combination == Combination.CHOUINE

    @property
    def key(self) -> str:
        """Key recorded in a side's ``announced_combos``."""
        if self.combination == Combination.QUINTE:
            return QUINTE_KEY
        assert self.suit is not None
        return self.suit.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.combination.value,
            "suit": None if self.suit is None else self.suit.value,
            "points": self.points,
            "instantWin": self.instant_win,
        }


def suit_ranks(cards: Iterable[Card], suit: Suit) -> set[Rank]:
    return {c.rank for c in cards if c.suit == suit}


def has_chouine(cards: Iterable[Card], suit: Suit) -> bool:
    return CHOUINE_RANKS <= suit_ranks(cards, suit)


def has_quinte(cards: Iterable[Card]) -> bool:
    return sum(1 for c in cards if c.is_brisque()) >= QUINTE_MIN_BRISQUES


def combination_points(combination: Combination, suit: Suit, trump: Suit) -> int:
    trump_pts, plain_pts = COMBINATION_POINTS[combination.value]
    return trump_pts if suit == trump else plain_pts


def best_suit_combination(cards: Iterable[Card], suit: Suit, trump: Suit) -> Optional[Announcement]:
    """Highest quarteron/tierce/mariage held in ``suit``, ignoring claims."""
    ranks = suit_ranks(cards, suit)
    for combination, required in SUIT_COMBINATIONS:
        if required <= ranks:
            return Announcement(combination, suit, combination_points(combination, suit, trump))
    return None


def detect(
    cards: Iterable[Card],
    played: Card,
    *,
    trump: Suit,
    claimed: AbstractSet[str],
) -> Optional[Announcement]:
    """The announcement made by playing ``played``, or None.

    ``cards`` must already include ``played``.  ``claimed`` holds the side's
    suit keys and the quinte key claimed so far; it is not modified.
    """
    cards = list(cards)
    suit = played.suit

    if has_chouine(cards, suit):
        return Announcement(Combination.CHOUINE, suit, 0)

    if QUINTE_KEY not in claimed and has_quinte(cards):
        return Announcement(Combination.QUINTE, None, QUINTE_POINTS)

    if suit.value not in claimed:
        return best_suit_combination(cards, suit, trump)

    return None
