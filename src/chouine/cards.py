"""Card definitions for La Chouine.

32-card French deck, one ranking order for trick taking:
  A > 10 > K > Q > J > 9 > 8 > 7

Scoring: Ace = 11, Ten = 10, King = 4, Queen = 3, Jack = 2, others = 0.
Aces and tens are *brisques*.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Callable, List, MutableSequence, TypeVar


# ---------------------------------------------------------------------------
#  Suits
# ---------------------------------------------------------------------------


class Suit(str, Enum):
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"


ALL_SUITS: tuple[Suit, ...] = tuple(Suit)


# ---------------------------------------------------------------------------
#  Ranks — IntEnum values encode trick power
# ---------------------------------------------------------------------------


class Rank(IntEnum):
    SEVEN = 1
    EIGHT = 2
    NINE = 3
    JACK = 4
    QUEEN = 5
    KING = 6
    TEN = 7     # stronger than K/Q/J
    ACE = 8


# Order in which a fresh deck is built, within each suit.
DECK_RANK_ORDER: tuple[Rank, ...] = tuple(sorted(Rank, reverse=True))

RANK_VALUES: dict[Rank, int] = {
    Rank.SEVEN: 0,
    Rank.EIGHT: 0,
    Rank.NINE: 0,
    Rank.JACK: 2,
    Rank.QUEEN: 3,
    Rank.KING: 4,
    Rank.TEN: 10,
    Rank.ACE: 11,
}

TOTAL_CARD_POINTS: int = 4 * sum(RANK_VALUES.values())  # 120

_RANK_SHORT: dict[Rank, str] = {
    Rank.SEVEN: "7", Rank.EIGHT: "8", Rank.NINE: "9",
    Rank.JACK: "J", Rank.QUEEN: "Q", Rank.KING: "K",
    Rank.TEN: "10", Rank.ACE: "A",
}

_SUIT_SHORT: dict[Suit, str] = {
    Suit.HEARTS: "H", Suit.DIAMONDS: "D",
    Suit.CLUBS: "C", Suit.SPADES: "S",
}


# ---------------------------------------------------------------------------
#  Card
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Card:
    suit: Suit
    rank: Rank

    def value(self) -> int:
        """Card point value."""
        return RANK_VALUES[self.rank]

    def power(self) -> int:
        """Trick power (higher = stronger)."""
        return int(self.rank)

    def is_brisque(self) -> bool:
        return self.rank in (Rank.ACE, Rank.TEN)

    @property
    def id(self) -> str:
        """Stable wire id, e.g. ``ace_hearts``."""
        return f"{self.rank.name.lower()}_{self.suit.value}"

    @classmethod
    def from_id(cls, card_id: str) -> Card:
        rank_name, sep, suit_name = str(card_id).partition("_")
        if not sep:
            raise ValueError(f"Malformed card id: {card_id!r}")
        try:
            return cls(Suit(suit_name), Rank[rank_name.upper()])
        except (KeyError, ValueError) as e:
            raise ValueError(f"Unknown card id: {card_id!r}") from e

    def short(self) -> str:
        """Human-readable short label, e.g. 'H10', 'SA'."""
        return f"{_SUIT_SHORT[self.suit]}{_RANK_SHORT[self.rank]}"

    def __repr__(self) -> str:
        return f"Card({self.short()})"


# ---------------------------------------------------------------------------
#  Deck
# ---------------------------------------------------------------------------


def make_deck() -> List[Card]:
    """Create the full 32-card deck in construction order."""
    return [Card(s, r) for s in ALL_SUITS for r in DECK_RANK_ORDER]


T = TypeVar("T")


def shuffle(items: MutableSequence[T], rng: Callable[[], float]) -> None:
    """Backward Fisher–Yates driven by a uniform ``[0, 1)`` source.

    Step ``i`` (last index down to 1) swaps with ``floor(rng() * (i + 1))``.
    The exact draw order is part of the seed contract: do not change it.
    """
    for i in range(len(items) - 1, 0, -1):
        j = int(rng() * (i + 1))
        items[i], items[j] = items[j], items[i]
