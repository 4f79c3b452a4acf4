from __future__ import annotations

from typing import List, Optional, Sequence

from chouine.cards import Card, Suit


def must_follow(game_phase: int) -> bool:
    # Phase 1 (talon still on the table) is free play.
    return game_phase >= 2


def is_legal_response(
    hand: Sequence[Card],
    card: Card,
    led: Optional[Card],
    *,
    trump: Suit,
    strict: bool,
) -> bool:
    """
    Whether ``card`` may be played from ``hand`` in reply to ``led``.

    - Free play (``strict`` False) or leading (``led`` None): anything goes.
    - Strict play:
      - holding the led suit: must follow it, and on a trump lead must
        overtrump when holding a higher trump;
      - void in the led suit but holding trump: must trump;
      - holding neither: anything goes.
    """
    if not strict or led is None:
        return True

    if any(c.suit == led.suit for c in hand):
        if card.suit != led.suit:
            return False
        if led.suit == trump and card.power() <= led.power():
            # Obligation: on a trump lead, beat it if you can.
            if any(c.suit == trump and c.power() > led.power() for c in hand):
                return False
        return True

    if any(c.suit == trump for c in hand):
        return card.suit == trump

    return True


def legal_response_cards(
    hand: Sequence[Card],
    led: Optional[Card],
    *,
    trump: Suit,
    strict: bool,
) -> List[Card]:
    return [c for c in hand if is_legal_response(hand, c, led, trump=trump, strict=strict)]


def beats(card: Card, led: Card, trump: Suit) -> bool:
    """True if ``card`` played second takes the trick from ``led``."""
    if card.suit == led.suit:
        return card.power() > led.power()
    return card.suit == trump


def trick_winner_is_second(first: Card, second: Card, trump: Suit) -> bool:
    """
    Trick resolution with a fixed trump suit:
    - Same suit => higher power wins.
    - Otherwise the trump (if any) wins.
    - Otherwise the first card wins: the follower neither followed nor trumped.
    """
    return beats(second, first, trump)


def winning_cards(cards: Sequence[Card], led: Card, trump: Suit) -> List[Card]:
    """Cards among ``cards`` that would take the trick from ``led``.

    On a trump lead only higher trumps qualify.  Otherwise every trump and
    every higher card of the led suit qualify, in one combined list.
    """
    if led.suit == trump:
        return [c for c in cards if c.suit == trump and c.power() > led.power()]
    return [c for c in cards if c.suit == trump or (c.suit == led.suit and c.power() > led.power())]


def strongest(cards: Sequence[Card]) -> Card:
    # max() keeps the first of equals.
    return max(cards, key=lambda c: c.power())


def weakest(cards: Sequence[Card]) -> Card:
    return min(cards, key=lambda c: c.power())
