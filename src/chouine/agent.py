"""Rule-based opponent.

One ply, no search, no memory: every decision is read fresh from the
public state plus the agent's own hand.  Priority order:

1. Exchange the trump seven when the upcard is worth having.
2. Lead: go for an announcement, else cash a brisque, else lead strong
   (phase 1) / lead a side brisque, else lead low (phase 2).
3. Follow: take valuable tricks as cheaply as possible, duck cheap ones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional, Sequence, Union

from chouine.announcements import best_suit_combination, has_chouine, has_quinte
from chouine.cards import Card, Rank
from chouine.constants import (
    MIN_ANNOUNCEMENT_TO_LEAD,
    PHASE1_CHEAP_WIN_VALUE,
    PHASE1_WORTH_WINNING,
    PHASE2_CHEAP_WIN_VALUE,
    PHASE2_WORTH_WINNING,
    QUINTE_KEY,
    QUINTE_POINTS,
)
from chouine.game import GameState, Side, can_exchange_seven, exchange_seven, legal_cards, play_card
from chouine.results import ExchangeResult, Failure, PlayResult
from chouine.rules import strongest, weakest, winning_cards

log = logging.getLogger(__name__)

_COUNTERPART: dict[Rank, Rank] = {Rank.KING: Rank.QUEEN, Rank.QUEEN: Rank.KING}


@dataclass(frozen=True, slots=True)
class AgentDecision:
    kind: Literal["exchange", "play"]
    card: Optional[Card]
    result: Union[ExchangeResult, PlayResult]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "card": None if self.card is None else self.card.id,
            "result": self.result.to_dict(),
        }


@dataclass(slots=True)
class HeuristicAgent:
    side: Side = Side.AI

    # ------------------------------------------------------------------
    #  Entry point
    # ------------------------------------------------------------------

    def decide(self, state: GameState) -> AgentDecision:
        """Act once on ``state``: either exchange the seven or play a card."""
        if can_exchange_seven(state, self.side) and self.should_exchange_seven(state):
            _, result = exchange_seven(state, self.side)
            if result.success:
                return AgentDecision("exchange", None, result)

        card = self.select_card(state)
        _, result = play_card(state, self.side, card)
        if isinstance(result, Failure):
            log.error(
                "Agent %s picked a rejected card %s (%s); hand=%s",
                self.side.value, card.short(), result.reason.value,
                [c.short() for c in state.hand(self.side)],
            )
        return AgentDecision("play", card, result)

    # ------------------------------------------------------------------
    #  Exchange
    # ------------------------------------------------------------------

    def should_exchange_seven(self, state: GameState) -> bool:
        upcard = state.trump_card
        if upcard is None:
            return False
        if upcard.is_brisque():
            return True
        # King or queen upcard completing a mariage with what we hold.
        partner = _COUNTERPART.get(upcard.rank)
        return partner is not None and Card(state.trump_suit, partner) in state.hand(self.side)

    # ------------------------------------------------------------------
    #  Card selection
    # ------------------------------------------------------------------

    def select_card(self, state: GameState) -> Card:
        hand = state.hand(self.side)
        led = state.led_card(self.side)
        if led is None:
            return self.select_lead(state, hand)
        return self.select_follow(state, hand, led)

    def select_lead(self, state: GameState, hand: Sequence[Card]) -> Card:
        trump = state.trump_suit
        if state.game_phase == 1:
            combo_card = self.best_announcement_card(state, hand)
            if combo_card is not None:
                return combo_card

            brisques = [c for c in hand if c.is_brisque()]
            if brisques:
                plain = [c for c in brisques if c.suit != trump]
                return strongest(plain) if plain else strongest(brisques)
            return strongest(hand)

        # Strict play: press with a side brisque, never spend trump to lead.
        side_brisques = [c for c in hand if c.is_brisque() and c.suit != trump]
        if side_brisques:
            return side_brisques[0]
        return weakest(hand)

    def select_follow(self, state: GameState, hand: Sequence[Card], led: Card) -> Card:
        legal = legal_cards(state, self.side)
        if not legal:
            log.error("No legal cards for %s facing %s", self.side.value, led.short())
            return hand[0]

        winners = winning_cards(legal, led, state.trump_suit)

        if state.game_phase == 1:
            if winners:
                if led.value() >= PHASE1_WORTH_WINNING:
                    return weakest(winners)
                cheap = [c for c in winners if c.value() == PHASE1_CHEAP_WIN_VALUE]
                if cheap:
                    return cheap[0]
                losers = [c for c in legal if c not in winners]
                if losers:
                    return weakest(losers)
            return weakest(legal)

        if winners:
            if led.value() >= PHASE2_WORTH_WINNING:
                return weakest(winners)
            cheap = [c for c in winners if c.value() <= PHASE2_CHEAP_WIN_VALUE]
            if cheap:
                return cheap[0]
        return weakest(legal)

    def best_announcement_card(self, state: GameState, hand: Sequence[Card]) -> Optional[Card]:
        """Card whose play would score the best announcement, if worth it.

        A chouine is returned on sight.  Otherwise the best unclaimed suit
        combination wins, overridden by an unclaimed quinte (the first
        brisque in hand is led for it).
        """
        claimed = state.players[self.side].announced_combos
        trump = state.trump_suit
        best_card: Optional[Card] = None
        best_points = 0

        for card in hand:
            if has_chouine(hand, card.suit):
                return card
            if card.suit.value in claimed:
                continue
            combo = best_suit_combination(hand, card.suit, trump)
            if combo is not None and combo.points > best_points:
                best_points = combo.points
                best_card = card

        if QUINTE_KEY not in claimed and has_quinte(hand):
            best_points = QUINTE_POINTS
            best_card = next(c for c in hand if c.is_brisque())

        return best_card if best_points >= MIN_ANNOUNCEMENT_TO_LEAD else None
