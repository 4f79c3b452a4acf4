"""Game state and mechanics for a La Chouine deal.

This module handles dealing, the trump-seven exchange, legality, trick
play, announcements, drawing from the talon and end-of-game scoring.

Operations take the ``GameState`` they act on and return
``(state, result)``.  The state is updated in place on success; a
``Failure`` result guarantees it was left untouched.

Turn cycle::

    play (leader) -> play (follower) -> resolve + draw -> clear_trick -> ...

A resolved trick stays on the table (``trick_awaiting_clear``) until the
driver calls ``clear_trick``; nobody may lead before that.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from chouine.announcements import Announcement
from chouine import announcements
from chouine.cards import Card, Rank, Suit, make_deck, shuffle
from chouine.constants import DECK_SIZE, HAND_SIZE, LAST_TRICK_BONUS
from chouine.prng import Mulberry32, generate_seed
from chouine.results import (
    CardPlayed,
    ClearResult,
    ExchangeResult,
    Failure,
    FailureReason,
    GameOverResult,
    InconsistentStateError,
    PlayResult,
    TrickResolved,
)
from chouine.rules import is_legal_response, legal_response_cards, must_follow, trick_winner_is_second

log = logging.getLogger(__name__)

TraceHook = Callable[[str, dict[str, Any]], None]


# ---------------------------------------------------------------------------
#  Sides
# ---------------------------------------------------------------------------


class Side(str, Enum):
    HUMAN = "human"
    AI = "ai"

    @property
    def other(self) -> Side:
        return Side.AI if self is Side.HUMAN else Side.HUMAN


TIE = "tie"

# Engine states, as reported by ``status``.
DEALING = "DEALING"
PHASE1_PLAY = "PHASE1_PLAY"
PHASE2_PLAY = "PHASE2_PLAY"
TRICK_PENDING_CLEAR = "TRICK_PENDING_CLEAR"
GAME_OVER = "GAME_OVER"


# ---------------------------------------------------------------------------
#  Game state
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class PlayerState:
    hand: list[Card] = field(default_factory=list)
    tricks: list[Card] = field(default_factory=list)  # won cards
    score: int = 0
    game_wins: int = 0  # carried across the games of a match
    announcements: list[Announcement] = field(default_factory=list)
    announced_combos: set[str] = field(default_factory=set)  # suit keys + "quinte"

    def clone(self) -> PlayerState:
        return PlayerState(
            hand=list(self.hand),
            tricks=list(self.tricks),
            score=self.score,
            game_wins=self.game_wins,
            announcements=list(self.announcements),
            announced_combos=set(self.announced_combos),
        )


@dataclass(slots=True)
class GameState:
    """Mutable state of one game.  Created by ``new_game``."""

    players: dict[Side, PlayerState]
    talon: list[Card]                       # top of the talon is the end of the list
    trump_card: Optional[Card]              # face-up card; None once taken into a hand
    trump_suit: Suit
    current_trick: dict[Side, Optional[Card]]
    current_player: Side
    dealer: Side
    seed: int
    trick_leader: Optional[Side] = None     # who played first into the current trick
    trick_awaiting_clear: bool = False
    last_trick_winner: Optional[Side] = None
    game_phase: int = 1                     # 1 = free play, 2 = strict rules
    talon_empty: bool = False
    seven_exchanged: bool = False
    game_over: bool = False
    game_winner: Optional[str] = None       # "human" | "ai" | "tie"
    trick_no: int = 0
    trace: Optional[TraceHook] = None

    def clone(self) -> GameState:
        """Independent copy.  Cards are immutable and shared."""
        return GameState(
            players={s: p.clone() for s, p in self.players.items()},
            talon=list(self.talon),
            trump_card=self.trump_card,
            trump_suit=self.trump_suit,
            current_trick=dict(self.current_trick),
            current_player=self.current_player,
            dealer=self.dealer,
            seed=self.seed,
            trick_leader=self.trick_leader,
            trick_awaiting_clear=self.trick_awaiting_clear,
            last_trick_winner=self.last_trick_winner,
            game_phase=self.game_phase,
            talon_empty=self.talon_empty,
            seven_exchanged=self.seven_exchanged,
            game_over=self.game_over,
            game_winner=self.game_winner,
            trick_no=self.trick_no,
            trace=self.trace,
        )

    def hand(self, side: Side) -> list[Card]:
        return self.players[side].hand

    def led_card(self, side: Side) -> Optional[Card]:
        """The card ``side`` has to answer, or None when it leads."""
        return self.current_trick[side.other]


def _emit(state: GameState, event: str, **fields: Any) -> None:
    if state.trace is not None:
        state.trace(event, fields)


# ---------------------------------------------------------------------------
#  Dealing
# ---------------------------------------------------------------------------


def new_game(
    seed: Optional[int] = None,
    *,
    previous: Optional[GameState] = None,
    trace: Optional[TraceHook] = None,
) -> GameState:
    """Shuffle and deal a new game.

    The dealer alternates relative to ``previous`` (before the first game
    of a match the human is taken as previous dealer, so the AI deals and
    the human leads).  Game wins carry over from ``previous``.

    Deal order: one card to the human, one to the AI, five times; then the
    next card is turned up as trump.  The seed used is kept on the state:
    the same seed reproduces the same deal, trump card and draws.
    """
    prev_dealer = previous.dealer if previous is not None else Side.HUMAN
    dealer = prev_dealer.other
    if seed is None:
        seed = generate_seed()
    seed = int(seed)

    rng = Mulberry32(seed)
    talon = make_deck()
    shuffle(talon, rng)

    players = {side: PlayerState() for side in Side}
    if previous is not None:
        for side in Side:
            players[side].game_wins = previous.players[side].game_wins

    for _ in range(HAND_SIZE):
        players[Side.HUMAN].hand.append(talon.pop())
        players[Side.AI].hand.append(talon.pop())

    trump_card = talon.pop()
    leader = dealer.other

    state = GameState(
        players=players,
        talon=talon,
        trump_card=trump_card,
        trump_suit=trump_card.suit,
        current_trick={Side.HUMAN: None, Side.AI: None},
        current_player=leader,
        dealer=dealer,
        seed=seed,
        last_trick_winner=leader,
        trace=trace if trace is not None else (previous.trace if previous is not None else None),
    )
    log.info("New game seed=%d dealer=%s trump=%s", seed, dealer.value, trump_card.short())
    _emit(state, "new_game", seed=seed, dealer=dealer.value, trump_card=trump_card.id)
    return state


# ---------------------------------------------------------------------------
#  Queries
# ---------------------------------------------------------------------------


def status(state: GameState) -> str:
    if state.game_over:
        return GAME_OVER
    if state.trick_awaiting_clear:
        return TRICK_PENDING_CLEAR
    return PHASE2_PLAY if state.game_phase == 2 else PHASE1_PLAY


def talon_size(state: GameState) -> int:
    return len(state.talon)


def scores(state: GameState) -> dict[str, int]:
    return {side.value: state.players[side].score for side in Side}


def game_wins(state: GameState) -> dict[str, int]:
    return {side.value: state.players[side].game_wins for side in Side}


def card_count(state: GameState) -> int:
    n = len(state.talon) + (1 if state.trump_card is not None else 0)
    for p in state.players.values():
        n += len(p.hand) + len(p.tricks)
    if not state.trick_awaiting_clear:
        # Once resolved, the trick's cards are already counted in ``tricks``.
        n += sum(1 for c in state.current_trick.values() if c is not None)
    return n


def check_conservation(state: GameState) -> None:
    n = card_count(state)
    if n != DECK_SIZE:
        raise InconsistentStateError(f"{n} cards accounted for, expected {DECK_SIZE}")


def _trump_seven(state: GameState) -> Card:
    return Card(state.trump_suit, Rank.SEVEN)


def can_exchange_seven(state: GameState, side: Side) -> bool:
    """
    Trump seven exchange:
    - Only while the talon still has cards (phase 1)
    - At most once per game
    - The side must hold the seven of trump
    """
    if state.talon_empty or state.seven_exchanged or state.game_phase == 2:
        return False
    if state.game_over or state.trump_card is None:
        return False
    return _trump_seven(state) in state.players[side].hand


def is_legal_play(state: GameState, side: Side, card: Card) -> bool:
    return is_legal_response(
        state.players[side].hand,
        card,
        state.led_card(side),
        trump=state.trump_suit,
        strict=must_follow(state.game_phase),
    )


def legal_cards(state: GameState, side: Side) -> list[Card]:
    return legal_response_cards(
        state.players[side].hand,
        state.led_card(side),
        trump=state.trump_suit,
        strict=must_follow(state.game_phase),
    )


# ---------------------------------------------------------------------------
#  Actions
# ---------------------------------------------------------------------------


def exchange_seven(state: GameState, side: Side) -> tuple[GameState, Union[ExchangeResult, Failure]]:
    """Swap the trump seven from ``side``'s hand with the face-up trump card."""
    if not can_exchange_seven(state, side):
        return state, Failure(FailureReason.INVALID_EXCHANGE, "Cannot exchange seven")
    assert state.trump_card is not None
    hand = state.players[side].hand
    seven = _trump_seven(state)
    old_trump = state.trump_card
    hand[hand.index(seven)] = old_trump
    state.trump_card = seven
    state.seven_exchanged = True
    log.debug("%s exchanged the trump seven for %s", side.value, old_trump.short())
    _emit(state, "exchange", side=side.value, received=old_trump.id)
    return state, ExchangeResult(new_trump_card=seven, received_card=old_trump)


def play_card(state: GameState, side: Side, card: Union[Card, str]) -> tuple[GameState, PlayResult]:
    """Play ``card`` (a Card or its id) for ``side``."""
    if state.game_over:
        return state, Failure(FailureReason.GAME_OVER, "Game is over")
    if state.trick_awaiting_clear:
        return state, Failure(FailureReason.TRICK_PENDING_CLEAR, "Clear the finished trick first")
    if state.current_player != side:
        return state, Failure(FailureReason.NOT_YOUR_TURN, f"Not your turn (current={state.current_player.value})")

    if isinstance(card, str):
        try:
            card = Card.from_id(card)
        except ValueError:
            return state, Failure(FailureReason.CARD_NOT_IN_HAND, "Card not in hand")
    player = state.players[side]
    if card not in player.hand:
        return state, Failure(FailureReason.CARD_NOT_IN_HAND, "Card not in hand")
    if not is_legal_play(state, side, card):
        return state, Failure(FailureReason.ILLEGAL_PLAY, "Illegal play")

    player.hand.remove(card)
    announcement = _announce(state, side, card)

    if state.current_trick[side.other] is None:
        state.trick_leader = side
    state.current_trick[side] = card
    _emit(state, "play", side=side.value, card=card.id)

    if announcement is not None and announcement.instant_win:
        return state, _instant_win(state, side, card, announcement)

    if state.current_trick[side.other] is not None:
        return state, _resolve_trick(state, card, announcement)

    state.current_player = side.other
    return state, CardPlayed(card=card, announcement=announcement)


def clear_trick(state: GameState) -> tuple[GameState, Union[ClearResult, Failure]]:
    """Take a resolved trick off the table so the winner can lead."""
    if not state.trick_awaiting_clear:
        return state, Failure(FailureReason.NO_TRICK_TO_CLEAR, "No finished trick to clear")
    state.current_trick = {Side.HUMAN: None, Side.AI: None}
    state.trick_leader = None
    state.trick_awaiting_clear = False
    return state, ClearResult(current_player=state.current_player.value)


# ---------------------------------------------------------------------------
#  Internals
# ---------------------------------------------------------------------------


def _announce(state: GameState, side: Side, played: Card) -> Optional[Announcement]:
    """Detect, record and score the announcement made by ``played``."""
    player = state.players[side]
    found = announcements.detect(
        [*player.hand, played],
        played,
        trump=state.trump_suit,
        claimed=player.announced_combos,
    )
    if found is None or found.instant_win:
        return found
    player.announced_combos.add(found.key)
    player.announcements.append(found)
    player.score += found.points
    log.debug("%s announces %s (%d)", side.value, found.combination.value, found.points)
    _emit(state, "announcement", side=side.value, **found.to_dict())
    return found


def _instant_win(state: GameState, side: Side, card: Card, announcement: Announcement) -> GameOverResult:
    state.players[side].announcements.append(announcement)
    state.players[side].game_wins += 1
    state.game_over = True
    state.game_winner = side.value
    log.info("Chouine! %s wins seed=%d", side.value, state.seed)
    _emit(state, "game_over", winner=side.value, instant_win=True)
    return GameOverResult(
        card=card,
        announcement=announcement,
        scores=scores(state),
        game_wins=game_wins(state),
        winner=side.value,
        instant_win=True,
    )


def _resolve_trick(state: GameState, card: Card, announcement: Optional[Announcement]) -> PlayResult:
    assert state.trick_leader is not None
    first_side = state.trick_leader
    first = state.current_trick[first_side]
    second = state.current_trick[first_side.other]
    assert first is not None and second is not None

    winner = first_side.other if trick_winner_is_second(first, second, state.trump_suit) else first_side
    points = first.value() + second.value()
    wp = state.players[winner]
    wp.tricks.extend([state.current_trick[Side.HUMAN], state.current_trick[Side.AI]])
    wp.score += points
    state.last_trick_winner = winner
    state.trick_awaiting_clear = True
    state.trick_no += 1

    drawn = _draw_after_trick(state, winner)
    state.current_player = winner
    log.debug("Trick %d: %s vs %s -> %s (+%d)", state.trick_no, first.short(), second.short(), winner.value, points)
    _emit(state, "trick", winner=winner.value, points=points)

    if not state.players[Side.HUMAN].hand and not state.players[Side.AI].hand:
        return _end_game(state, card, announcement, winner, drawn)

    return TrickResolved(
        card=card,
        announcement=announcement,
        trick_winner=winner.value,
        points=points,
        drawn_cards=drawn,
        current_player=winner.value,
        game_phase=state.game_phase,
    )


def _draw_after_trick(state: GameState, winner: Side) -> Optional[dict[str, Card]]:
    """Winner draws first, then the loser.  The last draw takes the trump card."""
    if state.talon_empty:
        return None
    drawn: dict[str, Card] = {}
    loser = winner.other
    if state.talon:
        c = state.talon.pop()
        state.players[winner].hand.append(c)
        drawn[winner.value] = c
    if state.talon:
        c = state.talon.pop()
        state.players[loser].hand.append(c)
        drawn[loser.value] = c
    else:
        if state.trump_card is not None:
            state.players[loser].hand.append(state.trump_card)
            drawn[loser.value] = state.trump_card
            state.trump_card = None
        state.talon_empty = True
        state.game_phase = 2
        log.debug("Talon exhausted after trick %d; strict play begins", state.trick_no)
        _emit(state, "phase", game_phase=2)
    return drawn


def _end_game(
    state: GameState,
    card: Card,
    announcement: Optional[Announcement],
    last_winner: Side,
    drawn: Optional[dict[str, Card]],
) -> GameOverResult:
    state.players[last_winner].score += LAST_TRICK_BONUS
    human = state.players[Side.HUMAN].score
    ai = state.players[Side.AI].score
    if human > ai:
        winner = Side.HUMAN.value
    elif ai > human:
        winner = Side.AI.value
    else:
        winner = TIE
    if winner != TIE:
        state.players[Side(winner)].game_wins += 1
    state.game_over = True
    state.game_winner = winner
    log.info("Game over seed=%d: human %d - ai %d (%s)", state.seed, human, ai, winner)
    _emit(state, "game_over", winner=winner, instant_win=False)
    return GameOverResult(
        card=card,
        announcement=announcement,
        scores=scores(state),
        game_wins=game_wins(state),
        winner=winner,
        trick_winner=last_winner.value,
        drawn_cards=drawn,
    )
